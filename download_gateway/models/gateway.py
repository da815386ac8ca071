"""
Download gateway: orchestrates resolution, authorization and fetching for the
two public download operations.

Both operations are read-only against the stores and keep no state between
calls. Failures are raised as `DownloadError` subclasses and translated to HTTP
by the FastAPI layer.
"""
import asyncio

from loguru import logger as l

from .access import AccessAuthorizer, DenyReason
from .download import (
    NO_CACHE_HEADERS,
    DownloadMode,
    DownloadRequest,
    DownloadResponse,
    FetchedObject,
    content_disposition,
)
from .exceptions import (
    DownloadError,
    ForbiddenError,
    IntegrityError,
    InvalidRequestError,
    NotFoundError,
    UnauthorizedError,
    UpstreamTransientError,
)
from .metadata import FirestoreMetadataStore, MetadataResolver
from .object_store import FirebaseStorageObjectStore, ObjectFetcher
from .retry import BackoffRetrier, RetryPolicy


def _log_failure(target: str, error: DownloadError) -> None:
    """One log line per failed download, at a level that matches who has to act on it."""
    message = f"Download of {target} failed [{error.kind}]: {error.message}"
    if isinstance(error, IntegrityError):
        l.error(f"{message} (operator action required: repair record {error.record_id})")
    elif isinstance(error, UpstreamTransientError):
        l.warning(message)
    elif isinstance(error, (NotFoundError, InvalidRequestError, UnauthorizedError, ForbiddenError)):
        l.info(message)
    else:
        l.error(message)


class DownloadGateway:
    def __init__(
        self,
        resolver: MetadataResolver,
        fetcher: ObjectFetcher,
        authorizer: AccessAuthorizer | None = None,
    ):
        self.resolver = resolver
        self.fetcher = fetcher
        self.authorizer = authorizer or AccessAuthorizer()

    @classmethod
    def from_settings(
        cls,
        *,
        project_id: str,
        bucket: str,
        collection: str,
        retry_policy: RetryPolicy,
        firestore_base_url: str = FirestoreMetadataStore.DEFAULT_BASE_URL,
        storage_base_url: str = FirebaseStorageObjectStore.DEFAULT_BASE_URL,
        api_key: str | None = None,
        access_token: str | None = None,
        metadata_timeout: float = 10.0,
        download_timeout: float = 60.0,
    ) -> "DownloadGateway":
        """Wires the Firebase-backed stores into a gateway."""
        metadata_store = FirestoreMetadataStore(
            project_id=project_id,
            base_url=firestore_base_url,
            api_key=api_key,
            access_token=access_token,
            timeout=metadata_timeout,
        )
        object_store = FirebaseStorageObjectStore(
            bucket=bucket,
            base_url=storage_base_url,
            access_token=access_token,
            resolve_timeout=metadata_timeout,
            transfer_timeout=download_timeout,
        )
        return cls(
            resolver=MetadataResolver(metadata_store, collection=collection),
            fetcher=ObjectFetcher(object_store, BackoffRetrier(retry_policy)),
        )

    async def direct_download(self, storage_path: str | None) -> DownloadResponse:
        """
        Downloads an object by storage path for an already-authenticated caller.

        Raises:
            InvalidRequestError: empty storage path
            ObjectNotFoundError: no object at that path
            UpstreamTransientError: storage kept failing after every retry
            UpstreamError: storage failed permanently
        """
        request = DownloadRequest(mode=DownloadMode.DIRECT, storage_path=storage_path or "")
        if not request.storage_path:
            raise InvalidRequestError("Storage path is required")

        try:
            fetched = await self.fetcher.fetch(request.storage_path)
        except DownloadError as e:
            _log_failure(f"path {request.storage_path}", e)
            raise

        l.info(f"Direct download of {request.storage_path} ({fetched.content_length} bytes)")
        return self._build_response(fetched, {"Content-Disposition": content_disposition()})

    async def shared_download(self, file_id: str | None, supplied_password: str | None = None) -> DownloadResponse:
        """
        Downloads a shared file by id, enforcing the share flag and password.

        Raises:
            InvalidRequestError: empty file id
            DocumentNotFoundError / ObjectNotFoundError: descriptor or object absent
            IntegrityError: descriptor is malformed (e.g. no storage path)
            ForbiddenError: the file is not shared
            UnauthorizedError: wrong or missing password
            UpstreamTransientError / UpstreamError: a store failed
        """
        if not file_id:
            raise InvalidRequestError("File ID is required")
        request = DownloadRequest(
            mode=DownloadMode.SHARED,
            file_id=file_id,
            supplied_password=supplied_password,
        )

        try:
            descriptor = await self.resolver.resolve(file_id)

            decision = await asyncio.to_thread(self.authorizer.authorize, descriptor, request)
            if not decision.allowed:
                if decision.reason is DenyReason.NOT_SHARED:
                    raise ForbiddenError()
                raise UnauthorizedError()

            fetched = await self.fetcher.fetch(descriptor.storage_path)
        except DownloadError as e:
            _log_failure(f"file {file_id}", e)
            raise

        l.info(f"Shared download of {file_id} as '{descriptor.display_name}' ({fetched.content_length} bytes)")
        headers = {"Content-Disposition": content_disposition(descriptor.display_name), **NO_CACHE_HEADERS}
        return self._build_response(fetched, headers)

    @staticmethod
    def _build_response(fetched: FetchedObject, headers: dict[str, str]) -> DownloadResponse:
        length = fetched.content_length if fetched.content_length is not None else len(fetched.content)
        return DownloadResponse(
            status_code=200,
            headers={**headers, "Content-Length": str(length)},
            body=fetched.content,
            media_type=fetched.content_type,
        )
