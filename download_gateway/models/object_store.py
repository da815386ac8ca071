"""
Object store access and byte fetching.

`ObjectStore` is the narrow interface the gateway needs from a blob store:
resolve a storage path to a transfer handle, then read that handle once.
`FirebaseStorageObjectStore` implements it over the Firebase Storage REST API.
`ObjectFetcher` adds the retry policy on top of single transfer attempts.
"""
import asyncio
from typing import Any, ClassVar, Protocol
from urllib.parse import quote

import aiohttp
from loguru import logger as l

from download_gateway.utils.aiohttp_client_session_mixin import AioHttpClientSessionClassVarMixin
from .download import DEFAULT_CONTENT_TYPE, FetchedObject
from .exceptions import (
    ObjectNotFoundError,
    UpstreamError,
    UpstreamRejectedError,
    UpstreamTimeoutError,
    UpstreamTransientError,
)
from .retry import BackoffRetrier

# Statuses worth another attempt: timeouts, throttling and server-side faults
TRANSIENT_STATUSES = frozenset({408, 425, 429})


def is_transient_status(status: int) -> bool:
    return status >= 500 or status in TRANSIENT_STATUSES


class ObjectStore(Protocol):
    async def resolve_download_handle(self, storage_path: str) -> str:
        """
        Returns a short-lived transfer handle (usually a URL) for the object.

        Raises ObjectNotFoundError when the object does not exist.
        """
        ...

    async def transfer(self, handle: str) -> FetchedObject:
        """
        Performs one read of a resolved handle.

        Raises UpstreamTransientError for failures worth retrying and
        UpstreamError (or ObjectNotFoundError) for terminal ones.
        """
        ...


class FirebaseStorageObjectStore(AioHttpClientSessionClassVarMixin):
    """
    Firebase Storage over REST.

    Resolution reads the object's metadata (``GET /b/<bucket>/o/<path>``) and
    builds the tokenized media URL; the transfer downloads that URL.
    """
    DEFAULT_BASE_URL: ClassVar[str] = "https://firebasestorage.googleapis.com/v0"

    def __init__(
        self,
        bucket: str,
        base_url: str = DEFAULT_BASE_URL,
        access_token: str | None = None,
        resolve_timeout: float = 10.0,
        transfer_timeout: float = 60.0,
    ):
        self.bucket = bucket
        self.base_url = base_url.rstrip("/")
        self.access_token = access_token
        self._resolve_timeout = aiohttp.ClientTimeout(total=resolve_timeout)
        self._transfer_timeout = aiohttp.ClientTimeout(total=transfer_timeout)

    @property
    def _headers(self) -> dict[str, str] | None:
        return {"Authorization": f"Bearer {self.access_token}"} if self.access_token else None

    def object_url(self, storage_path: str) -> str:
        return f"{self.base_url}/b/{quote(self.bucket, safe='')}/o/{quote(storage_path, safe='')}"

    async def resolve_download_handle(self, storage_path: str) -> str:
        try:
            async with self.http_session.get(
                self.object_url(storage_path),
                headers=self._headers,
                timeout=self._resolve_timeout,
            ) as response:
                if response.status == 404:
                    raise ObjectNotFoundError(storage_path)
                if is_transient_status(response.status):
                    raise UpstreamTransientError(f"Storage metadata returned HTTP {response.status}")
                if response.status != 200:
                    raise UpstreamError(f"Storage metadata returned HTTP {response.status}")
                metadata: Any = await response.json()
        except (aiohttp.ContentTypeError, ValueError) as e:
            raise UpstreamError("Storage metadata was not JSON") from e
        except asyncio.TimeoutError as e:
            raise UpstreamTimeoutError() from e
        except aiohttp.ClientError as e:
            raise UpstreamTransientError(f"Storage unreachable: {type(e).__name__}") from e

        if not isinstance(metadata, dict):
            raise UpstreamError("Storage metadata was not a JSON object")

        media_url = f"{self.object_url(storage_path)}?alt=media"
        # downloadTokens is a comma separated list; any of them grants read access
        tokens = str(metadata.get("downloadTokens") or "").split(",")
        if tokens[0]:
            media_url += f"&token={quote(tokens[0], safe='')}"
        return media_url

    async def transfer(self, handle: str) -> FetchedObject:
        try:
            async with self.http_session.get(
                handle,
                headers=self._headers,
                timeout=self._transfer_timeout,
            ) as response:
                if is_transient_status(response.status):
                    raise UpstreamTransientError(f"Transfer returned HTTP {response.status}")
                if response.status == 404:
                    raise ObjectNotFoundError(handle.split("?", 1)[0])
                if response.status >= 400:
                    raise UpstreamRejectedError(response.status)
                content = await response.read()
                content_type = response.headers.get("Content-Type") or DEFAULT_CONTENT_TYPE
        except asyncio.TimeoutError as e:
            raise UpstreamTimeoutError() from e
        except aiohttp.ClientError as e:
            raise UpstreamTransientError(f"Transfer interrupted: {type(e).__name__}") from e

        return FetchedObject(
            content=content,
            content_type=content_type,
            content_length=len(content),
        )


class ObjectFetcher:
    """Resolves a storage path once, then reads it under the retry policy."""

    def __init__(self, store: ObjectStore, retrier: BackoffRetrier):
        self.store = store
        self.retrier = retrier

    async def fetch(self, storage_path: str) -> FetchedObject:
        """
        Raises:
            ObjectNotFoundError: the object does not exist (never retried)
            UpstreamTransientError: the last transient failure once retries are exhausted
            UpstreamError: a terminal upstream failure
        """
        handle = await self.store.resolve_download_handle(storage_path)
        fetched = await self.retrier.execute(
            lambda: self.store.transfer(handle),
            description=f"transfer of {storage_path}",
        )
        l.debug(f"Fetched {storage_path}: {fetched.content_length} bytes, {fetched.content_type}")
        return fetched
