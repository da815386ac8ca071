"""
Metadata store access and descriptor resolution.

`MetadataStore` is the narrow read interface the gateway needs from a document
store. `FirestoreMetadataStore` implements it over the Firestore REST API using
the shared aiohttp session.
"""
import asyncio
from typing import Any, ClassVar, Protocol
from urllib.parse import quote

import aiohttp
from loguru import logger as l

from download_gateway.utils.aiohttp_client_session_mixin import AioHttpClientSessionClassVarMixin
from .descriptor import FileDescriptor
from .exceptions import DocumentNotFoundError, UpstreamError


class MetadataStore(Protocol):
    async def get_document(self, collection: str, document_id: str) -> dict[str, Any]:
        """
        Returns the raw fields of one document.

        Raises DocumentNotFoundError when it does not exist and UpstreamError
        when the store cannot answer.
        """
        ...


class FirestoreMetadataStore(AioHttpClientSessionClassVarMixin):
    """Reads documents from the Firestore REST API (``GET .../documents/<collection>/<id>``)."""
    DEFAULT_BASE_URL: ClassVar[str] = "https://firestore.googleapis.com/v1"

    def __init__(
        self,
        project_id: str,
        base_url: str = DEFAULT_BASE_URL,
        api_key: str | None = None,
        access_token: str | None = None,
        timeout: float = 10.0,
    ):
        self.project_id = project_id
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.access_token = access_token
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    def document_url(self, collection: str, document_id: str) -> str:
        return (
            f"{self.base_url}/projects/{quote(self.project_id, safe='')}/databases/(default)/documents/"
            f"{quote(collection, safe='')}/{quote(document_id, safe='')}"
        )

    async def get_document(self, collection: str, document_id: str) -> dict[str, Any]:
        params = {"key": self.api_key} if self.api_key else None
        headers = {"Authorization": f"Bearer {self.access_token}"} if self.access_token else None
        try:
            async with self.http_session.get(
                self.document_url(collection, document_id),
                params=params,
                headers=headers,
                timeout=self._timeout,
            ) as response:
                if response.status == 404:
                    raise DocumentNotFoundError(collection, document_id)
                if response.status != 200:
                    raise UpstreamError(f"Metadata store returned HTTP {response.status}")
                payload = await response.json()
        except (aiohttp.ContentTypeError, ValueError) as e:
            raise UpstreamError("Metadata store returned a non-JSON body") from e
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise UpstreamError(f"Metadata store unreachable: {type(e).__name__}") from e

        if not isinstance(payload, dict):
            raise UpstreamError("Metadata store returned a non-object document")
        fields = payload.get("fields")
        # A document with no fields at all is returned without a "fields" key
        return fields if isinstance(fields, dict) else {}


class MetadataResolver:
    """Resolves a file id to its descriptor with a single, non-retried read."""

    def __init__(self, store: MetadataStore, collection: str = "files"):
        self.store = store
        self.collection = collection

    async def resolve(self, file_id: str) -> FileDescriptor:
        """
        Raises:
            DocumentNotFoundError: no descriptor for this id
            IntegrityError: the descriptor exists but is malformed
            UpstreamError: the metadata store failed
        """
        fields = await self.store.get_document(self.collection, file_id)
        descriptor = FileDescriptor.from_document(file_id, fields)
        l.debug(f"Resolved descriptor {file_id}: shared={descriptor.shared}, path={descriptor.storage_path}")
        return descriptor
