"""
Shared pytest fixtures for the download gateway test suite.

Provides in-memory store fakes that implement the MetadataStore and
ObjectStore interfaces, and a gateway wired to them with zero retry delays.
"""
from typing import Any

import pytest
from hypothesis import HealthCheck, settings

from download_gateway.models import (
    BackoffRetrier,
    DocumentNotFoundError,
    DownloadGateway,
    FetchedObject,
    MetadataResolver,
    ObjectFetcher,
    ObjectNotFoundError,
    RetryPolicy,
    hash_share_password,
)

settings.register_profile("default", max_examples=50, deadline=None, suppress_health_check=[HealthCheck.too_slow])
settings.load_profile("default")

# Cheapest bcrypt cost factor; production hashes use the module default
FAST_ROUNDS = 4


def firestore_fields(**values: Any) -> dict[str, Any]:
    """Encodes plain values the way the Firestore REST API returns them."""
    fields: dict[str, Any] = {}
    for name, value in values.items():
        if isinstance(value, bool):
            fields[name] = {"booleanValue": value}
        else:
            fields[name] = {"stringValue": value}
    return fields


class InMemoryMetadataStore:
    def __init__(self, documents: dict[str, dict[str, Any]] | None = None):
        self.documents = documents or {}
        self.reads: list[tuple[str, str]] = []

    async def get_document(self, collection: str, document_id: str) -> dict[str, Any]:
        self.reads.append((collection, document_id))
        if document_id not in self.documents:
            raise DocumentNotFoundError(collection, document_id)
        return self.documents[document_id]


class ScriptedObjectStore:
    """
    Serves objects from memory. ``failures[path]`` is a list of exceptions raised
    by successive transfers of that path before the object is returned.
    """

    def __init__(self, objects: dict[str, bytes] | None = None, content_type: str = "application/pdf"):
        self.objects = objects or {}
        self.content_type = content_type
        self.failures: dict[str, list[Exception]] = {}
        self.resolve_calls: list[str] = []
        self.transfer_calls: list[str] = []

    async def resolve_download_handle(self, storage_path: str) -> str:
        self.resolve_calls.append(storage_path)
        if storage_path not in self.objects:
            raise ObjectNotFoundError(storage_path)
        return storage_path

    async def transfer(self, handle: str) -> FetchedObject:
        self.transfer_calls.append(handle)
        pending = self.failures.get(handle)
        if pending:
            raise pending.pop(0)
        content = self.objects[handle]
        return FetchedObject(content=content, content_type=self.content_type, content_length=len(content))


class RecordingSleep:
    """Stands in for asyncio.sleep and records the requested delays."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def secret_hash() -> str:
    return hash_share_password("secret", rounds=FAST_ROUNDS)


@pytest.fixture
def metadata_store(secret_hash) -> InMemoryMetadataStore:
    return InMemoryMetadataStore({
        "abc123": firestore_fields(
            shared=True,
            sharePasswordHash=secret_hash,
            storagePath="u/abc.pdf",
            name="abc.pdf",
        ),
        "open1": firestore_fields(shared=True, storagePath="u/open.txt", name="open.txt"),
        "private1": firestore_fields(shared=False, storagePath="u/private.txt", name="private.txt"),
        "broken1": firestore_fields(shared=True, name="broken.txt"),
        "deleted1": firestore_fields(shared=True, storagePath="u/gone.txt", name="gone.txt"),
    })


@pytest.fixture
def object_store() -> ScriptedObjectStore:
    return ScriptedObjectStore({
        "u/abc.pdf": b"%PDF-1.7 abc",
        "u/open.txt": b"hello world",
        "u/private.txt": b"top secret",
    })


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def retry_policy() -> RetryPolicy:
    return RetryPolicy(max_attempts=4, initial_delay=1.0, backoff_multiplier=2.0)


@pytest.fixture
def gateway(metadata_store, object_store, retry_policy, recording_sleep) -> DownloadGateway:
    return DownloadGateway(
        resolver=MetadataResolver(metadata_store, collection="files"),
        fetcher=ObjectFetcher(object_store, BackoffRetrier(retry_policy, sleep=recording_sleep)),
    )
