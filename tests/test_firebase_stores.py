"""
Firestore and Firebase Storage adapters against a local aiohttp server.
"""
import asyncio
from urllib.parse import unquote

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from download_gateway.models import (
    BackoffRetrier,
    DocumentNotFoundError,
    FirebaseStorageObjectStore,
    FirestoreMetadataStore,
    ObjectFetcher,
    ObjectNotFoundError,
    RetryPolicy,
    UpstreamError,
    UpstreamRejectedError,
    UpstreamTimeoutError,
    UpstreamTransientError,
)
from download_gateway.utils import AioHttpClientSessionClassVarMixin
from tests.conftest import RecordingSleep

BUCKET = "demo.appspot.com"
DOCUMENTS_PATH = "/projects/demo/databases/(default)/documents/files"


class FakeFirebase:
    """Minimal Firestore + Storage REST emulator with scriptable transfer statuses."""

    def __init__(self):
        self.documents: dict[str, dict] = {}
        self.objects: dict[str, bytes] = {}
        self.tokens: dict[str, str] = {}
        self.transfer_statuses: list[int] = []
        self.transfer_hits = 0
        self.metadata_hits = 0
        self.seen_queries: list[dict] = []
        self.transfer_delay = 0.0
        self.raw_bodies: dict[str, str] = {}

    def app(self) -> web.Application:
        app = web.Application()
        app.router.add_get(DOCUMENTS_PATH + "/{doc_id}", self.get_document)
        app.router.add_get(f"/b/{BUCKET}/o/{{path:.+}}", self.get_object)
        return app

    async def get_document(self, request: web.Request) -> web.Response:
        self.seen_queries.append(dict(request.query))
        doc_id = request.match_info["doc_id"]
        if doc_id in self.raw_bodies:
            return web.Response(text=self.raw_bodies[doc_id], content_type="application/json")
        if doc_id == "explode":
            return web.Response(status=503)
        if doc_id not in self.documents:
            return web.json_response({"error": {"code": 404}}, status=404)
        return web.json_response({"name": doc_id, "fields": self.documents[doc_id]})

    async def get_object(self, request: web.Request) -> web.Response:
        path = unquote(request.match_info["path"])
        if path not in self.objects:
            return web.json_response({"error": {"code": 404}}, status=404)
        if request.query.get("alt") != "media":
            self.metadata_hits += 1
            if path in self.raw_bodies:
                return web.Response(text=self.raw_bodies[path], content_type="application/json")
            return web.json_response({"name": path, "downloadTokens": self.tokens.get(path, "")})

        self.transfer_hits += 1
        if self.transfer_delay:
            await asyncio.sleep(self.transfer_delay)
        if self.transfer_statuses:
            status = self.transfer_statuses.pop(0)
            if status != 200:
                return web.Response(status=status)
        if self.tokens.get(path) and request.query.get("token") != self.tokens[path].split(",")[0]:
            return web.Response(status=403)
        return web.Response(body=self.objects[path], content_type="application/pdf")


@pytest.fixture
async def firebase():
    fake = FakeFirebase()
    server = TestServer(fake.app())
    await server.start_server()
    await AioHttpClientSessionClassVarMixin.initialize_http_session()
    fake.base_url = str(server.make_url("")).rstrip("/")
    yield fake
    await AioHttpClientSessionClassVarMixin.close_http_session()
    await server.close()


@pytest.fixture
def object_store(firebase) -> FirebaseStorageObjectStore:
    return FirebaseStorageObjectStore(bucket=BUCKET, base_url=firebase.base_url, transfer_timeout=0.5)


class TestFirestoreMetadataStore:
    async def test_returns_document_fields(self, firebase):
        firebase.documents["abc123"] = {"storagePath": {"stringValue": "u/abc.pdf"}}
        store = FirestoreMetadataStore(project_id="demo", base_url=firebase.base_url)

        assert await store.get_document("files", "abc123") == {"storagePath": {"stringValue": "u/abc.pdf"}}

    async def test_missing_document(self, firebase):
        store = FirestoreMetadataStore(project_id="demo", base_url=firebase.base_url)

        with pytest.raises(DocumentNotFoundError) as exc_info:
            await store.get_document("files", "nope")
        assert exc_info.value.document_id == "nope"

    async def test_server_failure_is_an_upstream_error(self, firebase):
        store = FirestoreMetadataStore(project_id="demo", base_url=firebase.base_url)

        with pytest.raises(UpstreamError):
            await store.get_document("files", "explode")

    async def test_unreachable_store_is_an_upstream_error(self, firebase):
        store = FirestoreMetadataStore(project_id="demo", base_url="http://127.0.0.1:9", timeout=1.0)

        with pytest.raises(UpstreamError):
            await store.get_document("files", "abc123")

    @pytest.mark.parametrize("body", ["{not json", "[1, 2]", "\"text\""])
    async def test_malformed_payload_is_an_upstream_error(self, firebase, body):
        firebase.raw_bodies["abc123"] = body
        store = FirestoreMetadataStore(project_id="demo", base_url=firebase.base_url)

        with pytest.raises(UpstreamError):
            await store.get_document("files", "abc123")

    async def test_sends_api_key(self, firebase):
        firebase.documents["abc123"] = {}
        store = FirestoreMetadataStore(project_id="demo", base_url=firebase.base_url, api_key="k-1")

        assert await store.get_document("files", "abc123") == {}
        assert firebase.seen_queries[-1] == {"key": "k-1"}


class TestFirebaseStorageObjectStore:
    async def test_resolves_tokenized_media_url(self, firebase, object_store):
        firebase.objects["u/abc.pdf"] = b"pdf"
        firebase.tokens["u/abc.pdf"] = "tok-1,tok-2"

        handle = await object_store.resolve_download_handle("u/abc.pdf")

        assert handle.endswith("/o/u%2Fabc.pdf?alt=media&token=tok-1")

    async def test_missing_object_fails_resolution(self, firebase, object_store):
        with pytest.raises(ObjectNotFoundError) as exc_info:
            await object_store.resolve_download_handle("u/none.pdf")
        assert exc_info.value.storage_path == "u/none.pdf"

    @pytest.mark.parametrize("body", ["{not json", "[\"downloadTokens\"]", "null"])
    async def test_malformed_metadata_is_an_upstream_error(self, firebase, object_store, body):
        firebase.objects["u/abc.pdf"] = b"pdf"
        firebase.raw_bodies["u/abc.pdf"] = body

        with pytest.raises(UpstreamError):
            await object_store.resolve_download_handle("u/abc.pdf")
        assert firebase.transfer_hits == 0

    async def test_transfer_reports_type_and_length(self, firebase, object_store):
        firebase.objects["u/abc.pdf"] = b"%PDF-1.7"
        handle = await object_store.resolve_download_handle("u/abc.pdf")

        fetched = await object_store.transfer(handle)

        assert fetched.content == b"%PDF-1.7"
        assert fetched.content_type.startswith("application/pdf")
        assert fetched.content_length == 8

    @pytest.mark.parametrize("status, error", [
        (500, UpstreamTransientError),
        (503, UpstreamTransientError),
        (429, UpstreamTransientError),
        (403, UpstreamRejectedError),
        (404, ObjectNotFoundError),
    ])
    async def test_transfer_classifies_statuses(self, firebase, object_store, status, error):
        firebase.objects["u/abc.pdf"] = b"pdf"
        handle = await object_store.resolve_download_handle("u/abc.pdf")
        firebase.transfer_statuses = [status]

        with pytest.raises(error):
            await object_store.transfer(handle)

    async def test_slow_transfer_is_a_timeout(self, firebase, object_store):
        firebase.objects["u/abc.pdf"] = b"pdf"
        firebase.transfer_delay = 2.0
        handle = await object_store.resolve_download_handle("u/abc.pdf")

        with pytest.raises(UpstreamTimeoutError):
            await object_store.transfer(handle)


class TestObjectFetcherOverHttp:
    async def test_retries_server_errors_until_success(self, firebase, object_store):
        firebase.objects["u/abc.pdf"] = b"eventually"
        firebase.transfer_statuses = [502, 500]
        sleep = RecordingSleep()
        fetcher = ObjectFetcher(object_store, BackoffRetrier(RetryPolicy(), sleep=sleep))

        fetched = await fetcher.fetch("u/abc.pdf")

        assert fetched.content == b"eventually"
        assert firebase.metadata_hits == 1
        assert firebase.transfer_hits == 3
        assert sleep.delays == [1.0, 2.0]

    async def test_missing_object_makes_no_transfer(self, firebase, object_store):
        sleep = RecordingSleep()
        fetcher = ObjectFetcher(object_store, BackoffRetrier(RetryPolicy(), sleep=sleep))

        with pytest.raises(ObjectNotFoundError):
            await fetcher.fetch("u/none.pdf")
        assert firebase.transfer_hits == 0
        assert sleep.delays == []
