"""
AioHttp ClientSession shared management module.

Provides one process-wide aiohttp.ClientSession, shared by the metadata store
and object store adapters through a Mixin with ClassVar storage.

Lifecycle:
- `initialize_http_session()` once in the FastAPI lifespan, before the first request
- `close_http_session()` once at shutdown
- Both assert on misuse (double init, use before init, double close)

Usage example:
    ```python
    class FirestoreMetadataStore(AioHttpClientSessionClassVarMixin):
        async def get_document(self, collection: str, document_id: str) -> dict:
            async with self.http_session.get(url) as resp:
                return await resp.json()

    await AioHttpClientSessionClassVarMixin.initialize_http_session()
    ...
    await AioHttpClientSessionClassVarMixin.close_http_session()
    ```

Request tracing logs method and URL only. Query strings are dropped because
media URLs carry download tokens.
"""
import ssl
from pathlib import Path
from typing import ClassVar

import aiohttp
from aiohttp import TraceConfig, TraceRequestStartParams
from loguru import logger as l


def _redact(url) -> str:
    """URL without its query string."""
    return str(url.with_query(None)) if hasattr(url, "with_query") else str(url).split("?", 1)[0]


async def _on_request_start(
    session: aiohttp.ClientSession,
    trace_config_ctx: aiohttp.tracing.SimpleNamespace,
    params: TraceRequestStartParams,
) -> None:
    """Records request info when request starts."""
    trace_config_ctx.method = params.method
    trace_config_ctx.url = _redact(params.url)


async def _on_request_end(
    session: aiohttp.ClientSession,
    trace_config_ctx: aiohttp.tracing.SimpleNamespace,
    params: aiohttp.TraceRequestEndParams,
) -> None:
    """Records the response status when the request ends."""
    l.debug(f"[HTTP Request] {trace_config_ctx.method} {trace_config_ctx.url} -> {params.response.status}")


async def _on_request_exception(
    session: aiohttp.ClientSession,
    trace_config_ctx: aiohttp.tracing.SimpleNamespace,
    params: aiohttp.TraceRequestExceptionParams,
) -> None:
    """Records detailed info when request exception occurs."""
    l.error(
        f"[HTTP Request Exception] {trace_config_ctx.method} {trace_config_ctx.url}\n"
        f"Exception: {type(params.exception).__name__}: {params.exception}"
    )


def _create_trace_config() -> TraceConfig:
    """Creates request tracing configuration."""
    trace_config = TraceConfig()
    trace_config.on_request_start.append(_on_request_start)
    trace_config.on_request_end.append(_on_request_end)
    trace_config.on_request_exception.append(_on_request_exception)
    return trace_config


class AioHttpClientSessionClassVarMixin:
    """
    Mixin to provide a shared aiohttp ClientSession for asynchronous HTTP requests.

    The session must be initialized in an async context (e.g., FastAPI lifespan)
    by calling `initialize_http_session()` before use.

    All classes inheriting this mixin share a single global ClientSession instance.
    """

    _http_session: ClassVar[aiohttp.ClientSession | None] = None
    _ssl_context: ClassVar[ssl.SSLContext | None] = None

    @classmethod
    async def initialize_http_session(
        cls,
        ssl_ca_cert_path: Path | None = None,
        **session_kwargs,
    ) -> None:
        """
        Initialize the aiohttp ClientSession in an async context.

        Args:
            ssl_ca_cert_path: CA certificate path (optional, for storage emulators with self-signed certs)
            **session_kwargs: Optional keyword arguments to pass to aiohttp.ClientSession
        """
        assert cls._http_session is None or cls._http_session.closed, "HTTP session already initialized"

        if ssl_ca_cert_path:
            cls._ssl_context = ssl.create_default_context()
            cls._ssl_context.load_verify_locations(ssl_ca_cert_path)

        # limit: max concurrent connections across all downloads
        # limit_per_host: both stores sit behind a handful of hosts
        # ttl_dns_cache: DNS cache time (seconds)
        connector = aiohttp.TCPConnector(
            limit=100,
            limit_per_host=50,
            keepalive_timeout=60,
            enable_cleanup_closed=True,
            ttl_dns_cache=300,
            ssl=cls._ssl_context if cls._ssl_context is not None else True,
        )
        session_kwargs.setdefault('connector', connector)

        # Per-call timeouts are passed by the adapters; this is the outer bound
        timeout = aiohttp.ClientTimeout(
            total=300,
            connect=30,
            sock_read=60,
        )
        session_kwargs.setdefault('timeout', timeout)

        cls._http_session = aiohttp.ClientSession(
            trust_env=False,
            trace_configs=[_create_trace_config()],
            **session_kwargs,
        )
        l.info(f"{cls.__name__}: HTTP session initialized")

    @classmethod
    def get_http_session(cls) -> aiohttp.ClientSession:
        """
        Get the aiohttp ClientSession instance at class level.

        Returns:
            An instance of aiohttp.ClientSession.
        """
        assert cls._http_session is not None and not cls._http_session.closed, (
            "HTTP session not initialized. "
            "Call `AioHttpClientSessionClassVarMixin.initialize_http_session()` "
            "during application startup."
        )
        return cls._http_session

    @property
    def http_session(self) -> aiohttp.ClientSession:
        """Delegates to the class-level get_http_session() method."""
        return self.__class__.get_http_session()

    @classmethod
    async def close_http_session(cls) -> None:
        """
        Close the aiohttp ClientSession if it is open.

        Should be called during application shutdown.
        """
        assert cls._http_session is not None and not cls._http_session.closed, "HTTP session not initialized or already closed"
        await cls._http_session.close()
        cls._http_session = None
        cls._ssl_context = None
        l.info(f"{cls.__name__}: HTTP session closed")
