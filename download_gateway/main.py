"""
Main FastAPI application for the download gateway.

Run with: uvicorn download_gateway.main:app
"""
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from loguru import logger as l
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.status import HTTP_400_BAD_REQUEST, HTTP_500_INTERNAL_SERVER_ERROR

from download_gateway import meta_config
from download_gateway.fastapis import router as api_router
from download_gateway.models.gateway import DownloadGateway
from download_gateway.models.retry import RetryPolicy
from download_gateway.utils.aiohttp_client_session_mixin import AioHttpClientSessionClassVarMixin
from download_gateway.utils.disconnect import ClientDisconnectedError

# nginx convention for "client closed request"; never reaches the client
HTTP_499_CLIENT_CLOSED_REQUEST = 499

l.remove()
l.add(sys.stderr, level=meta_config.LOG_LEVEL)


def build_gateway() -> DownloadGateway:
    """Builds the gateway from environment configuration. Fails fast on missing settings."""
    meta_config.ensure_required_config()
    retry_policy = RetryPolicy(
        max_attempts=meta_config.DOWNLOAD_MAX_ATTEMPTS,
        initial_delay=meta_config.DOWNLOAD_INITIAL_DELAY,
        backoff_multiplier=meta_config.DOWNLOAD_BACKOFF_MULTIPLIER,
    )
    return DownloadGateway.from_settings(
        project_id=meta_config.FIREBASE_PROJECT_ID,
        bucket=meta_config.FIREBASE_STORAGE_BUCKET,
        collection=meta_config.FILES_COLLECTION,
        retry_policy=retry_policy,
        firestore_base_url=meta_config.FIRESTORE_BASE_URL,
        storage_base_url=meta_config.STORAGE_BASE_URL,
        api_key=meta_config.FIREBASE_API_KEY,
        access_token=meta_config.FIREBASE_ACCESS_TOKEN,
        metadata_timeout=meta_config.METADATA_TIMEOUT,
        download_timeout=meta_config.DOWNLOAD_TIMEOUT,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Configuration errors propagate here and abort startup
    app.state.gateway = build_gateway()
    await AioHttpClientSessionClassVarMixin.initialize_http_session()
    l.info(
        f"Download gateway {meta_config.VERSION} ready: project={meta_config.FIREBASE_PROJECT_ID}, "
        f"bucket={meta_config.FIREBASE_STORAGE_BUCKET}, collection={meta_config.FILES_COLLECTION}"
    )
    yield
    l.info("Shutting down. Closing upstream HTTP session...")
    await AioHttpClientSessionClassVarMixin.close_http_session()


app = FastAPI(title="Download Gateway", version=meta_config.VERSION, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=meta_config.CORS_ALLOWED_ORIGINS,
    allow_credentials=False,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition", "Content-Length"],
)

app.include_router(api_router)


@app.exception_handler(StarletteHTTPException)
async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Renders every HTTP error as ``{"error": "<message>"}``."""
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)}, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = f"Invalid {location}: {first.get('msg', 'invalid value')}" if location else "Invalid request"
    l.info(f"Rejected {request.method} {request.url.path}: {message}")
    return JSONResponse(status_code=HTTP_400_BAD_REQUEST, content={"error": message})


@app.exception_handler(ClientDisconnectedError)
async def handle_client_disconnected(request: Request, exc: ClientDisconnectedError) -> Response:
    return Response(status_code=HTTP_499_CLIENT_CLOSED_REQUEST)


@app.exception_handler(Exception)
async def handle_unexpected_exceptions(request: Request, exc: Exception) -> JSONResponse:
    """
    Catches all unhandled exceptions to prevent sensitive information leakage.
    """
    l.exception(
        f"An unhandled exception occurred for request: {request.method} {request.url.path}"
    )
    return JSONResponse(
        status_code=HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error. Please try again later or contact the administrator."},
    )
