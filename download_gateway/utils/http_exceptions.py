"""
HTTP exception helpers for FastAPI.

This module provides helper functions for raising HTTP exceptions
with consistent status codes and messages, plus the single mapping from
domain download failures to HTTP statuses.
"""
from typing import NoReturn

from fastapi import HTTPException
from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_401_UNAUTHORIZED,
    HTTP_403_FORBIDDEN,
    HTTP_404_NOT_FOUND,
    HTTP_500_INTERNAL_SERVER_ERROR,
    HTTP_502_BAD_GATEWAY,
    HTTP_504_GATEWAY_TIMEOUT,
)

from download_gateway.models.exceptions import (
    DownloadError,
    ForbiddenError,
    IntegrityError,
    InvalidRequestError,
    NotFoundError,
    UnauthorizedError,
    UpstreamError,
    UpstreamRejectedError,
    UpstreamTimeoutError,
    UpstreamTransientError,
)


def raise_bad_request(detail: str = '') -> NoReturn:
    """Raises an HTTP 400 Bad Request exception."""
    raise HTTPException(status_code=HTTP_400_BAD_REQUEST, detail=detail)


def raise_not_found(detail: str) -> NoReturn:
    """Raises an HTTP 404 Not Found exception."""
    raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail=detail)


def raise_internal_error(
    detail: str = "Internal server error. Please try again later or contact the administrator."
) -> NoReturn:
    """Raises an HTTP 500 Internal Server Error exception."""
    raise HTTPException(status_code=HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)


def raise_forbidden(detail: str) -> NoReturn:
    """Raises an HTTP 403 Forbidden exception."""
    raise HTTPException(status_code=HTTP_403_FORBIDDEN, detail=detail)


def raise_unauthorized(detail: str) -> NoReturn:
    """Raises an HTTP 401 Unauthorized exception."""
    raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail=detail)


def raise_bad_gateway(detail: str) -> NoReturn:
    """Raises an HTTP 502 Bad Gateway exception."""
    raise HTTPException(status_code=HTTP_502_BAD_GATEWAY, detail=detail)


def raise_gateway_timeout(detail: str) -> NoReturn:
    """Raises an HTTP 504 Gateway Timeout exception."""
    raise HTTPException(status_code=HTTP_504_GATEWAY_TIMEOUT, detail=detail)


def raise_for_download_error(error: DownloadError) -> NoReturn:
    """
    Translates a domain download failure into an HTTP exception.

    Only the exception's user-safe message reaches the client. Upstream
    details stay in the server log.
    """
    if isinstance(error, InvalidRequestError):
        raise_bad_request(error.message)
    elif isinstance(error, NotFoundError):
        raise_not_found("File not found")
    elif isinstance(error, UnauthorizedError):
        raise_unauthorized(error.message)
    elif isinstance(error, ForbiddenError):
        raise_forbidden(error.message)
    elif isinstance(error, UpstreamTimeoutError):
        raise_gateway_timeout("Download failed: storage did not respond in time")
    elif isinstance(error, (UpstreamTransientError, UpstreamRejectedError)):
        raise_bad_gateway("Download failed: storage is unavailable")
    elif isinstance(error, IntegrityError):
        raise_internal_error(IntegrityError.default_message)
    elif isinstance(error, UpstreamError):
        raise_internal_error("Download failed: storage error")
    else:
        raise_internal_error()
