"""
Custom exceptions for the download gateway models layer.

These exceptions are framework-agnostic and should be caught
by the FastAPI layer to convert to HTTP responses.
"""
from enum import StrEnum
from typing import ClassVar


class FailureKind(StrEnum):
    INVALID_REQUEST = "invalid_request"
    NOT_FOUND = "not_found"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    UPSTREAM_ERROR = "upstream_error"
    UPSTREAM_TRANSIENT = "upstream_transient"
    TIMEOUT = "timeout"
    INTEGRITY_ERROR = "integrity_error"
    INTERNAL_ERROR = "internal_error"


class DownloadError(Exception):
    """Base exception for every classified download failure."""
    kind: ClassVar[FailureKind] = FailureKind.INTERNAL_ERROR
    default_message: ClassVar[str] = "Download failed"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidRequestError(DownloadError):
    kind = FailureKind.INVALID_REQUEST
    default_message = "Invalid request"


class NotFoundError(DownloadError):
    kind = FailureKind.NOT_FOUND
    default_message = "File not found"


class DocumentNotFoundError(NotFoundError):
    """The metadata store has no descriptor for the requested id."""
    def __init__(self, collection: str, document_id: str):
        self.collection = collection
        self.document_id = document_id
        super().__init__()


class ObjectNotFoundError(NotFoundError):
    """The object store has no object at the requested path."""
    def __init__(self, storage_path: str):
        self.storage_path = storage_path
        super().__init__()


class AccessDeniedError(DownloadError):
    pass


class UnauthorizedError(AccessDeniedError):
    kind = FailureKind.UNAUTHORIZED
    default_message = "Incorrect or missing password"


class ForbiddenError(AccessDeniedError):
    kind = FailureKind.FORBIDDEN
    default_message = "This file is not shared"


class UpstreamError(DownloadError):
    """Non-retryable upstream failure (bad status from a store, unreadable payload)."""
    kind = FailureKind.UPSTREAM_ERROR
    default_message = "Upstream storage error"


class UpstreamRejectedError(UpstreamError):
    """The transfer endpoint answered with a terminal 4xx status."""
    def __init__(self, status: int):
        self.status = status
        super().__init__(f"Storage rejected the transfer with HTTP {status}")


class UpstreamTransientError(DownloadError):
    """Retryable failure: network error, 5xx status or throttling."""
    kind = FailureKind.UPSTREAM_TRANSIENT
    default_message = "Storage is temporarily unavailable"


class UpstreamTimeoutError(UpstreamTransientError):
    kind = FailureKind.TIMEOUT
    default_message = "Timed out while contacting storage"


class IntegrityError(DownloadError):
    """A stored record exists but is malformed."""
    kind = FailureKind.INTEGRITY_ERROR
    default_message = "File record is malformed"

    def __init__(self, record_id: str, reason: str):
        self.record_id = record_id
        self.reason = reason
        super().__init__(f"{self.default_message}: {reason}")


class ConfigurationError(Exception):
    """Raised at startup when required settings are missing."""
    def __init__(self, missing: list[str]):
        self.missing = missing
        self.message = f"Missing required configuration: {', '.join(missing)}"
        super().__init__(self.message)
