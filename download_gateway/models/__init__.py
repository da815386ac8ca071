"""
Download gateway models package.

Domain objects carry both data and behavior: stores know how to talk to their
upstream, the fetcher knows how to retry, the gateway knows how to assemble a
download response.
"""
from .base import ModelBase, FrozenModelBase
from .field_types import (
    NonNegativeInt,
    PositiveInt,
    NonNegativeFloat,
    StoragePathStr,
    FileIdStr,
)
from .exceptions import (
    FailureKind,
    DownloadError,
    InvalidRequestError,
    NotFoundError,
    DocumentNotFoundError,
    ObjectNotFoundError,
    AccessDeniedError,
    UnauthorizedError,
    ForbiddenError,
    UpstreamError,
    UpstreamRejectedError,
    UpstreamTransientError,
    UpstreamTimeoutError,
    IntegrityError,
    ConfigurationError,
)
from .retry import RetryPolicy, BackoffRetrier
from .passwords import hash_share_password, is_share_password_hash, verify_share_password
from .descriptor import FileDescriptor
from .download import (
    DownloadMode,
    DownloadRequest,
    FetchedObject,
    DownloadResponse,
    DirectDownloadBody,
    ErrorBody,
    content_disposition,
)
from .access import AccessAuthorizer, AccessDecision, DenyReason
from .metadata import MetadataStore, FirestoreMetadataStore, MetadataResolver
from .object_store import ObjectStore, FirebaseStorageObjectStore, ObjectFetcher
from .gateway import DownloadGateway
from .status import StatusResponse
