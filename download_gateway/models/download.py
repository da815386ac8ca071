"""
Request-scoped download values and the HTTP-shaped result of a download.
"""
import re
from enum import StrEnum
from urllib.parse import quote

from pydantic import ConfigDict, Field, model_validator

from .base import FrozenModelBase, ModelBase
from .field_types import NonNegativeInt, StoragePathStr

DEFAULT_CONTENT_TYPE = "application/octet-stream"
NO_CACHE_HEADERS: dict[str, str] = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}


class DownloadMode(StrEnum):
    DIRECT = "direct"
    SHARED = "shared"


class DownloadRequest(FrozenModelBase):
    """One inbound download call. Carries a storage path (direct) or a file id (shared)."""
    mode: DownloadMode
    storage_path: str | None = None
    file_id: str | None = None
    supplied_password: str | None = Field(default=None, repr=False)

    @model_validator(mode='after')
    def check_reference(self) -> "DownloadRequest":
        if self.mode is DownloadMode.DIRECT and self.file_id is not None:
            raise ValueError("Direct downloads are addressed by storage path")
        if self.mode is DownloadMode.SHARED and self.storage_path is not None:
            raise ValueError("Shared downloads are addressed by file id")
        return self


class FetchedObject(FrozenModelBase):
    """Bytes of a stored object plus the headers reported by the transfer endpoint."""
    content: bytes = Field(repr=False)
    content_type: str = DEFAULT_CONTENT_TYPE
    content_length: NonNegativeInt | None = None


class DownloadResponse(FrozenModelBase):
    """Status, headers and body ready to hand to the web framework."""
    status_code: int = 200
    headers: dict[str, str]
    body: bytes = Field(repr=False)
    media_type: str = DEFAULT_CONTENT_TYPE


_CONTROL_CHARACTERS = re.compile(r"[\x00-\x1f\x7f]")


def content_disposition(filename: str | None = None) -> str:
    """
    Builds an ``attachment`` Content-Disposition value.

    Control characters are dropped from the name, since they are illegal in a
    header value. Non-ASCII names get an RFC 5987 ``filename*`` parameter next
    to an ASCII fallback.
    """
    filename = _CONTROL_CHARACTERS.sub("", filename or "")
    if not filename:
        return "attachment"
    escaped = filename.replace("\\", "\\\\").replace('"', '\\"')
    if escaped.isascii():
        return f'attachment; filename="{escaped}"'
    fallback = escaped.encode("ascii", "replace").decode("ascii")
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename, safe='')}"


# =============================================================================
# HTTP Request Models
# =============================================================================

class DirectDownloadBody(ModelBase):
    # Only storagePath is read; other keys are dropped
    model_config = ConfigDict(extra="ignore")

    storage_path: StoragePathStr = Field(default="", alias="storagePath")
    """Object path inside the storage bucket"""


class ErrorBody(ModelBase):
    """Error response payload."""
    error: str
