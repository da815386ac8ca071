"""
File descriptor: the metadata record that describes a stored file.
"""
from typing import Any

from loguru import logger as l
from pydantic import Field

from .base import FrozenModelBase
from .exceptions import IntegrityError
from .passwords import hash_share_password, is_share_password_hash

DEFAULT_DISPLAY_NAME = "download"


def _typed_value(fields: dict[str, Any], name: str, value_type: str) -> Any:
    """Reads a Firestore typed value such as ``{"stringValue": "x"}``; None when absent."""
    entry = fields.get(name)
    if not isinstance(entry, dict):
        return None
    return entry.get(value_type)


class FileDescriptor(FrozenModelBase):
    """Transient, per-request copy of a file's metadata."""
    id: str
    storage_path: str
    display_name: str = DEFAULT_DISPLAY_NAME
    shared: bool = False
    share_password_hash: str | None = Field(default=None, repr=False)

    @classmethod
    def from_document(cls, document_id: str, fields: dict[str, Any]) -> "FileDescriptor":
        """
        Builds a descriptor from raw document fields.

        Every field is optional at the source; only a missing storage path or a
        password hash in an unknown format makes the record unusable.
        """
        storage_path = _typed_value(fields, "storagePath", "stringValue")
        if not storage_path:
            raise IntegrityError(document_id, "storage path is missing")

        password_hash = _typed_value(fields, "sharePasswordHash", "stringValue") or None
        if password_hash is not None:
            if not is_share_password_hash(password_hash):
                raise IntegrityError(document_id, "share password hash is unreadable")
        else:
            legacy_password = _typed_value(fields, "sharePassword", "stringValue")
            if legacy_password:
                l.warning(
                    f"Descriptor {document_id} stores a plaintext share password; "
                    f"migrate it to sharePasswordHash"
                )
                # Only lives for this request, so the cheapest cost factor is enough
                try:
                    password_hash = hash_share_password(legacy_password, rounds=4)
                except ValueError as e:
                    raise IntegrityError(document_id, "plaintext share password is too long") from e

        return cls(
            id=document_id,
            storage_path=storage_path,
            display_name=_typed_value(fields, "name", "stringValue") or DEFAULT_DISPLAY_NAME,
            shared=bool(_typed_value(fields, "shared", "booleanValue")),
            share_password_hash=password_hash,
        )
