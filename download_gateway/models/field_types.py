"""
Common type aliases for the download gateway.

This module provides reusable type aliases with validation constraints.
"""
from typing import Annotated, TypeAlias

from pydantic import Field


# =============================================================================
# Numeric Constraints
# =============================================================================

NonNegativeInt: TypeAlias = Annotated[int, Field(ge=0)]
PositiveInt: TypeAlias = Annotated[int, Field(ge=1)]
NonNegativeFloat: TypeAlias = Annotated[float, Field(ge=0)]


# =============================================================================
# Storage Identifiers
# =============================================================================

StoragePathStr: TypeAlias = Annotated[str, Field(max_length=1024)]
"""
Object path inside the storage bucket (e.g. "u/abc.pdf").
Emptiness is checked by the gateway so the caller gets a domain error, not a schema error.
"""

FileIdStr: TypeAlias = Annotated[
    str,
    Field(
        max_length=256,
        # Firestore document ids cannot contain '/'
        pattern=r'^[^/]*$',
    )
]
"""Metadata document id of a shared file."""
