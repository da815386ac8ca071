"""
Base classes for models.

Request-scoped values (descriptors, download requests, fetched objects) are
frozen so nothing can mutate them while a request is in flight.
"""
from pydantic import BaseModel, ConfigDict


class ModelBase(BaseModel):
    """
    Base class for HTTP request/response models.

    Features:
    - use_attribute_docstrings: Uses field docstrings for schema descriptions
    - validate_by_name: Accepts both the camelCase alias and the field name
    - extra='forbid': Rejects unknown fields in requests
    """
    model_config = ConfigDict(
        use_attribute_docstrings=True,
        validate_by_name=True,
        extra='forbid',
    )


class FrozenModelBase(BaseModel):
    """Base class for immutable, request-scoped domain values."""
    model_config = ConfigDict(
        use_attribute_docstrings=True,
        validate_by_name=True,
        frozen=True,
    )
