"""
Shared pydantic bases for the motor pool payload and read models.

Input payloads strip surrounding whitespace and re-validate on attribute
assignment; read models are built straight from ORM rows.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

__all__ = [
    "BaseSchema",
    "BaseCreateSchema",
    "BaseUpdateSchema",
    "BaseFilterSchema",
    "BaseResponseSchema",
]


class BaseSchema(BaseModel):
    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        use_enum_values=False,
        str_strip_whitespace=True,
        validate_assignment=True,
    )


class BaseCreateSchema(BaseSchema):
    """Payload that creates a record or files a request."""


class BaseUpdateSchema(BaseSchema):
    """
    Partial change set. Every field is Optional and only the ones the
    caller supplied (``model_dump(exclude_unset=True)``) are written.
    """


class BaseFilterSchema(BaseSchema):
    """Listing window shared by the query operations."""

    skip: int = Field(default=0, ge=0)
    limit: int = Field(default=100, ge=1, le=1000)


class BaseResponseSchema(BaseSchema):
    """Persisted record as returned to callers."""

    id: str
    created_at: datetime
    updated_at: datetime
