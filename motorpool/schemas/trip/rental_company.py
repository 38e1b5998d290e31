"""
Rental company schemas.
"""

from typing import Optional

from pydantic import Field

from motorpool.schemas.common.base import BaseCreateSchema, BaseResponseSchema

__all__ = ["RentalCompanyCreate", "RentalCompanyResponse"]


class RentalCompanyCreate(BaseCreateSchema):
    name: str = Field(..., min_length=1, max_length=150)
    phone: Optional[str] = Field(None, max_length=30)
    email: Optional[str] = Field(None, max_length=255)
    address: Optional[str] = Field(None, max_length=255)


class RentalCompanyResponse(BaseResponseSchema):
    name: str
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    is_active: bool
