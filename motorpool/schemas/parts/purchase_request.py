"""
Parts purchase request schemas.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import Field

from motorpool.models.base.enums import PurchaseRequestStatus
from motorpool.schemas.common.base import BaseCreateSchema, BaseFilterSchema, BaseResponseSchema

__all__ = ["PurchaseRequestCreate", "PurchaseRequestFilter", "PurchaseRequestResponse"]


class PurchaseRequestCreate(BaseCreateSchema):
    part_name: str = Field(..., min_length=2, max_length=150)
    quantity: int = Field(..., ge=1)
    estimated_cost: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)
    vendor: str = Field(..., min_length=2, max_length=150)


class PurchaseRequestFilter(BaseFilterSchema):
    """Status and an inclusive creation-time window."""

    status: Optional[PurchaseRequestStatus] = None
    from_date: Optional[datetime] = None
    to_date: Optional[datetime] = None


class PurchaseRequestResponse(BaseResponseSchema):
    part_name: str
    quantity: int
    estimated_cost: Decimal
    vendor: str
    status: PurchaseRequestStatus
    requested_by: str
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    rejected_by: Optional[str] = None
    rejected_at: Optional[datetime] = None
