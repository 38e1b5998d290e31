"""
Maintenance request schemas.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import Field

from motorpool.models.base.enums import MaintenanceKind, MaintenanceStatus
from motorpool.schemas.common.base import BaseCreateSchema, BaseFilterSchema, BaseResponseSchema, BaseSchema

__all__ = [
    "MaintenanceCreate",
    "MaintenanceTriage",
    "MaintenanceComplete",
    "MaintenanceFilter",
    "MaintenanceResponse",
]


class MaintenanceCreate(BaseCreateSchema):
    vehicle_id: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1, max_length=2000)


class MaintenanceTriage(BaseSchema):
    """Triage decision. EXTERNAL work names a vendor; INTERNAL work must not."""

    kind: MaintenanceKind
    external_vendor: Optional[str] = Field(None, max_length=150)
    estimated_cost: Optional[Decimal] = Field(None, ge=0)


class MaintenanceComplete(BaseSchema):
    external_cost: Optional[Decimal] = None
    completion_notes: Optional[str] = Field(None, max_length=2000)


class MaintenanceFilter(BaseFilterSchema):
    status: Optional[MaintenanceStatus] = None
    vehicle_id: Optional[str] = None
    kind: Optional[MaintenanceKind] = None
    requested_by: Optional[str] = None


class MaintenanceResponse(BaseResponseSchema):
    vehicle_id: str
    description: str
    kind: Optional[MaintenanceKind] = None
    external_vendor: Optional[str] = None
    estimated_cost: Optional[Decimal] = None
    external_cost: Optional[Decimal] = None
    completion_notes: Optional[str] = None
    status: MaintenanceStatus
    requested_by: str
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
