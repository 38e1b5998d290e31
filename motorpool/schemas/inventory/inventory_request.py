"""
Inventory request schemas.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import Field

from motorpool.models.base.enums import InventoryRequestStatus, InventoryRequestType
from motorpool.schemas.common.base import BaseCreateSchema, BaseResponseSchema

__all__ = ["InventoryDeleteCreate", "InventoryRequestResponse"]


class InventoryDeleteCreate(BaseCreateSchema):
    vehicle_id: str = Field(..., min_length=1)
    reason: Optional[str] = Field(None, max_length=1000)


class InventoryRequestResponse(BaseResponseSchema):
    request_type: InventoryRequestType
    status: InventoryRequestStatus
    vehicle_payload: Optional[Dict[str, Any]] = None
    license_plate: Optional[str] = None
    vin: Optional[str] = None
    vehicle_id: Optional[str] = None
    reason: Optional[str] = None
    requested_by: str
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    rejected_by: Optional[str] = None
    rejected_at: Optional[datetime] = None
