"""
Part catalogue and part usage schemas.
"""

from typing import Optional

from pydantic import Field

from motorpool.models.base.enums import TrackingMode, VehicleType
from motorpool.schemas.common.base import (
    BaseCreateSchema,
    BaseFilterSchema,
    BaseResponseSchema,
    BaseSchema,
    BaseUpdateSchema,
)

__all__ = [
    "PartCreate",
    "PartUpdate",
    "PartFilter",
    "AssignPart",
    "PartResponse",
    "PartUsageResponse",
]


class PartCreate(BaseCreateSchema):
    """
    New catalogue part. QUANTITY parts need a stock count and no serial;
    SERIAL_NUMBER parts need a serial and a quantity of 1 if given.
    """

    name: str = Field(..., min_length=1, max_length=150)
    vehicle_type: VehicleType
    vehicle_model: str = Field(..., min_length=1, max_length=100)
    tracking_mode: TrackingMode
    quantity: Optional[int] = None
    serial_number: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)


class PartUpdate(BaseUpdateSchema):
    name: Optional[str] = Field(None, min_length=1, max_length=150)
    vehicle_model: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)
    quantity: Optional[int] = None


class PartFilter(BaseFilterSchema):
    search: Optional[str] = Field(None, max_length=100)
    vehicle_type: Optional[VehicleType] = None
    vehicle_model: Optional[str] = None
    tracking_mode: Optional[TrackingMode] = None


class AssignPart(BaseSchema):
    maintenance_request_id: str = Field(..., min_length=1)
    part_id: str = Field(..., min_length=1)
    quantity: int = Field(1, ge=1)


class PartResponse(BaseResponseSchema):
    name: str
    vehicle_type: VehicleType
    vehicle_model: str
    tracking_mode: TrackingMode
    quantity: int
    serial_number: Optional[str] = None
    description: Optional[str] = None
    is_deleted: bool


class PartUsageResponse(BaseResponseSchema):
    maintenance_request_id: str
    part_id: str
    quantity_used: int
    assigned_by: str
