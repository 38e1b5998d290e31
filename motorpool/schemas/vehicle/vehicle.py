"""
Vehicle schemas.
"""

from datetime import date
from typing import ClassVar, Optional, Tuple

from pydantic import ConfigDict, Field

from motorpool.models.base.enums import VehicleStatus, VehicleType
from motorpool.schemas.common.base import (
    BaseCreateSchema,
    BaseFilterSchema,
    BaseResponseSchema,
    BaseUpdateSchema,
)

__all__ = ["VehiclePayload", "VehicleUpdate", "VehicleFilter", "VehicleResponse"]


class VehiclePayload(BaseCreateSchema):
    """Attributes of a vehicle staged for addition to the pool."""

    model: str = Field(..., min_length=1, max_length=100)
    vehicle_type: VehicleType
    year: int = Field(..., ge=1900, le=2100)
    color: Optional[str] = Field(None, max_length=50)
    license_plate: str = Field(..., min_length=1, max_length=20)
    vin: str = Field(..., min_length=1, max_length=17)
    mileage: int = Field(0, ge=0)
    maintenance_interval_months: Optional[int] = Field(None, ge=1, le=120)
    next_maintenance_date: Optional[date] = None
    warranty_expiry_date: Optional[date] = None


class VehicleUpdate(BaseUpdateSchema):
    """
    Attribute edit. There is no status field and unknown fields are
    rejected, so a status change cannot slip through.
    """

    model_config = ConfigDict(extra="forbid")

    REQUIRED_FIELDS: ClassVar[Tuple[str, ...]] = (
        "model", "vehicle_type", "year", "license_plate", "vin", "mileage",
    )

    model: Optional[str] = Field(None, min_length=1, max_length=100)
    vehicle_type: Optional[VehicleType] = None
    year: Optional[int] = Field(None, ge=1900, le=2100)
    color: Optional[str] = Field(None, max_length=50)
    license_plate: Optional[str] = Field(None, min_length=1, max_length=20)
    vin: Optional[str] = Field(None, min_length=1, max_length=17)
    mileage: Optional[int] = Field(None, ge=0)
    maintenance_interval_months: Optional[int] = Field(None, ge=1, le=120)
    next_maintenance_date: Optional[date] = None
    warranty_expiry_date: Optional[date] = None


class VehicleFilter(BaseFilterSchema):
    status: Optional[VehicleStatus] = None
    vehicle_type: Optional[VehicleType] = None
    search: Optional[str] = Field(None, max_length=100, description="Model, plate or VIN fragment")
    include_deleted: bool = False


class VehicleResponse(BaseResponseSchema):
    model: str
    vehicle_type: VehicleType
    year: int
    color: Optional[str] = None
    license_plate: str
    vin: str
    mileage: int
    status: VehicleStatus
    maintenance_interval_months: Optional[int] = None
    next_maintenance_date: Optional[date] = None
    last_maintenance_date: Optional[date] = None
    warranty_expiry_date: Optional[date] = None
