"""
Trip request schemas.

Field constraints live here; time-window and assignment rules are
enforced by the trip workflow.
"""

from datetime import datetime
from typing import Optional

from pydantic import Field

from motorpool.models.base.enums import TripRequestStatus, VehicleType
from motorpool.schemas.common.base import (
    BaseCreateSchema,
    BaseFilterSchema,
    BaseResponseSchema,
    BaseSchema,
    BaseUpdateSchema,
)

__all__ = [
    "TripRequestCreate",
    "TripRequestUpdate",
    "AssignVehicle",
    "ReturnVehicle",
    "TripRequestFilter",
    "TripRequestResponse",
]


class TripRequestCreate(BaseCreateSchema):
    requested_vehicle_type: VehicleType = Field(..., description="Vehicle body type needed")
    vehicle_id: Optional[str] = Field(None, description="Specific vehicle, if any")
    departure_location: str = Field(..., min_length=1, max_length=255)
    destination: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=2000)
    departure_time: datetime
    return_time: datetime


class TripRequestUpdate(BaseUpdateSchema):
    """
    Changes to a pending request. Setting vehicle_id to None clears the
    named vehicle; leaving it unset keeps it.
    """

    requested_vehicle_type: Optional[VehicleType] = None
    vehicle_id: Optional[str] = None
    departure_location: Optional[str] = Field(None, min_length=1, max_length=255)
    destination: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=2000)
    departure_time: Optional[datetime] = None
    return_time: Optional[datetime] = None


class AssignVehicle(BaseSchema):
    """Assignment target: a pool vehicle or, for rentals, a rental company."""

    is_rental: bool = False
    vehicle_id: Optional[str] = None
    rental_company_id: Optional[str] = None


class ReturnVehicle(BaseSchema):
    notes: Optional[str] = Field(None, max_length=2000, description="Vehicle condition on return")
    mileage: Optional[int] = Field(None, description="Odometer reading on return")


class TripRequestFilter(BaseFilterSchema):
    status: Optional[TripRequestStatus] = None
    vehicle_type: Optional[VehicleType] = None
    requester_id: Optional[str] = None
    vehicle_id: Optional[str] = None
    from_date: Optional[datetime] = None
    to_date: Optional[datetime] = None


class TripRequestResponse(BaseResponseSchema):
    requested_vehicle_type: VehicleType
    vehicle_id: Optional[str] = None
    rental_company_id: Optional[str] = None
    is_rental: bool
    departure_location: str
    destination: str
    description: Optional[str] = None
    departure_time: datetime
    return_time: datetime
    status: TripRequestStatus
    requester_id: str
    assigned_by: Optional[str] = None
    approved_by: Optional[str] = None
    rejected_by: Optional[str] = None
    cancelled_by: Optional[str] = None
    return_notes: Optional[str] = None
    return_mileage: Optional[int] = None
