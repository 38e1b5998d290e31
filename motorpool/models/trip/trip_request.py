"""
Trip request model.

A trip request moves through PENDING, ASSIGNED, APPROVED, IN_TRANSIT and
RETURNED, or ends early as REJECTED or CANCELLED. An assigned request
references either a pool vehicle or a rental company, never both.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, CheckConstraint, DateTime, Enum, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from motorpool.models.base.base_model import BaseModel
from motorpool.models.base.enums import CLAIM_HOLDING_TRIP_STATUSES, TripRequestStatus, VehicleType

if TYPE_CHECKING:
    from motorpool.models.trip.rental_company import RentalCompany
    from motorpool.models.vehicle.vehicle import Vehicle

__all__ = ["TripRequest"]


class TripRequest(BaseModel):
    """
    Employee request for a vehicle over a time window.

    Attributes:
        requested_vehicle_type: Body type the requester asked for
        vehicle_id: Pool vehicle named at creation or assigned
        rental_company_id: Rental company fulfilling a rental assignment
        is_rental: Whether the assignment is a rental
        departure_location: Where the trip starts
        destination: Where the trip goes
        description: Purpose of the trip
        departure_time: Start of the trip window
        return_time: End of the trip window
        status: Lifecycle status
        requester_id: User who created the request
        assigned_by/approved_by/rejected_by/cancelled_by: Acting users
        return_notes: Condition notes recorded on return
        return_mileage: Odometer reading recorded on return
    """

    __tablename__ = "trip_requests"

    requested_vehicle_type: Mapped[VehicleType] = mapped_column(
        Enum(VehicleType, name="vehicle_type"),
        nullable=False,
        comment="Requested vehicle body type",
    )

    vehicle_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("vehicles.id", ondelete="RESTRICT"),
        nullable=True,
        index=True,
        comment="Specific pool vehicle requested or assigned",
    )

    rental_company_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("rental_companies.id", ondelete="RESTRICT"),
        nullable=True,
        index=True,
        comment="Rental company fulfilling the request",
    )

    is_rental: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        comment="Whether the request is fulfilled by a rental",
    )

    # Trip details
    departure_location: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Departure location",
    )

    destination: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Destination",
    )

    description: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        comment="Trip purpose",
    )

    departure_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
        comment="Planned departure",
    )

    return_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        comment="Planned return",
    )

    # Status
    status: Mapped[TripRequestStatus] = mapped_column(
        Enum(TripRequestStatus, name="trip_request_status"),
        nullable=False,
        default=TripRequestStatus.PENDING,
        index=True,
        comment="Current request status",
    )

    requester_id: Mapped[str] = mapped_column(
        String(36),
        nullable=False,
        index=True,
        comment="User who created the request",
    )

    # Assignment
    assigned_by: Mapped[Optional[str]] = mapped_column(
        String(36),
        nullable=True,
        comment="Garage user who assigned the vehicle",
    )

    assigned_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # Approval / rejection
    approved_by: Mapped[Optional[str]] = mapped_column(
        String(36),
        nullable=True,
        comment="Admin who approved the assignment",
    )

    approved_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    rejected_by: Mapped[Optional[str]] = mapped_column(
        String(36),
        nullable=True,
        comment="Admin who rejected the assignment",
    )

    rejected_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # Cancellation
    cancelled_by: Mapped[Optional[str]] = mapped_column(
        String(36),
        nullable=True,
    )

    cancelled_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # Trip execution
    in_transit_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        comment="When the requester picked up the vehicle",
    )

    returned_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    returned_by: Mapped[Optional[str]] = mapped_column(
        String(36),
        nullable=True,
        comment="User who confirmed the return",
    )

    return_notes: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        comment="Vehicle condition on return",
    )

    return_mileage: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        comment="Odometer reading on return",
    )

    # Relationships
    vehicle: Mapped[Optional["Vehicle"]] = relationship("Vehicle", lazy="joined")
    rental_company: Mapped[Optional["RentalCompany"]] = relationship("RentalCompany", lazy="joined")

    __table_args__ = (
        CheckConstraint("departure_time < return_time", name="ck_trip_requests_window"),
        CheckConstraint(
            "NOT (vehicle_id IS NOT NULL AND rental_company_id IS NOT NULL)",
            name="ck_trip_requests_single_target",
        ),
        Index("ix_trip_requests_vehicle_status", "vehicle_id", "status"),
    )

    @property
    def holds_vehicle_claim(self) -> bool:
        """Whether this request currently owns its vehicle's claim."""
        return (
            not self.is_rental
            and self.vehicle_id is not None
            and self.status in CLAIM_HOLDING_TRIP_STATUSES
        )

    def __repr__(self) -> str:
        return f"<TripRequest(id={self.id}, status={self.status}, vehicle_id={self.vehicle_id})>"
