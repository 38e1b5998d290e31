"""
Vehicle model: the shared resource contended by the trip and
maintenance workflows.

Status is mutated only through the vehicle registry service.
"""

from datetime import date
from typing import Optional

from sqlalchemy import CheckConstraint, Date, Enum, Index, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column

from motorpool.models.base.base_model import BaseModel
from motorpool.models.base.enums import VehicleStatus, VehicleType

__all__ = ["Vehicle"]

_NOT_DELETED = text("status <> 'DELETED'")


class Vehicle(BaseModel):
    """
    Pool vehicle.

    Attributes:
        model: Make/model description
        vehicle_type: Body type (sedan, SUV, truck)
        year: Model year
        color: Exterior color
        license_plate: Plate, unique among non-deleted vehicles
        vin: Vehicle identification number, unique among non-deleted vehicles
        mileage: Last recorded odometer reading
        status: Availability status, DELETED is terminal
        maintenance_interval_months: Months between scheduled services
        next_maintenance_date: Next scheduled service date
        last_maintenance_date: Date the last maintenance completed
        warranty_expiry_date: Warranty end date
    """

    __tablename__ = "vehicles"

    model: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        comment="Vehicle make/model",
    )

    vehicle_type: Mapped[VehicleType] = mapped_column(
        Enum(VehicleType, name="vehicle_type"),
        nullable=False,
        index=True,
        comment="Vehicle body type",
    )

    year: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="Model year",
    )

    color: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
        comment="Exterior color",
    )

    license_plate: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        comment="License plate (unique among non-deleted vehicles)",
    )

    vin: Mapped[str] = mapped_column(
        String(17),
        nullable=False,
        comment="VIN (unique among non-deleted vehicles)",
    )

    mileage: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        comment="Last recorded odometer reading",
    )

    status: Mapped[VehicleStatus] = mapped_column(
        Enum(VehicleStatus, name="vehicle_status"),
        nullable=False,
        default=VehicleStatus.AVAILABLE,
        index=True,
        comment="Availability status",
    )

    # Maintenance schedule
    maintenance_interval_months: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        comment="Months between scheduled maintenance",
    )

    next_maintenance_date: Mapped[Optional[date]] = mapped_column(
        Date,
        nullable=True,
        index=True,
        comment="Next scheduled maintenance date",
    )

    last_maintenance_date: Mapped[Optional[date]] = mapped_column(
        Date,
        nullable=True,
        comment="Date of the last completed maintenance",
    )

    warranty_expiry_date: Mapped[Optional[date]] = mapped_column(
        Date,
        nullable=True,
        index=True,
        comment="Warranty expiry date",
    )

    __table_args__ = (
        Index(
            "uq_vehicles_license_plate_active",
            "license_plate",
            unique=True,
            postgresql_where=_NOT_DELETED,
            sqlite_where=_NOT_DELETED,
        ),
        Index(
            "uq_vehicles_vin_active",
            "vin",
            unique=True,
            postgresql_where=_NOT_DELETED,
            sqlite_where=_NOT_DELETED,
        ),
        CheckConstraint("mileage >= 0", name="ck_vehicles_mileage_non_negative"),
        CheckConstraint(
            "maintenance_interval_months IS NULL OR maintenance_interval_months > 0",
            name="ck_vehicles_maintenance_interval_positive",
        ),
    )

    @property
    def is_deleted(self) -> bool:
        return self.status == VehicleStatus.DELETED

    @property
    def is_available(self) -> bool:
        return self.status == VehicleStatus.AVAILABLE

    def __repr__(self) -> str:
        return f"<Vehicle(id={self.id}, plate={self.license_plate}, status={self.status})>"
