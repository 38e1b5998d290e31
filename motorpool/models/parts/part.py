"""
Spare part model.
"""

from typing import Optional

from sqlalchemy import CheckConstraint, Enum, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from motorpool.models.base.base_model import BaseModel
from motorpool.models.base.enums import TrackingMode, VehicleType
from motorpool.models.base.mixins import SoftDeleteMixin

__all__ = ["Part"]


class Part(SoftDeleteMixin, BaseModel):
    """
    Spare part stocked by the garage.

    QUANTITY parts carry a stock count and no serial number.
    SERIAL_NUMBER parts are a single unit with a unique serial.
    """

    __tablename__ = "parts"

    name: Mapped[str] = mapped_column(
        String(150),
        nullable=False,
        index=True,
    )

    vehicle_type: Mapped[VehicleType] = mapped_column(
        Enum(VehicleType, name="vehicle_type"),
        nullable=False,
        index=True,
        comment="Vehicle type the part fits",
    )

    vehicle_model: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        comment="Vehicle model the part fits",
    )

    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    tracking_mode: Mapped[TrackingMode] = mapped_column(
        Enum(TrackingMode, name="tracking_mode"),
        nullable=False,
        comment="QUANTITY or SERIAL_NUMBER",
    )

    quantity: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        comment="Units in stock (always 1 for serial parts)",
    )

    serial_number: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
        unique=True,
        comment="Serial number for serial-tracked parts",
    )

    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_parts_quantity_non_negative"),
    )

    @property
    def is_serial(self) -> bool:
        return self.tracking_mode == TrackingMode.SERIAL_NUMBER

    def __repr__(self) -> str:
        return f"<Part(id={self.id}, name={self.name}, mode={self.tracking_mode}, qty={self.quantity})>"
