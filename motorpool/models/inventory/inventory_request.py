"""
Inventory request model: staged additions to and removals from the fleet.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import JSON, DateTime, Enum, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from motorpool.models.base.base_model import BaseModel
from motorpool.models.base.enums import InventoryRequestStatus, InventoryRequestType

__all__ = ["InventoryRequest"]


class InventoryRequest(BaseModel):
    """
    Request to add a vehicle to the pool or remove one from it.

    ADD requests stage the vehicle payload as JSON and denormalize its
    plate and VIN for duplicate checks. DELETE requests reference the
    vehicle. An approved ADD records the created vehicle in vehicle_id.
    """

    __tablename__ = "inventory_requests"

    request_type: Mapped[InventoryRequestType] = mapped_column(
        Enum(InventoryRequestType, name="inventory_request_type"),
        nullable=False,
        index=True,
        comment="ADD or DELETE",
    )

    status: Mapped[InventoryRequestStatus] = mapped_column(
        Enum(InventoryRequestStatus, name="inventory_request_status"),
        nullable=False,
        default=InventoryRequestStatus.PENDING_APPROVAL,
        index=True,
    )

    vehicle_payload: Mapped[Optional[Dict[str, Any]]] = mapped_column(
        JSON,
        nullable=True,
        comment="Staged vehicle attributes for ADD",
    )

    license_plate: Mapped[Optional[str]] = mapped_column(
        String(20),
        nullable=True,
        index=True,
        comment="Staged plate for ADD",
    )

    vin: Mapped[Optional[str]] = mapped_column(
        String(17),
        nullable=True,
        index=True,
        comment="Staged VIN for ADD",
    )

    vehicle_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("vehicles.id", ondelete="RESTRICT"),
        nullable=True,
        index=True,
        comment="DELETE target, or vehicle created by an approved ADD",
    )

    reason: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        comment="Why the change is requested",
    )

    requested_by: Mapped[str] = mapped_column(String(36), nullable=False, index=True)

    approved_by: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    approved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    rejected_by: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    rejected_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("ix_inventory_requests_type_status", "request_type", "status"),
    )

    def __repr__(self) -> str:
        return f"<InventoryRequest(id={self.id}, type={self.request_type}, status={self.status})>"
