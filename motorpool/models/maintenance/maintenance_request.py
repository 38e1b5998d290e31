"""
Maintenance request model.

Lifecycle: PENDING -> PENDING_APPROVAL -> APPROVED -> IN_PROGRESS -> COMPLETED,
with REJECTED reachable from PENDING_APPROVAL.
"""

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import CheckConstraint, DateTime, Enum, ForeignKey, Index, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from motorpool.models.base.base_model import BaseModel
from motorpool.models.base.enums import MaintenanceKind, MaintenanceStatus

if TYPE_CHECKING:
    from motorpool.models.parts.maintenance_part_usage import MaintenancePartUsage
    from motorpool.models.vehicle.vehicle import Vehicle

__all__ = ["MaintenanceRequest"]


class MaintenanceRequest(BaseModel):
    """
    Maintenance work on one vehicle.

    Attributes:
        vehicle_id: Vehicle being serviced
        description: Reported problem
        kind: INTERNAL or EXTERNAL, set during triage
        external_vendor: Vendor performing EXTERNAL work
        estimated_cost: Triage estimate
        external_cost: Final vendor cost for EXTERNAL work
        completion_notes: Notes recorded on completion
        status: Lifecycle status
    """

    __tablename__ = "maintenance_requests"

    vehicle_id: Mapped[str] = mapped_column(
        ForeignKey("vehicles.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
        comment="Vehicle being serviced",
    )

    description: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Reported problem",
    )

    # Triage
    kind: Mapped[Optional[MaintenanceKind]] = mapped_column(
        Enum(MaintenanceKind, name="maintenance_kind"),
        nullable=True,
        comment="Internal or external work",
    )

    external_vendor: Mapped[Optional[str]] = mapped_column(
        String(150),
        nullable=True,
        comment="Vendor for external work",
    )

    estimated_cost: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(10, 2),
        nullable=True,
        comment="Estimated cost from triage",
    )

    external_cost: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(10, 2),
        nullable=True,
        comment="Final vendor cost",
    )

    completion_notes: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )

    status: Mapped[MaintenanceStatus] = mapped_column(
        Enum(MaintenanceStatus, name="maintenance_status"),
        nullable=False,
        default=MaintenanceStatus.PENDING,
        index=True,
        comment="Current maintenance status",
    )

    # Actors
    requested_by: Mapped[str] = mapped_column(
        String(36),
        nullable=False,
        index=True,
        comment="User who reported the problem",
    )

    triaged_by: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    triaged_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    approved_by: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    approved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    rejected_by: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    rejected_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    started_by: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    started_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        comment="When work began",
    )

    completed_by: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        comment="When work finished",
    )

    # Relationships
    vehicle: Mapped["Vehicle"] = relationship("Vehicle", lazy="joined")
    part_usages: Mapped[List["MaintenancePartUsage"]] = relationship(
        "MaintenancePartUsage",
        back_populates="maintenance_request",
        lazy="selectin",
    )

    __table_args__ = (
        CheckConstraint(
            "estimated_cost IS NULL OR estimated_cost >= 0",
            name="ck_maintenance_requests_estimated_cost",
        ),
        CheckConstraint(
            "external_cost IS NULL OR external_cost >= 0",
            name="ck_maintenance_requests_external_cost",
        ),
        Index("ix_maintenance_requests_vehicle_status", "vehicle_id", "status"),
    )

    def __repr__(self) -> str:
        return f"<MaintenanceRequest(id={self.id}, status={self.status}, vehicle_id={self.vehicle_id})>"
