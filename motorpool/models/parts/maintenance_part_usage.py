"""
Part usage ledger entries recorded against maintenance work.
"""

from typing import TYPE_CHECKING, Optional

from sqlalchemy import CheckConstraint, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from motorpool.models.base.base_model import BaseModel

if TYPE_CHECKING:
    from motorpool.models.maintenance.maintenance_request import MaintenanceRequest
    from motorpool.models.parts.part import Part

__all__ = ["MaintenancePartUsage"]


class MaintenancePartUsage(BaseModel):
    """
    One part consumed by one in-progress maintenance request.

    serial_part_id mirrors part_id for serial-tracked parts only; its
    unique constraint keeps a serial unit on at most one usage record.
    """

    __tablename__ = "maintenance_part_usages"

    maintenance_request_id: Mapped[str] = mapped_column(
        ForeignKey("maintenance_requests.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    part_id: Mapped[str] = mapped_column(
        ForeignKey("parts.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    serial_part_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        nullable=True,
        unique=True,
        comment="Set for serial-tracked parts only",
    )

    quantity_used: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=1,
    )

    assigned_by: Mapped[str] = mapped_column(
        String(36),
        nullable=False,
        comment="User who recorded the usage",
    )

    maintenance_request: Mapped["MaintenanceRequest"] = relationship(
        "MaintenanceRequest",
        back_populates="part_usages",
    )
    part: Mapped["Part"] = relationship("Part", lazy="joined")

    __table_args__ = (
        CheckConstraint("quantity_used > 0", name="ck_maintenance_part_usages_quantity_positive"),
    )

    def __repr__(self) -> str:
        return (
            f"<MaintenancePartUsage(id={self.id}, part_id={self.part_id}, "
            f"maintenance_request_id={self.maintenance_request_id}, qty={self.quantity_used})>"
        )
