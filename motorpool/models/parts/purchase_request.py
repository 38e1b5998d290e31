"""
Parts purchase request model.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import CheckConstraint, DateTime, Enum, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from motorpool.models.base.base_model import BaseModel
from motorpool.models.base.enums import PurchaseRequestStatus

__all__ = ["PurchaseRequest"]


class PurchaseRequest(BaseModel):
    """
    Request to buy parts from a vendor, approved or rejected by an admin.

    The part is named free-form; an approved purchase does not touch the
    catalogue until the stock arrives and is adjusted in.
    """

    __tablename__ = "purchase_requests"

    part_name: Mapped[str] = mapped_column(String(150), nullable=False)

    quantity: Mapped[int] = mapped_column(Integer, nullable=False)

    estimated_cost: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        comment="Estimated total cost of the purchase",
    )

    vendor: Mapped[str] = mapped_column(String(150), nullable=False)

    status: Mapped[PurchaseRequestStatus] = mapped_column(
        Enum(PurchaseRequestStatus, name="purchase_request_status"),
        nullable=False,
        default=PurchaseRequestStatus.PENDING_APPROVAL,
        index=True,
    )

    requested_by: Mapped[str] = mapped_column(String(36), nullable=False, index=True)

    approved_by: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    approved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    rejected_by: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    rejected_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_purchase_requests_quantity_positive"),
        CheckConstraint("estimated_cost >= 0", name="ck_purchase_requests_cost_non_negative"),
    )

    def __repr__(self) -> str:
        return f"<PurchaseRequest(id={self.id}, part={self.part_name}, qty={self.quantity}, status={self.status})>"
