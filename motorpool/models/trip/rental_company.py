"""
Rental company model.
"""

from typing import Optional

from sqlalchemy import Boolean, Index, String, text
from sqlalchemy.orm import Mapped, mapped_column

from motorpool.models.base.base_model import BaseModel

__all__ = ["RentalCompany"]

_ACTIVE = text("is_active")


class RentalCompany(BaseModel):
    """
    External company that can fulfil a rental trip assignment.
    """

    __tablename__ = "rental_companies"

    name: Mapped[str] = mapped_column(
        String(150),
        nullable=False,
        comment="Company name (unique among active companies)",
    )

    phone: Mapped[Optional[str]] = mapped_column(
        String(30),
        nullable=True,
        comment="Contact phone",
    )

    email: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        comment="Contact email",
    )

    address: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        comment="Postal address",
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        index=True,
        comment="Only active companies can take rental assignments",
    )

    __table_args__ = (
        Index(
            "uq_rental_companies_name_active",
            "name",
            unique=True,
            postgresql_where=_ACTIVE,
            sqlite_where=_ACTIVE,
        ),
    )

    def __repr__(self) -> str:
        return f"<RentalCompany(id={self.id}, name={self.name}, active={self.is_active})>"
