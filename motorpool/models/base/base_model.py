"""
Base model configuration for SQLAlchemy ORM.

Provides the declarative base and the abstract base model every
motor pool entity derives from.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional, TypeVar
from uuid import uuid4

from sqlalchemy import String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from motorpool.models.base.mixins import TimestampMixin

# Type variable for model classes
ModelType = TypeVar("ModelType", bound="BaseModel")


def new_id() -> str:
    return str(uuid4())


class Base(DeclarativeBase):
    """Declarative base shared by all models."""


class BaseModel(TimestampMixin, Base):
    """
    Abstract base model with a UUID primary key and timestamps.
    """

    __abstract__ = True

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=new_id,
        nullable=False,
        comment="Primary key (UUID)",
    )

    def to_dict(self, exclude: Optional[List[str]] = None) -> Dict[str, Any]:
        """
        Convert model instance to dictionary.

        Args:
            exclude: List of field names to exclude

        Returns:
            Dictionary representation of the model
        """
        exclude = exclude or []
        result = {}

        for column in self.__table__.columns:
            if column.name in exclude:
                continue
            value = getattr(self, column.key)

            if isinstance(value, (datetime, date)):
                result[column.name] = value.isoformat()
            elif isinstance(value, Enum):
                result[column.name] = value.value
            elif isinstance(value, Decimal):
                result[column.name] = str(value)
            else:
                result[column.name] = value

        return result

    def __repr__(self) -> str:
        """String representation of model instance."""
        return f"<{self.__class__.__name__}(id={getattr(self, 'id', None)})>"
