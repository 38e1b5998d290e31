"""
Outcome type returned by the workflow services.

A workflow call either succeeds with data or fails with a ServiceError
whose code is one of the ErrorCode taxonomy values; callers branch on
``result.error_code`` instead of catching exceptions.
"""

from dataclasses import dataclass, field as dataclass_field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Generic, Optional, TypeVar

from motorpool.core.exceptions import BaseAppException, ErrorCode

TData = TypeVar("TData")


class ErrorSeverity(str, Enum):
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


@dataclass
class ServiceError:
    """
    Failure description.

    Attributes:
        code: Taxonomy code (NOT_FOUND, CONFLICT, INVALID_TRANSITION, ...)
        message: Human-readable reason
        severity: WARNING for rejected requests, CRITICAL for faults
        details: Current status, attempted target, conflicting ids
        field: Offending input field, when there is one
    """

    code: ErrorCode
    message: str
    severity: ErrorSeverity = ErrorSeverity.ERROR
    details: Dict[str, Any] = dataclass_field(default_factory=dict)
    field: Optional[str] = None
    occurred_at: datetime = dataclass_field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def from_app_exception(
        cls,
        exception: BaseAppException,
        severity: ErrorSeverity = ErrorSeverity.WARNING,
    ) -> "ServiceError":
        details = dict(exception.details or {})
        return cls(
            code=exception.error_code,
            message=exception.message,
            severity=severity,
            details=details,
            field=details.get("field"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code.value,
            "message": self.message,
            "severity": self.severity.value,
            "details": self.details,
            "field": self.field,
            "occurred_at": self.occurred_at.isoformat(),
        }


@dataclass
class ServiceResult(Generic[TData]):
    """
    Success-or-failure wrapper.

    ``bool(result)`` is True on success. ``unwrap()`` returns the data or
    raises ValueError, which keeps call chains short in scripts and tests.
    """

    is_success: bool
    data: Optional[TData] = None
    error: Optional[ServiceError] = None
    message: Optional[str] = None
    metadata: Dict[str, Any] = dataclass_field(default_factory=dict)

    @classmethod
    def success(
        cls,
        data: Optional[TData] = None,
        message: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> "ServiceResult[TData]":
        return cls(is_success=True, data=data, message=message, metadata=metadata or {})

    @classmethod
    def failure(cls, error: ServiceError) -> "ServiceResult[TData]":
        return cls(is_success=False, error=error, message=error.message)

    @property
    def error_code(self) -> Optional[ErrorCode]:
        return self.error.code if self.error else None

    def unwrap(self) -> TData:
        if not self.is_success:
            reason = f"{self.error.code.value}: {self.error.message}" if self.error else "unknown error"
            raise ValueError(f"Cannot unwrap failed result ({reason})")
        return self.data

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "is_success": self.is_success,
            "message": self.message,
            "metadata": self.metadata,
        }
        if self.is_success:
            payload["data"] = self.data.to_dict() if hasattr(self.data, "to_dict") else self.data
        else:
            payload["error"] = self.error.to_dict() if self.error else None
        return payload

    def __bool__(self) -> bool:
        return self.is_success

    def __repr__(self) -> str:
        if self.error:
            return f"ServiceResult(failure {self.error.code.value}: {self.message})"
        return f"ServiceResult(success{': ' + self.message if self.message else ''})"


__all__ = ["ErrorCode", "ErrorSeverity", "ServiceError", "ServiceResult"]
