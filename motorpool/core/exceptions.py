"""
Custom Exceptions for the Motor Pool core

This module defines the exception taxonomy raised by repositories, the
vehicle registry and the workflow services. Services convert these into
ServiceResult failures at their public boundary.
"""

from typing import Any, Dict, List, Optional
from enum import Enum


class ErrorCode(str, Enum):
    """Standard error codes for the application"""
    # General errors
    INTERNAL_ERROR = "INTERNAL_ERROR"

    # Lookup and input errors
    NOT_FOUND = "NOT_FOUND"
    INVALID_INPUT = "INVALID_INPUT"

    # Workflow errors
    INVALID_TRANSITION = "INVALID_TRANSITION"
    INVALID_STATE = "INVALID_STATE"
    CONFLICT = "CONFLICT"
    NOT_AVAILABLE = "NOT_AVAILABLE"
    INSUFFICIENT_STOCK = "INSUFFICIENT_STOCK"

    # Ownership
    FORBIDDEN = "FORBIDDEN"

    # Database errors
    DATABASE_ERROR = "DATABASE_ERROR"


class BaseAppException(Exception):
    """
    Base exception class for all application exceptions.

    Provides consistent error handling across the application with
    structured error information.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: Optional[Dict[str, Any]] = None,
        status_code: int = 500
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.status_code = status_code
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary format"""
        return {
            "error": {
                "message": self.message,
                "code": self.error_code.value,
                "details": self.details,
                "type": self.__class__.__name__
            }
        }

    def __str__(self) -> str:
        return f"{self.error_code.value}: {self.message}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message='{self.message}', error_code='{self.error_code.value}')"


# ========================================
# Lookup & Input Exceptions
# ========================================

class ResourceNotFoundError(BaseAppException):
    """Exception raised when a requested resource is missing or logically absent"""

    def __init__(
        self,
        resource_type: str = "Resource",
        resource_id: Optional[Any] = None,
        message: Optional[str] = None
    ):
        if not message:
            message = f"{resource_type} not found"
            if resource_id:
                message += f" (ID: {resource_id})"

        details = {
            "resource_type": resource_type,
            "resource_id": str(resource_id) if resource_id is not None else None
        }
        super().__init__(message, ErrorCode.NOT_FOUND, details, 404)


class ValidationError(BaseAppException):
    """Exception raised for malformed input or a missing conditionally-required field"""

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        field_errors: Optional[Dict[str, List[str]]] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        details = dict(details or {})
        if field:
            details["field"] = field
        if field_errors:
            details["field_errors"] = field_errors
        super().__init__(message, ErrorCode.INVALID_INPUT, details, 422)


# ========================================
# Workflow Exceptions
# ========================================

class InvalidTransitionError(BaseAppException):
    """Exception raised when a status change is not in the entity's transition table"""

    def __init__(
        self,
        entity_type: str,
        current_status: Any,
        target_status: Any,
        entity_id: Optional[Any] = None,
    ):
        current = getattr(current_status, "value", current_status)
        target = getattr(target_status, "value", target_status)
        message = f"Cannot transition {entity_type} from {current} to {target}"
        details = {
            "entity_type": entity_type,
            "entity_id": str(entity_id) if entity_id is not None else None,
            "current_status": current,
            "target_status": target,
        }
        super().__init__(message, ErrorCode.INVALID_TRANSITION, details, 409)


class InvalidStateError(BaseAppException):
    """Exception raised when an operation is not permitted in the current status"""

    def __init__(
        self,
        message: str,
        current_status: Optional[Any] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        details = dict(details or {})
        if current_status is not None:
            details["current_status"] = getattr(current_status, "value", current_status)
        super().__init__(message, ErrorCode.INVALID_STATE, details, 409)


class ConflictError(BaseAppException):
    """Exception raised when a resource is held elsewhere or a uniqueness rule is violated"""

    def __init__(
        self,
        message: str = "Resource conflict",
        details: Optional[Dict[str, Any]] = None,
        error_code: ErrorCode = ErrorCode.CONFLICT,
    ):
        super().__init__(message, error_code, details, 409)


class VehicleNotAvailableError(ConflictError):
    """Exception raised when a vehicle claim finds the vehicle not AVAILABLE"""

    def __init__(self, vehicle_id: Any, current_status: Any):
        current = getattr(current_status, "value", current_status)
        super().__init__(
            message=f"Vehicle is not available. Current status: {current}",
            details={"vehicle_id": str(vehicle_id), "current_status": current},
            error_code=ErrorCode.NOT_AVAILABLE,
        )
        self.vehicle_id = vehicle_id
        self.current_status = current_status


class InsufficientStockError(BaseAppException):
    """Exception raised when a quantity debit would take stock below zero"""

    def __init__(self, part_id: Any, requested: int, available: Optional[int] = None):
        details = {"part_id": str(part_id), "requested": requested, "available": available}
        super().__init__(
            "Insufficient quantity in stock",
            ErrorCode.INSUFFICIENT_STOCK,
            details,
            409,
        )


class ForbiddenError(BaseAppException):
    """Exception raised when the actor is not the party allowed to act"""

    def __init__(
        self,
        message: str = "Action not permitted for this user",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, ErrorCode.FORBIDDEN, details, 403)


# ========================================
# Database Exceptions
# ========================================

class DatabaseError(BaseAppException):
    """Exception raised for database-related errors"""

    def __init__(
        self,
        message: str = "Database operation failed",
        details: Optional[Dict[str, Any]] = None,
        error_code: ErrorCode = ErrorCode.DATABASE_ERROR,
    ):
        super().__init__(message, error_code, details, 500)


class RepositoryError(DatabaseError):
    """Exception raised when a repository operation fails"""


class DuplicateEntryError(ConflictError):
    """Exception raised when a unique constraint rejects a write"""

    def __init__(
        self,
        message: str = "Duplicate entry",
        field: Optional[str] = None,
        value: Optional[Any] = None,
    ):
        details = {}
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = value
        super().__init__(message, details)
