"""
Database enums shared by models, schemas and services.
"""

import enum


class VehicleStatus(str, enum.Enum):
    """Vehicle availability status. DELETED is terminal."""
    AVAILABLE = "AVAILABLE"
    ASSIGNED = "ASSIGNED"
    IN_TRANSIT = "IN_TRANSIT"
    UNDER_MAINTENANCE = "UNDER_MAINTENANCE"
    DELETED = "DELETED"


class VehicleType(str, enum.Enum):
    """Vehicle body type."""
    SEDAN = "SEDAN"
    SUV = "SUV"
    TRUCK = "TRUCK"


class TripRequestStatus(str, enum.Enum):
    """Trip request lifecycle status."""
    PENDING = "PENDING"
    ASSIGNED = "ASSIGNED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    IN_TRANSIT = "IN_TRANSIT"
    RETURNED = "RETURNED"
    CANCELLED = "CANCELLED"


class MaintenanceStatus(str, enum.Enum):
    """Maintenance request lifecycle status."""
    PENDING = "PENDING"
    PENDING_APPROVAL = "PENDING_APPROVAL"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"


class MaintenanceKind(str, enum.Enum):
    """Who performs the maintenance work."""
    INTERNAL = "INTERNAL"
    EXTERNAL = "EXTERNAL"


class InventoryRequestType(str, enum.Enum):
    ADD = "ADD"
    DELETE = "DELETE"


class InventoryRequestStatus(str, enum.Enum):
    PENDING_APPROVAL = "PENDING_APPROVAL"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class PurchaseRequestStatus(str, enum.Enum):
    PENDING_APPROVAL = "PENDING_APPROVAL"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class TrackingMode(str, enum.Enum):
    """How a part's stock is counted."""
    QUANTITY = "QUANTITY"
    SERIAL_NUMBER = "SERIAL_NUMBER"


class Department(str, enum.Enum):
    """Organizational departments that act on workflows."""
    ADMIN = "ADMIN"
    OPERATION = "OPERATION"
    GARAGE = "GARAGE"
    MAINTENANCE = "MAINTENANCE"


class UserRole(str, enum.Enum):
    """User role enumeration."""
    ADMIN = "ADMIN"
    EMPLOYEE = "EMPLOYEE"


# Statuses in which a workflow record still counts against its vehicle
ACTIVE_TRIP_STATUSES = (
    TripRequestStatus.PENDING,
    TripRequestStatus.ASSIGNED,
    TripRequestStatus.APPROVED,
    TripRequestStatus.IN_TRANSIT,
)

CLAIM_HOLDING_TRIP_STATUSES = (
    TripRequestStatus.ASSIGNED,
    TripRequestStatus.APPROVED,
    TripRequestStatus.IN_TRANSIT,
)

ACTIVE_MAINTENANCE_STATUSES = (
    MaintenanceStatus.PENDING,
    MaintenanceStatus.PENDING_APPROVAL,
    MaintenanceStatus.APPROVED,
    MaintenanceStatus.IN_PROGRESS,
)
