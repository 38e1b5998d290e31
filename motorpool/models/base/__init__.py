"""
Base model package: declarative base, mixins and enums.
"""

from motorpool.models.base.base_model import Base, BaseModel, ModelType, new_id
from motorpool.models.base.enums import (
    ACTIVE_MAINTENANCE_STATUSES,
    ACTIVE_TRIP_STATUSES,
    CLAIM_HOLDING_TRIP_STATUSES,
    Department,
    InventoryRequestStatus,
    InventoryRequestType,
    MaintenanceKind,
    MaintenanceStatus,
    PurchaseRequestStatus,
    TrackingMode,
    TripRequestStatus,
    UserRole,
    VehicleStatus,
    VehicleType,
)
from motorpool.models.base.mixins import SoftDeleteMixin, TimestampMixin, ensure_utc, utc_now

__all__ = [
    "Base",
    "BaseModel",
    "ModelType",
    "new_id",
    "SoftDeleteMixin",
    "TimestampMixin",
    "utc_now",
    "ensure_utc",
    "VehicleStatus",
    "VehicleType",
    "TripRequestStatus",
    "MaintenanceStatus",
    "MaintenanceKind",
    "InventoryRequestType",
    "InventoryRequestStatus",
    "PurchaseRequestStatus",
    "TrackingMode",
    "Department",
    "UserRole",
    "ACTIVE_TRIP_STATUSES",
    "CLAIM_HOLDING_TRIP_STATUSES",
    "ACTIVE_MAINTENANCE_STATUSES",
]
