"""
Workflow services.

Each service owns one aggregate and shares the caller's session; the
VehicleRegistry is the only writer of vehicle status.
"""

from motorpool.services.base import BaseService, ServiceError, ServiceResult, TransitionTable
from motorpool.services.inventory import INVENTORY_TRANSITIONS, InventoryWorkflow
from motorpool.services.maintenance import MAINTENANCE_TRANSITIONS, MaintenanceWorkflow
from motorpool.services.parts import PURCHASE_TRANSITIONS, PartsLedger, PurchaseRequestWorkflow
from motorpool.services.rental import RentalCompanyService
from motorpool.services.trip import TRIP_TRANSITIONS, TripRequestWorkflow
from motorpool.services.vehicle import VehicleRegistry

__all__ = [
    "BaseService",
    "INVENTORY_TRANSITIONS",
    "InventoryWorkflow",
    "MAINTENANCE_TRANSITIONS",
    "MaintenanceWorkflow",
    "PURCHASE_TRANSITIONS",
    "PartsLedger",
    "PurchaseRequestWorkflow",
    "RentalCompanyService",
    "ServiceError",
    "ServiceResult",
    "TRIP_TRANSITIONS",
    "TransitionTable",
    "TripRequestWorkflow",
    "VehicleRegistry",
]
