"""
Pydantic schemas for workflow inputs and read models.
"""

from motorpool.schemas.common import ActorContext, BaseSchema
from motorpool.schemas.inventory import InventoryDeleteCreate, InventoryRequestResponse
from motorpool.schemas.maintenance import (
    MaintenanceComplete,
    MaintenanceCreate,
    MaintenanceFilter,
    MaintenanceResponse,
    MaintenanceTriage,
)
from motorpool.schemas.parts import (
    AssignPart,
    PartCreate,
    PartFilter,
    PartResponse,
    PartUpdate,
    PartUsageResponse,
    PurchaseRequestCreate,
    PurchaseRequestFilter,
    PurchaseRequestResponse,
)
from motorpool.schemas.trip import (
    AssignVehicle,
    RentalCompanyCreate,
    RentalCompanyResponse,
    ReturnVehicle,
    TripRequestCreate,
    TripRequestFilter,
    TripRequestResponse,
    TripRequestUpdate,
)
from motorpool.schemas.vehicle import VehicleFilter, VehiclePayload, VehicleResponse, VehicleUpdate

__all__ = [
    "ActorContext",
    "AssignPart",
    "AssignVehicle",
    "BaseSchema",
    "InventoryDeleteCreate",
    "InventoryRequestResponse",
    "MaintenanceComplete",
    "MaintenanceCreate",
    "MaintenanceFilter",
    "MaintenanceResponse",
    "MaintenanceTriage",
    "PartCreate",
    "PartFilter",
    "PartResponse",
    "PartUpdate",
    "PartUsageResponse",
    "PurchaseRequestCreate",
    "PurchaseRequestFilter",
    "PurchaseRequestResponse",
    "RentalCompanyCreate",
    "RentalCompanyResponse",
    "ReturnVehicle",
    "TripRequestCreate",
    "TripRequestFilter",
    "TripRequestResponse",
    "TripRequestUpdate",
    "VehicleFilter",
    "VehiclePayload",
    "VehicleResponse",
    "VehicleUpdate",
]
