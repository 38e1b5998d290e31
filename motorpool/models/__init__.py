"""
Motor pool ORM models.

Importing this package registers every table on Base.metadata.
"""

from motorpool.models.base import Base, BaseModel
from motorpool.models.inventory import InventoryRequest
from motorpool.models.maintenance import MaintenanceRequest
from motorpool.models.parts import MaintenancePartUsage, Part, PurchaseRequest
from motorpool.models.trip import RentalCompany, TripRequest
from motorpool.models.vehicle import Vehicle

__all__ = [
    "Base",
    "BaseModel",
    "InventoryRequest",
    "MaintenancePartUsage",
    "MaintenanceRequest",
    "Part",
    "PurchaseRequest",
    "RentalCompany",
    "TripRequest",
    "Vehicle",
]
