"""
Repositories: data access over the motor pool models.
"""

from motorpool.repositories.base import BaseRepository
from motorpool.repositories.inventory import InventoryRequestRepository
from motorpool.repositories.maintenance import MaintenanceRequestRepository
from motorpool.repositories.parts import (
    MaintenancePartUsageRepository,
    PartRepository,
    PurchaseRequestRepository,
)
from motorpool.repositories.trip import RentalCompanyRepository, TripRequestRepository
from motorpool.repositories.vehicle import VehicleRepository

__all__ = [
    "BaseRepository",
    "InventoryRequestRepository",
    "MaintenancePartUsageRepository",
    "MaintenanceRequestRepository",
    "PartRepository",
    "PurchaseRequestRepository",
    "RentalCompanyRepository",
    "TripRequestRepository",
    "VehicleRepository",
]
