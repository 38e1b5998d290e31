from motorpool.repositories.parts.part_repository import (
    MaintenancePartUsageRepository,
    PartRepository,
    PurchaseRequestRepository,
)

__all__ = ["MaintenancePartUsageRepository", "PartRepository", "PurchaseRequestRepository"]
