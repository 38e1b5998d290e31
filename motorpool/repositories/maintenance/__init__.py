from motorpool.repositories.maintenance.maintenance_repository import MaintenanceRequestRepository

__all__ = ["MaintenanceRequestRepository"]
