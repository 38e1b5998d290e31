from motorpool.schemas.maintenance.maintenance_request import (
    MaintenanceComplete,
    MaintenanceCreate,
    MaintenanceFilter,
    MaintenanceResponse,
    MaintenanceTriage,
)

__all__ = [
    "MaintenanceComplete",
    "MaintenanceCreate",
    "MaintenanceFilter",
    "MaintenanceResponse",
    "MaintenanceTriage",
]
