from motorpool.services.maintenance.maintenance_workflow import MAINTENANCE_TRANSITIONS, MaintenanceWorkflow

__all__ = ["MAINTENANCE_TRANSITIONS", "MaintenanceWorkflow"]
