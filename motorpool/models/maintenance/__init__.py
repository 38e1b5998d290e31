"""Maintenance models."""
from motorpool.models.maintenance.maintenance_request import MaintenanceRequest

__all__ = ["MaintenanceRequest"]
