"""Part, part usage and purchase request models."""
from motorpool.models.parts.maintenance_part_usage import MaintenancePartUsage
from motorpool.models.parts.part import Part
from motorpool.models.parts.purchase_request import PurchaseRequest

__all__ = ["MaintenancePartUsage", "Part", "PurchaseRequest"]
