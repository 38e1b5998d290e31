"""Inventory request models."""
from motorpool.models.inventory.inventory_request import InventoryRequest

__all__ = ["InventoryRequest"]
