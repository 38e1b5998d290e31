from motorpool.repositories.inventory.inventory_repository import InventoryRequestRepository

__all__ = ["InventoryRequestRepository"]
