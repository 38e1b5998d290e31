from motorpool.schemas.inventory.inventory_request import InventoryDeleteCreate, InventoryRequestResponse

__all__ = ["InventoryDeleteCreate", "InventoryRequestResponse"]
