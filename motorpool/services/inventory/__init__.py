from motorpool.services.inventory.inventory_workflow import INVENTORY_TRANSITIONS, InventoryWorkflow

__all__ = ["INVENTORY_TRANSITIONS", "InventoryWorkflow"]
