from motorpool.services.parts.parts_ledger import PartsLedger
from motorpool.services.parts.purchase_request_workflow import PURCHASE_TRANSITIONS, PurchaseRequestWorkflow

__all__ = ["PURCHASE_TRANSITIONS", "PartsLedger", "PurchaseRequestWorkflow"]
