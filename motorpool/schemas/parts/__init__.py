from motorpool.schemas.parts.part import (
    AssignPart,
    PartCreate,
    PartFilter,
    PartResponse,
    PartUpdate,
    PartUsageResponse,
)
from motorpool.schemas.parts.purchase_request import (
    PurchaseRequestCreate,
    PurchaseRequestFilter,
    PurchaseRequestResponse,
)

__all__ = [
    "AssignPart",
    "PartCreate",
    "PartFilter",
    "PartResponse",
    "PartUpdate",
    "PartUsageResponse",
    "PurchaseRequestCreate",
    "PurchaseRequestFilter",
    "PurchaseRequestResponse",
]
