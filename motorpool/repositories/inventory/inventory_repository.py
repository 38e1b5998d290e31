"""
Inventory request repository.
"""

from typing import Any, List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from motorpool.models.base import InventoryRequestStatus, InventoryRequestType
from motorpool.models.inventory import InventoryRequest
from motorpool.repositories.base import BaseRepository


class InventoryRequestRepository(BaseRepository[InventoryRequest]):
    """Data access for inventory add/delete requests."""

    def __init__(self, db: Session):
        super().__init__(InventoryRequest, db)

    def find_pending_add_conflict(
        self,
        license_plate: Optional[str],
        vin: Optional[str],
        exclude_id: Optional[Any] = None,
    ) -> Optional[InventoryRequest]:
        """A pending ADD request staging the same plate or VIN. None values are not matched."""
        matches = []
        if license_plate is not None:
            matches.append(InventoryRequest.license_plate == license_plate)
        if vin is not None:
            matches.append(InventoryRequest.vin == vin)
        if not matches:
            return None
        query = self.db.query(InventoryRequest).filter(
            InventoryRequest.request_type == InventoryRequestType.ADD,
            InventoryRequest.status == InventoryRequestStatus.PENDING_APPROVAL,
            or_(*matches),
        )
        if exclude_id is not None:
            query = query.filter(InventoryRequest.id != str(exclude_id))
        return query.first()

    def find_pending_delete(self, vehicle_id: Any) -> Optional[InventoryRequest]:
        return (
            self.db.query(InventoryRequest)
            .filter(
                InventoryRequest.request_type == InventoryRequestType.DELETE,
                InventoryRequest.status == InventoryRequestStatus.PENDING_APPROVAL,
                InventoryRequest.vehicle_id == str(vehicle_id),
            )
            .first()
        )

    def search(
        self,
        status: Optional[InventoryRequestStatus] = None,
        request_type: Optional[InventoryRequestType] = None,
        skip: int = 0,
        limit: Optional[int] = 100,
    ) -> List[InventoryRequest]:
        query = self.db.query(InventoryRequest)
        if status is not None:
            query = query.filter(InventoryRequest.status == status)
        if request_type is not None:
            query = query.filter(InventoryRequest.request_type == request_type)
        return self._page(query.order_by(InventoryRequest.created_at.desc()), skip, limit)
