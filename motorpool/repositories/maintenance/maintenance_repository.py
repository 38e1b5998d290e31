"""
Maintenance request repository.
"""

from typing import Any, List, Optional

from sqlalchemy.orm import Session

from motorpool.models.base import ACTIVE_MAINTENANCE_STATUSES, MaintenanceKind, MaintenanceStatus
from motorpool.models.maintenance import MaintenanceRequest
from motorpool.repositories.base import BaseRepository


class MaintenanceRequestRepository(BaseRepository[MaintenanceRequest]):
    """Data access for maintenance requests."""

    def __init__(self, db: Session):
        super().__init__(MaintenanceRequest, db)

    def find_active_for_vehicle(self, vehicle_id: Any) -> Optional[MaintenanceRequest]:
        """The vehicle's non-terminal maintenance request, if any."""
        return (
            self.db.query(MaintenanceRequest)
            .filter(
                MaintenanceRequest.vehicle_id == str(vehicle_id),
                MaintenanceRequest.status.in_(ACTIVE_MAINTENANCE_STATUSES),
            )
            .order_by(MaintenanceRequest.created_at.desc())
            .first()
        )

    def search(
        self,
        status: Optional[MaintenanceStatus] = None,
        vehicle_id: Optional[str] = None,
        kind: Optional[MaintenanceKind] = None,
        requested_by: Optional[str] = None,
        skip: int = 0,
        limit: Optional[int] = 100,
    ) -> List[MaintenanceRequest]:
        query = self.db.query(MaintenanceRequest)
        if status is not None:
            query = query.filter(MaintenanceRequest.status == status)
        if vehicle_id is not None:
            query = query.filter(MaintenanceRequest.vehicle_id == vehicle_id)
        if kind is not None:
            query = query.filter(MaintenanceRequest.kind == kind)
        if requested_by is not None:
            query = query.filter(MaintenanceRequest.requested_by == requested_by)
        return self._page(query.order_by(MaintenanceRequest.created_at.desc()), skip, limit)

    def find_by_status_oldest_first(self, status: MaintenanceStatus) -> List[MaintenanceRequest]:
        return (
            self.db.query(MaintenanceRequest)
            .filter(MaintenanceRequest.status == status)
            .order_by(MaintenanceRequest.created_at.asc())
            .all()
        )

    def find_completed_for_vehicle(self, vehicle_id: Any) -> List[MaintenanceRequest]:
        return (
            self.db.query(MaintenanceRequest)
            .filter(
                MaintenanceRequest.vehicle_id == str(vehicle_id),
                MaintenanceRequest.status == MaintenanceStatus.COMPLETED,
            )
            .order_by(MaintenanceRequest.completed_at.desc())
            .all()
        )
