"""
Part, part usage and purchase request repositories.

Stock debits are compare-and-set updates guarded by ``quantity >= n``.
"""

from datetime import datetime
from typing import Any, List, Optional

from sqlalchemy import or_, update
from sqlalchemy.orm import Session

from motorpool.models.base import PurchaseRequestStatus, TrackingMode, VehicleType, utc_now
from motorpool.models.parts import MaintenancePartUsage, Part, PurchaseRequest
from motorpool.repositories.base import BaseRepository


class PartRepository(BaseRepository[Part]):
    """Data access for the parts catalogue."""

    def __init__(self, db: Session):
        super().__init__(Part, db)

    def find_by_serial_number(self, serial_number: str) -> Optional[Part]:
        return (
            self.db.query(Part)
            .filter(Part.serial_number == serial_number)
            .first()
        )

    def search(
        self,
        search: Optional[str] = None,
        vehicle_type: Optional[VehicleType] = None,
        vehicle_model: Optional[str] = None,
        tracking_mode: Optional[TrackingMode] = None,
        skip: int = 0,
        limit: Optional[int] = 100,
    ) -> List[Part]:
        query = self.query()
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(Part.name.ilike(pattern), Part.vehicle_model.ilike(pattern)))
        if vehicle_type is not None:
            query = query.filter(Part.vehicle_type == vehicle_type)
        if vehicle_model:
            query = query.filter(Part.vehicle_model.ilike(f"%{vehicle_model}%"))
        if tracking_mode is not None:
            query = query.filter(Part.tracking_mode == tracking_mode)
        return self._page(query.order_by(Part.name.asc()), skip, limit)

    def find_low_stock(self, threshold: int) -> List[Part]:
        return (
            self.query()
            .filter(Part.tracking_mode == TrackingMode.QUANTITY, Part.quantity <= threshold)
            .order_by(Part.quantity.asc())
            .all()
        )

    def debit_quantity(self, part_id: Any, amount: int) -> bool:
        """
        Take ``amount`` units out of stock if enough remain.

        Returns:
            True if stock was debited
        """
        self.flush()
        result = self.db.execute(
            update(Part)
            .where(
                Part.id == str(part_id),
                Part.tracking_mode == TrackingMode.QUANTITY,
                Part.quantity >= amount,
            )
            .values(quantity=Part.quantity - amount, updated_at=utc_now())
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def credit_quantity(self, part_id: Any, amount: int) -> bool:
        """Return ``amount`` units to stock."""
        self.flush()
        result = self.db.execute(
            update(Part)
            .where(Part.id == str(part_id), Part.tracking_mode == TrackingMode.QUANTITY)
            .values(quantity=Part.quantity + amount, updated_at=utc_now())
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def reload(self, part_id: Any) -> Optional[Part]:
        return self.db.get(Part, str(part_id), populate_existing=True)


class MaintenancePartUsageRepository(BaseRepository[MaintenancePartUsage]):
    """Data access for the part usage ledger."""

    def __init__(self, db: Session):
        super().__init__(MaintenancePartUsage, db)

    def find_for_part(self, part_id: Any) -> List[MaintenancePartUsage]:
        return (
            self.db.query(MaintenancePartUsage)
            .filter(MaintenancePartUsage.part_id == str(part_id))
            .order_by(MaintenancePartUsage.created_at.desc())
            .all()
        )

    def find_for_maintenance(self, maintenance_id: Any) -> List[MaintenancePartUsage]:
        return (
            self.db.query(MaintenancePartUsage)
            .filter(MaintenancePartUsage.maintenance_request_id == str(maintenance_id))
            .order_by(MaintenancePartUsage.created_at.asc())
            .all()
        )

    def part_in_use(self, part_id: Any) -> bool:
        return (
            self.db.query(MaintenancePartUsage.id)
            .filter(MaintenancePartUsage.part_id == str(part_id))
            .first()
            is not None
        )


class PurchaseRequestRepository(BaseRepository[PurchaseRequest]):
    """Data access for parts purchase requests."""

    def __init__(self, db: Session):
        super().__init__(PurchaseRequest, db)

    def search(
        self,
        status: Optional[PurchaseRequestStatus] = None,
        created_from: Optional[datetime] = None,
        created_to: Optional[datetime] = None,
        skip: int = 0,
        limit: Optional[int] = 100,
    ) -> List[PurchaseRequest]:
        """Filter requests, newest first. Dates bound the creation time, inclusive."""
        query = self.db.query(PurchaseRequest)
        if status is not None:
            query = query.filter(PurchaseRequest.status == status)
        if created_from is not None:
            query = query.filter(PurchaseRequest.created_at >= created_from)
        if created_to is not None:
            query = query.filter(PurchaseRequest.created_at <= created_to)
        return self._page(query.order_by(PurchaseRequest.created_at.desc()), skip, limit)

    def find_pending_oldest_first(self) -> List[PurchaseRequest]:
        return (
            self.db.query(PurchaseRequest)
            .filter(PurchaseRequest.status == PurchaseRequestStatus.PENDING_APPROVAL)
            .order_by(PurchaseRequest.created_at.asc())
            .all()
        )
