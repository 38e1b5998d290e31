"""
Vehicle repository.

Status writes go through compare-and-set UPDATE statements so a claim
succeeds for at most one caller.
"""

from datetime import date, timedelta
from typing import Any, List, Optional, Sequence

from sqlalchemy import or_, update
from sqlalchemy.orm import Session

from motorpool.models.base import VehicleStatus, VehicleType, utc_now
from motorpool.models.vehicle import Vehicle
from motorpool.repositories.base import BaseRepository


class VehicleRepository(BaseRepository[Vehicle]):
    """Data access for pool vehicles."""

    def __init__(self, db: Session):
        super().__init__(Vehicle, db)

    # ==================== Lookups ====================

    def find_active_by_id(self, vehicle_id: Any) -> Optional[Vehicle]:
        """Find a vehicle that is not DELETED."""
        vehicle = self.find_by_id(vehicle_id)
        if vehicle is None or vehicle.status == VehicleStatus.DELETED:
            return None
        return vehicle

    def find_by_license_plate(self, license_plate: str, exclude_id: Optional[Any] = None) -> Optional[Vehicle]:
        query = self.db.query(Vehicle).filter(
            Vehicle.license_plate == license_plate, Vehicle.status != VehicleStatus.DELETED
        )
        if exclude_id is not None:
            query = query.filter(Vehicle.id != str(exclude_id))
        return query.first()

    def find_by_vin(self, vin: str, exclude_id: Optional[Any] = None) -> Optional[Vehicle]:
        query = self.db.query(Vehicle).filter(Vehicle.vin == vin, Vehicle.status != VehicleStatus.DELETED)
        if exclude_id is not None:
            query = query.filter(Vehicle.id != str(exclude_id))
        return query.first()

    def search(
        self,
        status: Optional[VehicleStatus] = None,
        vehicle_type: Optional[VehicleType] = None,
        search: Optional[str] = None,
        include_deleted: bool = False,
        skip: int = 0,
        limit: Optional[int] = 100,
    ) -> List[Vehicle]:
        """
        Filter vehicles. DELETED vehicles are excluded unless asked for
        explicitly, by status or by include_deleted.
        """
        query = self.db.query(Vehicle)
        if status is not None:
            query = query.filter(Vehicle.status == status)
        elif not include_deleted:
            query = query.filter(Vehicle.status != VehicleStatus.DELETED)
        if vehicle_type is not None:
            query = query.filter(Vehicle.vehicle_type == vehicle_type)
        if search:
            pattern = f"%{search}%"
            query = query.filter(
                or_(
                    Vehicle.model.ilike(pattern),
                    Vehicle.license_plate.ilike(pattern),
                    Vehicle.vin.ilike(pattern),
                )
            )
        return self._page(query.order_by(Vehicle.created_at.desc()), skip, limit)

    def find_available(self, vehicle_type: Optional[VehicleType] = None) -> List[Vehicle]:
        query = self.db.query(Vehicle).filter(Vehicle.status == VehicleStatus.AVAILABLE)
        if vehicle_type is not None:
            query = query.filter(Vehicle.vehicle_type == vehicle_type)
        return query.order_by(Vehicle.model).all()

    def find_maintenance_due(self, today: date, within_days: int) -> List[Vehicle]:
        """Vehicles whose next maintenance falls on or before today + within_days."""
        horizon = today + timedelta(days=within_days)
        return (
            self.db.query(Vehicle)
            .filter(
                Vehicle.status != VehicleStatus.DELETED,
                Vehicle.next_maintenance_date.isnot(None),
                Vehicle.next_maintenance_date <= horizon,
            )
            .order_by(Vehicle.next_maintenance_date)
            .all()
        )

    def find_warranty_expiring(self, today: date, days_ahead: int) -> List[Vehicle]:
        """Vehicles whose warranty ends between today and today + days_ahead."""
        horizon = today + timedelta(days=days_ahead)
        return (
            self.db.query(Vehicle)
            .filter(
                Vehicle.status != VehicleStatus.DELETED,
                Vehicle.warranty_expiry_date.isnot(None),
                Vehicle.warranty_expiry_date >= today,
                Vehicle.warranty_expiry_date <= horizon,
            )
            .order_by(Vehicle.warranty_expiry_date)
            .all()
        )

    # ==================== Status writes ====================

    def compare_and_set_status(
        self,
        vehicle_id: Any,
        expected: Sequence[VehicleStatus],
        new_status: VehicleStatus,
    ) -> bool:
        """
        Set status only if the current status is one of ``expected``.

        Returns:
            True if a row changed
        """
        self.flush()
        result = self.db.execute(
            update(Vehicle)
            .where(Vehicle.id == str(vehicle_id), Vehicle.status.in_(list(expected)))
            .values(status=new_status, updated_at=utc_now())
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def reload(self, vehicle_id: Any) -> Optional[Vehicle]:
        """Load the current row, overwriting any stale identity-map state."""
        return self.db.get(Vehicle, str(vehicle_id), populate_existing=True)
