"""
Trip request and rental company repositories.
"""

from datetime import datetime
from typing import Any, List, Optional

from sqlalchemy.orm import Session

from motorpool.models.base import ACTIVE_TRIP_STATUSES, TripRequestStatus, VehicleType
from motorpool.models.trip import RentalCompany, TripRequest
from motorpool.repositories.base import BaseRepository


class TripRequestRepository(BaseRepository[TripRequest]):
    """Data access for trip requests."""

    def __init__(self, db: Session):
        super().__init__(TripRequest, db)

    def find_active_for_vehicle(
        self,
        vehicle_id: Any,
        exclude_id: Optional[Any] = None,
    ) -> List[TripRequest]:
        """Non-terminal requests referencing a vehicle."""
        query = self.db.query(TripRequest).filter(
            TripRequest.vehicle_id == str(vehicle_id),
            TripRequest.status.in_(ACTIVE_TRIP_STATUSES),
        )
        if exclude_id is not None:
            query = query.filter(TripRequest.id != str(exclude_id))
        return query.order_by(TripRequest.created_at).all()

    def search(
        self,
        status: Optional[TripRequestStatus] = None,
        vehicle_type: Optional[VehicleType] = None,
        requester_id: Optional[str] = None,
        vehicle_id: Optional[str] = None,
        from_date: Optional[datetime] = None,
        to_date: Optional[datetime] = None,
        skip: int = 0,
        limit: Optional[int] = 100,
    ) -> List[TripRequest]:
        """Filter requests, newest first. Dates bound the departure time."""
        query = self.db.query(TripRequest)
        if status is not None:
            query = query.filter(TripRequest.status == status)
        if vehicle_type is not None:
            query = query.filter(TripRequest.requested_vehicle_type == vehicle_type)
        if requester_id is not None:
            query = query.filter(TripRequest.requester_id == requester_id)
        if vehicle_id is not None:
            query = query.filter(TripRequest.vehicle_id == vehicle_id)
        if from_date is not None:
            query = query.filter(TripRequest.departure_time >= from_date)
        if to_date is not None:
            query = query.filter(TripRequest.departure_time <= to_date)
        return self._page(query.order_by(TripRequest.created_at.desc()), skip, limit)

    def find_by_status_oldest_first(self, status: TripRequestStatus) -> List[TripRequest]:
        return (
            self.db.query(TripRequest)
            .filter(TripRequest.status == status)
            .order_by(TripRequest.created_at.asc())
            .all()
        )


class RentalCompanyRepository(BaseRepository[RentalCompany]):
    """Data access for rental companies."""

    def __init__(self, db: Session):
        super().__init__(RentalCompany, db)

    def find_active_by_id(self, company_id: Any) -> Optional[RentalCompany]:
        company = self.find_by_id(company_id)
        if company is None or not company.is_active:
            return None
        return company

    def find_active_by_name(self, name: str) -> Optional[RentalCompany]:
        return (
            self.db.query(RentalCompany)
            .filter(RentalCompany.name == name, RentalCompany.is_active.is_(True))
            .first()
        )

    def list_companies(self, include_inactive: bool = False) -> List[RentalCompany]:
        query = self.db.query(RentalCompany)
        if not include_inactive:
            query = query.filter(RentalCompany.is_active.is_(True))
        return query.order_by(RentalCompany.name).all()
