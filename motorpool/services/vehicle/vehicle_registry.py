"""
Vehicle registry: the single writer of vehicle status.

Trip, maintenance and inventory workflows claim, release and retire
vehicles only through this registry. A claim is one compare-and-set
UPDATE on the status column, so two concurrent claims on the same
vehicle cannot both succeed.

Registry operations raise domain exceptions rather than returning
ServiceResult: they run inside the calling workflow's unit of work,
and on their own they commit individually.
"""

from datetime import date, datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Union

from dateutil.relativedelta import relativedelta
from sqlalchemy.orm import Session

from motorpool.config import settings
from motorpool.core.events import EventBus
from motorpool.core.exceptions import (
    ConflictError,
    DuplicateEntryError,
    InvalidStateError,
    ResourceNotFoundError,
    ValidationError,
    VehicleNotAvailableError,
)
from motorpool.models.base import VehicleStatus, VehicleType
from motorpool.models.vehicle import Vehicle
from motorpool.repositories.inventory import InventoryRequestRepository
from motorpool.repositories.maintenance import MaintenanceRequestRepository
from motorpool.repositories.trip import TripRequestRepository
from motorpool.repositories.vehicle import VehicleRepository
from motorpool.schemas.common import ActorContext
from motorpool.schemas.vehicle import VehicleFilter, VehiclePayload, VehicleUpdate
from motorpool.services.base import BaseService
from motorpool.services.notifications import notification_events

CLAIM_TARGETS = frozenset({VehicleStatus.ASSIGNED, VehicleStatus.UNDER_MAINTENANCE})
RELEASE_TARGETS = frozenset({VehicleStatus.AVAILABLE, VehicleStatus.IN_TRANSIT})
LIVE_STATUSES = (
    VehicleStatus.AVAILABLE,
    VehicleStatus.ASSIGNED,
    VehicleStatus.IN_TRANSIT,
    VehicleStatus.UNDER_MAINTENANCE,
)


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


class VehicleRegistry(BaseService[Vehicle, VehicleRepository]):
    """
    Owns the vehicle record and its status field.
    """

    def __init__(self, db_session: Session, bus: Optional[EventBus] = None):
        super().__init__(VehicleRepository(db_session), db_session, bus)
        self.trip_request_repository = TripRequestRepository(db_session)
        self.maintenance_repository = MaintenanceRequestRepository(db_session)
        self.inventory_repository = InventoryRequestRepository(db_session)

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    def get_vehicle(self, vehicle_id: Any, include_deleted: bool = False) -> Vehicle:
        """
        Raises:
            ResourceNotFoundError: If the vehicle is missing, or DELETED
                and include_deleted is False
        """
        vehicle = self.repository.find_by_id(vehicle_id)
        if vehicle is None or (vehicle.is_deleted and not include_deleted):
            raise ResourceNotFoundError("Vehicle", vehicle_id)
        return vehicle

    def list_vehicles(self, filters: Optional[Union[VehicleFilter, Dict[str, Any]]] = None) -> List[Vehicle]:
        """List vehicles; DELETED ones only when asked for."""
        criteria = self._validate_input(VehicleFilter, filters or {})
        return self.repository.search(
            status=criteria.status,
            vehicle_type=criteria.vehicle_type,
            search=criteria.search,
            include_deleted=criteria.include_deleted,
            skip=criteria.skip,
            limit=criteria.limit,
        )

    def list_available(self, vehicle_type: Optional[VehicleType] = None) -> List[Vehicle]:
        return self.repository.find_available(vehicle_type)

    def check_availability(self, vehicle_id: Any) -> bool:
        """Whether the vehicle is AVAILABLE right now."""
        return self.get_vehicle(vehicle_id).is_available

    def ensure_claimable(
        self,
        vehicle_id: Any,
        exclude_request_id: Optional[Any] = None,
        lock: bool = False,
    ) -> Vehicle:
        """
        Check that a trip could claim the vehicle, without claiming it.

        Args:
            vehicle_id: Vehicle to check
            exclude_request_id: Trip request that may already reference it
            lock: Hold a row lock on the vehicle until the unit of work ends

        Raises:
            ResourceNotFoundError: No such non-deleted vehicle
            VehicleNotAvailableError: Vehicle status is not AVAILABLE
            ConflictError: Another active trip request references it
        """
        vehicle = self.repository.lock_by_id(vehicle_id) if lock else self.repository.reload(vehicle_id)
        if vehicle is None or vehicle.is_deleted:
            raise ResourceNotFoundError("Vehicle", vehicle_id)
        if not vehicle.is_available:
            raise VehicleNotAvailableError(vehicle.id, vehicle.status)
        competing = self.trip_request_repository.find_active_for_vehicle(vehicle.id, exclude_id=exclude_request_id)
        if competing:
            raise ConflictError(
                "Vehicle has an active request and cannot be assigned",
                details={
                    "vehicle_id": vehicle.id,
                    "conflicting_request_id": competing[0].id,
                    "conflicting_status": competing[0].status.value,
                },
            )
        return vehicle

    # -------------------------------------------------------------------------
    # Claim / release
    # -------------------------------------------------------------------------

    def try_claim(self, vehicle_id: Any, for_status: VehicleStatus) -> Vehicle:
        """
        Atomically move an AVAILABLE vehicle to ``for_status``.

        Raises:
            ValidationError: for_status is not a claim status
            ResourceNotFoundError: No such non-deleted vehicle
            VehicleNotAvailableError: Vehicle status is not AVAILABLE
        """
        if for_status not in CLAIM_TARGETS:
            raise ValidationError(f"Cannot claim a vehicle into {for_status}", field="for_status")

        with self.transaction():
            claimed = self.repository.compare_and_set_status(vehicle_id, [VehicleStatus.AVAILABLE], for_status)
            vehicle = self.repository.reload(vehicle_id)
            if not claimed:
                if vehicle is None or vehicle.is_deleted:
                    raise ResourceNotFoundError("Vehicle", vehicle_id)
                raise VehicleNotAvailableError(vehicle.id, vehicle.status)

        self._log_operation(
            "Vehicle claimed",
            vehicle.id,
            {"vehicle_status": vehicle.status.value},
        )
        return vehicle

    def release(
        self,
        vehicle_id: Any,
        into_status: VehicleStatus = VehicleStatus.AVAILABLE,
        from_statuses: Optional[Iterable[VehicleStatus]] = None,
    ) -> Vehicle:
        """
        Move a claimed vehicle to AVAILABLE, or to IN_TRANSIT mid-trip.

        A DELETED vehicle is left alone and releasing into the current
        status is a no-op. With ``from_statuses`` the write only happens
        while the vehicle is still in one of them, so a release never
        overwrites a claim held by someone else.

        Raises:
            ValidationError: into_status is not a release status
            ResourceNotFoundError: Vehicle does not exist
        """
        if into_status not in RELEASE_TARGETS:
            raise ValidationError(f"Cannot release a vehicle into {into_status}", field="into_status")

        expected = tuple(from_statuses) if from_statuses is not None else LIVE_STATUSES
        expected = tuple(s for s in expected if s != VehicleStatus.DELETED)

        with self.transaction():
            vehicle = self.repository.reload(vehicle_id)
            if vehicle is None:
                raise ResourceNotFoundError("Vehicle", vehicle_id)
            if vehicle.is_deleted or vehicle.status == into_status:
                return vehicle

            released = self.repository.compare_and_set_status(vehicle.id, expected, into_status)
            vehicle = self.repository.reload(vehicle.id)

        if released:
            self._log_operation("Vehicle released", vehicle.id, {"vehicle_status": vehicle.status.value})
        else:
            self._logger.warning(
                "Vehicle release skipped; vehicle no longer holds the expected claim",
                extra={"entity_ref": vehicle.id, "vehicle_status": vehicle.status.value},
            )
        return vehicle

    # -------------------------------------------------------------------------
    # Retirement
    # -------------------------------------------------------------------------

    def can_delete(self, vehicle_id: Any) -> bool:
        """
        True only if the vehicle is not DELETED and no active trip or
        maintenance request references it.

        Raises:
            ResourceNotFoundError: Vehicle does not exist
        """
        vehicle = self.repository.reload(vehicle_id)
        if vehicle is None:
            raise ResourceNotFoundError("Vehicle", vehicle_id)
        if vehicle.is_deleted:
            return False
        if self.trip_request_repository.find_active_for_vehicle(vehicle.id):
            return False
        return self.maintenance_repository.find_active_for_vehicle(vehicle.id) is None

    def mark_deleted(self, vehicle_id: Any) -> Vehicle:
        """
        Retire a vehicle. DELETED is terminal.

        Raises:
            ResourceNotFoundError: Vehicle does not exist
            InvalidStateError: Vehicle is already DELETED or still referenced
        """
        with self.transaction():
            vehicle = self.repository.lock_by_id(vehicle_id)
            if vehicle is None:
                raise ResourceNotFoundError("Vehicle", vehicle_id)
            if not self.can_delete(vehicle.id):
                raise InvalidStateError(
                    "Vehicle cannot be deleted while it is deleted or has active requests",
                    current_status=vehicle.status,
                    details={"vehicle_id": vehicle.id},
                )
            if not self.repository.compare_and_set_status(vehicle.id, LIVE_STATUSES, VehicleStatus.DELETED):
                raise InvalidStateError("Vehicle status changed during deletion", current_status=vehicle.status)
            vehicle = self.repository.reload(vehicle.id)

        self._log_operation("Vehicle deleted", vehicle.id)
        return vehicle

    # -------------------------------------------------------------------------
    # Registration
    # -------------------------------------------------------------------------

    def ensure_identifiers_free(
        self,
        license_plate: Optional[str],
        vin: Optional[str],
        exclude_vehicle_id: Optional[Any] = None,
    ) -> None:
        """
        Raises:
            DuplicateEntryError: A non-deleted vehicle other than
                exclude_vehicle_id already uses the plate or VIN
        """
        if license_plate is not None and self.repository.find_by_license_plate(
            license_plate, exclude_id=exclude_vehicle_id
        ) is not None:
            raise DuplicateEntryError(
                "Vehicle with this license plate already exists", field="license_plate", value=license_plate
            )
        if vin is not None and self.repository.find_by_vin(vin, exclude_id=exclude_vehicle_id) is not None:
            raise DuplicateEntryError("Vehicle with this VIN already exists", field="vin", value=vin)

    def ensure_not_staged(
        self,
        license_plate: Optional[str],
        vin: Optional[str],
        exclude_request_id: Optional[Any] = None,
    ) -> None:
        """
        Raises:
            ConflictError: A pending ADD request stages the plate or VIN
        """
        staged = self.inventory_repository.find_pending_add_conflict(
            license_plate, vin, exclude_id=exclude_request_id
        )
        if staged is not None:
            field = "license_plate" if license_plate is not None and staged.license_plate == license_plate else "vin"
            raise ConflictError(
                f"A pending add request already uses this {field.replace('_', ' ')}",
                details={"field": field, "conflicting_request_id": staged.id},
            )

    def register_vehicle(self, payload: Union[VehiclePayload, Dict[str, Any]]) -> Vehicle:
        """
        Create an AVAILABLE vehicle from a staged payload.

        The partial unique indexes on plate and VIN back the explicit
        duplicate check against concurrent registrations.
        """
        data = self._validate_input(VehiclePayload, payload)
        with self.transaction():
            self.ensure_identifiers_free(data.license_plate, data.vin)
            vehicle = self.repository.create(Vehicle(status=VehicleStatus.AVAILABLE, **data.model_dump()))

        self._log_operation("Vehicle registered", vehicle.id, {"license_plate": vehicle.license_plate})
        return vehicle

    def update_vehicle(
        self,
        vehicle_id: Any,
        changes: Union[VehicleUpdate, Dict[str, Any]],
        actor: Optional[Union[ActorContext, Dict[str, Any]]] = None,
    ) -> Vehicle:
        """
        Edit vehicle attributes. Status is not editable here; it only moves
        through claims, releases and retirement.

        Raises:
            ValidationError: Unknown field, a required field cleared, or
                mileage below the recorded reading
            ResourceNotFoundError: Vehicle is missing or DELETED
            DuplicateEntryError: Plate or VIN used by another live vehicle
            ConflictError: Plate or VIN staged by a pending ADD request
        """
        actor = self._actor(actor) if actor is not None else None
        data = self._validate_input(VehicleUpdate, changes).model_dump(exclude_unset=True)

        for name in VehicleUpdate.REQUIRED_FIELDS:
            if name in data and data[name] is None:
                raise ValidationError(f"{name.replace('_', ' ').capitalize()} cannot be cleared", field=name)

        with self.transaction():
            vehicle = self.repository.lock_by_id(vehicle_id)
            if vehicle is None or vehicle.is_deleted:
                raise ResourceNotFoundError("Vehicle", vehicle_id)

            if "mileage" in data and data["mileage"] < (vehicle.mileage or 0):
                raise ValidationError(
                    "Mileage cannot be lower than the recorded mileage",
                    field="mileage",
                    details={"recorded_mileage": vehicle.mileage, "reported_mileage": data["mileage"]},
                )

            plate = data.get("license_plate")
            vin = data.get("vin")
            plate = plate if plate != vehicle.license_plate else None
            vin = vin if vin != vehicle.vin else None
            if plate is not None or vin is not None:
                self.ensure_identifiers_free(plate, vin, exclude_vehicle_id=vehicle.id)
                self.ensure_not_staged(plate, vin)

            self.repository.update(vehicle, data)
            if actor is not None:
                self._audit("UPDATE", "Vehicle", vehicle.id, actor, {"fields": sorted(data)})

        self._log_operation("Vehicle updated", vehicle.id, {"fields": sorted(data)})
        return vehicle

    # -------------------------------------------------------------------------
    # Mileage and maintenance schedule
    # -------------------------------------------------------------------------

    def record_mileage(self, vehicle_id: Any, mileage: int) -> Vehicle:
        """
        Raises:
            ValidationError: Reading is negative or below the recorded mileage
        """
        if mileage is None or mileage < 0:
            raise ValidationError("Mileage cannot be negative", field="mileage")

        with self.transaction():
            vehicle = self.get_vehicle(vehicle_id)
            if mileage < (vehicle.mileage or 0):
                raise ValidationError(
                    "Mileage cannot be lower than the recorded mileage",
                    field="mileage",
                    details={"recorded_mileage": vehicle.mileage, "reported_mileage": mileage},
                )
            self.repository.update(vehicle, {"mileage": mileage})
        return vehicle

    def schedule_next_maintenance(self, vehicle_id: Any, completed_on: Optional[date] = None) -> Vehicle:
        """
        Record completed maintenance and, when the vehicle has an interval,
        set next_maintenance_date to completed_on + interval months.
        """
        completed_on = completed_on or utc_today()
        with self.transaction():
            vehicle = self.get_vehicle(vehicle_id)
            changes: Dict[str, Any] = {"last_maintenance_date": completed_on}
            if vehicle.maintenance_interval_months:
                changes["next_maintenance_date"] = completed_on + relativedelta(
                    months=vehicle.maintenance_interval_months
                )
            self.repository.update(vehicle, changes)
        return vehicle

    def vehicles_needing_maintenance(self, within_days: Optional[int] = None) -> List[Vehicle]:
        """Vehicles with scheduled maintenance due within the window, overdue included."""
        window = settings.MAINTENANCE_DUE_WINDOW_DAYS if within_days is None else within_days
        if window < 0:
            raise ValidationError("within_days cannot be negative", field="within_days")
        return self.repository.find_maintenance_due(utc_today(), window)

    def vehicles_with_expiring_warranty(self, days_ahead: Optional[int] = None) -> List[Vehicle]:
        window = settings.WARRANTY_WARNING_DAYS if days_ahead is None else days_ahead
        if window < 0:
            raise ValidationError("days_ahead cannot be negative", field="days_ahead")
        return self.repository.find_warranty_expiring(utc_today(), window)

    def publish_schedule_alerts(self) -> Dict[str, int]:
        """
        Emit approaching, overdue and warranty notifications for the fleet.

        Returns:
            Count of events emitted per kind
        """
        today = utc_today()
        counts = {"approaching": 0, "overdue": 0, "warranty": 0}

        for vehicle in self.vehicles_needing_maintenance():
            context = {
                "license_plate": vehicle.license_plate,
                "next_maintenance_date": vehicle.next_maintenance_date.isoformat(),
            }
            if vehicle.next_maintenance_date < today:
                self._notify(notification_events.scheduled_maintenance_overdue(vehicle, context))
                counts["overdue"] += 1
            else:
                self._notify(notification_events.scheduled_maintenance_approaching(vehicle, context))
                counts["approaching"] += 1

        for vehicle in self.vehicles_with_expiring_warranty():
            self._notify(
                notification_events.warranty_expiring(
                    vehicle,
                    {
                        "license_plate": vehicle.license_plate,
                        "warranty_expiry_date": vehicle.warranty_expiry_date.isoformat(),
                    },
                )
            )
            counts["warranty"] += 1

        self._log_operation("Schedule alerts published", extra=counts)
        return counts
