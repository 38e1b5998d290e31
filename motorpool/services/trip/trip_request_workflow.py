"""
Trip request workflow.

PENDING -> ASSIGNED -> APPROVED -> IN_TRANSIT -> RETURNED, with REJECTED
from ASSIGNED and CANCELLED from PENDING, ASSIGNED or APPROVED. Company
vehicles are claimed through the vehicle registry on assignment and
released on rejection, cancellation or return; rentals never touch a
pool vehicle.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from sqlalchemy.orm import Session

from motorpool.core.events import EventBus
from motorpool.core.exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidStateError,
    ResourceNotFoundError,
    ValidationError,
    VehicleNotAvailableError,
)
from motorpool.models.base import TripRequestStatus, VehicleStatus, ensure_utc, utc_now
from motorpool.models.trip import TripRequest
from motorpool.repositories.trip import RentalCompanyRepository, TripRequestRepository
from motorpool.schemas.common import ActorContext
from motorpool.schemas.trip import (
    AssignVehicle,
    ReturnVehicle,
    TripRequestCreate,
    TripRequestFilter,
    TripRequestUpdate,
)
from motorpool.services.base import BaseService, ServiceResult, TransitionTable
from motorpool.services.notifications import notification_events
from motorpool.services.vehicle import VehicleRegistry

ENTITY = "TripRequest"

TRIP_TRANSITIONS = TransitionTable(
    ENTITY,
    {
        TripRequestStatus.PENDING: {TripRequestStatus.ASSIGNED, TripRequestStatus.CANCELLED},
        TripRequestStatus.ASSIGNED: {
            TripRequestStatus.APPROVED,
            TripRequestStatus.REJECTED,
            TripRequestStatus.CANCELLED,
        },
        TripRequestStatus.APPROVED: {TripRequestStatus.IN_TRANSIT, TripRequestStatus.CANCELLED},
        TripRequestStatus.IN_TRANSIT: {TripRequestStatus.RETURNED},
        TripRequestStatus.REJECTED: set(),
        TripRequestStatus.RETURNED: set(),
        TripRequestStatus.CANCELLED: set(),
    },
)

# Vehicle statuses a trip's claim can be in
TRIP_CLAIM_STATUSES = (VehicleStatus.ASSIGNED, VehicleStatus.IN_TRANSIT)


class TripRequestWorkflow(BaseService[TripRequest, TripRequestRepository]):
    """
    Trip request state machine.
    """

    def __init__(
        self,
        db_session: Session,
        bus: Optional[EventBus] = None,
        registry: Optional[VehicleRegistry] = None,
    ):
        super().__init__(TripRequestRepository(db_session), db_session, bus)
        self.registry = registry or VehicleRegistry(db_session, self.bus)
        self.rental_company_repository = RentalCompanyRepository(db_session)

    # -------------------------------------------------------------------------
    # Creation and editing
    # -------------------------------------------------------------------------

    def create(
        self,
        data: Union[TripRequestCreate, Dict[str, Any]],
        actor: Union[ActorContext, Dict[str, Any]],
    ) -> ServiceResult[TripRequest]:
        """
        Create a PENDING request. A named vehicle must be claimable, but
        no claim is taken until assignment.
        """
        try:
            actor = self._actor(actor)
            params = self._validate_input(TripRequestCreate, data)
            departure = ensure_utc(params.departure_time)
            return_time = ensure_utc(params.return_time)
            self._validate_window(departure, return_time, check_past=True)

            with self.transaction():
                if params.vehicle_id:
                    self._ensure_claimable(params.vehicle_id)

                request = self.repository.create(
                    TripRequest(
                        requested_vehicle_type=params.requested_vehicle_type,
                        vehicle_id=params.vehicle_id,
                        departure_location=params.departure_location,
                        destination=params.destination,
                        description=params.description,
                        departure_time=departure,
                        return_time=return_time,
                        status=TripRequestStatus.PENDING,
                        is_rental=False,
                        requester_id=actor.user_id,
                    )
                )
                self._audit("CREATE", ENTITY, request.id, actor, {"vehicle_id": request.vehicle_id})
                self._notify(notification_events.trip_request_created(request, self._context(request)))

            self._log_operation("Trip request created", request.id, {"requester_id": actor.user_id})
            return ServiceResult.success(request, message="Trip request created")
        except Exception as e:
            return self._handle_exception(e, "create trip request")

    def update(
        self,
        request_id: Any,
        changes: Union[TripRequestUpdate, Dict[str, Any]],
        actor: Union[ActorContext, Dict[str, Any]],
    ) -> ServiceResult[TripRequest]:
        """
        Edit a PENDING request. Only its creator may edit it.
        """
        try:
            actor = self._actor(actor)
            update = self._validate_input(TripRequestUpdate, changes)
            data = update.model_dump(exclude_unset=True)

            with self.transaction():
                request = self._get(request_id)
                if request.status != TripRequestStatus.PENDING:
                    raise InvalidStateError(
                        "Can only update requests in PENDING status",
                        current_status=request.status,
                    )
                self._ensure_creator(request, actor, "update the request")

                if "departure_time" in data or "return_time" in data:
                    departure = ensure_utc(data.get("departure_time") or request.departure_time)
                    return_time = ensure_utc(data.get("return_time") or request.return_time)
                    self._validate_window(departure, return_time, check_past="departure_time" in data)
                    data["departure_time"] = departure
                    data["return_time"] = return_time

                if data.get("vehicle_id") and data["vehicle_id"] != request.vehicle_id:
                    self._ensure_claimable(data["vehicle_id"], exclude_request_id=request.id)

                for field in ("requested_vehicle_type", "departure_location", "destination"):
                    if field in data and data[field] is None:
                        raise ValidationError(f"{field} cannot be cleared", field=field)

                self.repository.update(request, data)
                self._audit("UPDATE", ENTITY, request.id, actor, {"fields": sorted(data)})

            self._log_operation("Trip request updated", request.id, {"fields": sorted(data)})
            return ServiceResult.success(request, message="Trip request updated")
        except Exception as e:
            return self._handle_exception(e, "update trip request", request_id)

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def assign(
        self,
        request_id: Any,
        target: Union[AssignVehicle, Dict[str, Any]],
        actor: Union[ActorContext, Dict[str, Any]],
    ) -> ServiceResult[TripRequest]:
        """
        Assign a pool vehicle (claimed ASSIGNED) or an active rental company.
        """
        try:
            actor = self._actor(actor)
            target = self._validate_input(AssignVehicle, target)
            self._validate_target(target)

            with self.transaction():
                request = self._get(request_id)
                TRIP_TRANSITIONS.validate(request.status, TripRequestStatus.ASSIGNED, request.id)

                if target.is_rental:
                    company = self.rental_company_repository.find_active_by_id(target.rental_company_id)
                    if company is None:
                        raise ResourceNotFoundError(
                            "RentalCompany",
                            target.rental_company_id,
                            message="Rental company not found or inactive",
                        )
                    changes = {"is_rental": True, "rental_company_id": company.id, "vehicle_id": None}
                else:
                    self._ensure_claimable(target.vehicle_id, exclude_request_id=request.id)
                    try:
                        vehicle = self.registry.try_claim(target.vehicle_id, VehicleStatus.ASSIGNED)
                    except VehicleNotAvailableError as e:
                        raise self._as_conflict(e) from e
                    changes = {"is_rental": False, "rental_company_id": None, "vehicle_id": vehicle.id}

                changes.update(
                    status=TripRequestStatus.ASSIGNED,
                    assigned_by=actor.user_id,
                    assigned_at=utc_now(),
                )
                self.repository.update(request, changes)
                self._audit(
                    "ASSIGN", ENTITY, request.id, actor,
                    {
                        "is_rental": request.is_rental,
                        "vehicle_id": request.vehicle_id,
                        "rental_company_id": request.rental_company_id,
                    },
                )
                self._notify(notification_events.trip_request_assigned(request, self._context(request)))

            self._log_operation(
                "Trip request assigned",
                request.id,
                {"vehicle_id": request.vehicle_id, "rental_company_id": request.rental_company_id},
            )
            return ServiceResult.success(request, message="Trip request assigned")
        except Exception as e:
            return self._handle_exception(e, "assign trip request", request_id)

    def approve(self, request_id: Any, actor: Union[ActorContext, Dict[str, Any]]) -> ServiceResult[TripRequest]:
        """Approve an assignment. The vehicle stays claimed."""
        try:
            actor = self._actor(actor)
            with self.transaction():
                request = self._get(request_id)
                TRIP_TRANSITIONS.validate(request.status, TripRequestStatus.APPROVED, request.id)
                self.repository.update(
                    request,
                    {"status": TripRequestStatus.APPROVED, "approved_by": actor.user_id, "approved_at": utc_now()},
                )
                self._audit("APPROVE", ENTITY, request.id, actor)
                self._notify(notification_events.trip_request_approved(request, self._context(request)))

            self._log_operation("Trip request approved", request.id)
            return ServiceResult.success(request, message="Trip request approved")
        except Exception as e:
            return self._handle_exception(e, "approve trip request", request_id)

    def reject(self, request_id: Any, actor: Union[ActorContext, Dict[str, Any]]) -> ServiceResult[TripRequest]:
        """Reject an assignment and release any claimed pool vehicle."""
        try:
            actor = self._actor(actor)
            with self.transaction():
                request = self._get(request_id)
                TRIP_TRANSITIONS.validate(request.status, TripRequestStatus.REJECTED, request.id)
                self._release_claim(request, VehicleStatus.AVAILABLE)
                self.repository.update(
                    request,
                    {"status": TripRequestStatus.REJECTED, "rejected_by": actor.user_id, "rejected_at": utc_now()},
                )
                self._audit("REJECT", ENTITY, request.id, actor, {"vehicle_id": request.vehicle_id})
                self._notify(notification_events.trip_request_rejected(request, self._context(request)))

            self._log_operation("Trip request rejected", request.id)
            return ServiceResult.success(request, message="Trip request rejected")
        except Exception as e:
            return self._handle_exception(e, "reject trip request", request_id)

    def cancel(self, request_id: Any, actor: Union[ActorContext, Dict[str, Any]]) -> ServiceResult[TripRequest]:
        """
        Cancel a PENDING, ASSIGNED or APPROVED request. Only the creator
        may cancel. A held vehicle claim is released.
        """
        try:
            actor = self._actor(actor)
            with self.transaction():
                request = self._get(request_id)
                TRIP_TRANSITIONS.validate(request.status, TripRequestStatus.CANCELLED, request.id)
                self._ensure_creator(request, actor, "cancel the request")
                self._release_claim(request, VehicleStatus.AVAILABLE)
                self.repository.update(
                    request,
                    {"status": TripRequestStatus.CANCELLED, "cancelled_by": actor.user_id, "cancelled_at": utc_now()},
                )
                self._audit("CANCEL", ENTITY, request.id, actor, {"vehicle_id": request.vehicle_id})

            self._log_operation("Trip request cancelled", request.id)
            return ServiceResult.success(request, message="Trip request cancelled")
        except Exception as e:
            return self._handle_exception(e, "cancel trip request", request_id)

    def mark_in_transit(
        self,
        request_id: Any,
        actor: Union[ActorContext, Dict[str, Any]],
    ) -> ServiceResult[TripRequest]:
        """The creator picks up the vehicle; a pool vehicle moves to IN_TRANSIT."""
        try:
            actor = self._actor(actor)
            with self.transaction():
                request = self._get(request_id)
                TRIP_TRANSITIONS.validate(request.status, TripRequestStatus.IN_TRANSIT, request.id)
                self._ensure_creator(request, actor, "mark the request in transit")
                self._release_claim(request, VehicleStatus.IN_TRANSIT)
                self.repository.update(request, {"status": TripRequestStatus.IN_TRANSIT, "in_transit_at": utc_now()})
                self._audit("IN_TRANSIT", ENTITY, request.id, actor, {"vehicle_id": request.vehicle_id})
                self._notify(notification_events.vehicle_in_transit(request, self._context(request)))

            self._log_operation("Trip request in transit", request.id)
            return ServiceResult.success(request, message="Trip request in transit")
        except Exception as e:
            return self._handle_exception(e, "mark trip request in transit", request_id)

    def confirm_return(
        self,
        request_id: Any,
        data: Optional[Union[ReturnVehicle, Dict[str, Any]]],
        actor: Union[ActorContext, Dict[str, Any]],
    ) -> ServiceResult[TripRequest]:
        """
        Close the trip: record condition notes and, for a pool vehicle, the
        odometer reading, then release the vehicle to AVAILABLE.
        """
        try:
            actor = self._actor(actor)
            details = self._validate_input(ReturnVehicle, data or {})
            if details.mileage is not None and details.mileage < 0:
                raise ValidationError("Mileage cannot be negative", field="mileage")

            with self.transaction():
                request = self._get(request_id)
                TRIP_TRANSITIONS.validate(request.status, TripRequestStatus.RETURNED, request.id)

                if request.holds_vehicle_claim and details.mileage is not None:
                    self.registry.record_mileage(request.vehicle_id, details.mileage)
                self._release_claim(request, VehicleStatus.AVAILABLE)

                self.repository.update(
                    request,
                    {
                        "status": TripRequestStatus.RETURNED,
                        "return_notes": details.notes,
                        "return_mileage": details.mileage,
                        "returned_by": actor.user_id,
                        "returned_at": utc_now(),
                    },
                )
                self._audit(
                    "RETURN", ENTITY, request.id, actor,
                    {"vehicle_id": request.vehicle_id, "mileage": details.mileage},
                )
                self._notify(notification_events.vehicle_returned(request, self._context(request)))

            self._log_operation("Trip request returned", request.id)
            return ServiceResult.success(request, message="Vehicle returned")
        except Exception as e:
            return self._handle_exception(e, "confirm trip return", request_id)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_request(self, request_id: Any) -> ServiceResult[TripRequest]:
        try:
            return ServiceResult.success(self._get(request_id))
        except Exception as e:
            return self._handle_exception(e, "get trip request", request_id)

    def list_requests(
        self,
        filters: Optional[Union[TripRequestFilter, Dict[str, Any]]] = None,
    ) -> ServiceResult[List[TripRequest]]:
        try:
            criteria = self._validate_input(TripRequestFilter, filters or {})
            requests = self.repository.search(
                status=criteria.status,
                vehicle_type=criteria.vehicle_type,
                requester_id=criteria.requester_id,
                vehicle_id=criteria.vehicle_id,
                from_date=ensure_utc(criteria.from_date),
                to_date=ensure_utc(criteria.to_date),
                skip=criteria.skip,
                limit=criteria.limit,
            )
            return ServiceResult.success(requests, metadata={"count": len(requests)})
        except Exception as e:
            return self._handle_exception(e, "list trip requests")

    def get_requests_by_user(self, user_id: str) -> ServiceResult[List[TripRequest]]:
        try:
            return ServiceResult.success(self.repository.search(requester_id=str(user_id), limit=None))
        except Exception as e:
            return self._handle_exception(e, "get trip requests by user", user_id)

    def get_pending_requests(self) -> ServiceResult[List[TripRequest]]:
        """PENDING requests, oldest first, for the garage to assign."""
        try:
            return ServiceResult.success(self.repository.find_by_status_oldest_first(TripRequestStatus.PENDING))
        except Exception as e:
            return self._handle_exception(e, "get pending trip requests")

    def get_assigned_requests(self) -> ServiceResult[List[TripRequest]]:
        """ASSIGNED requests, oldest first, awaiting admin approval."""
        try:
            return ServiceResult.success(self.repository.find_by_status_oldest_first(TripRequestStatus.ASSIGNED))
        except Exception as e:
            return self._handle_exception(e, "get assigned trip requests")

    def get_active_requests_for_vehicle(self, vehicle_id: Any) -> ServiceResult[List[TripRequest]]:
        try:
            return ServiceResult.success(self.repository.find_active_for_vehicle(vehicle_id))
        except Exception as e:
            return self._handle_exception(e, "get active trip requests for vehicle", vehicle_id)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _get(self, request_id: Any) -> TripRequest:
        return self.repository.get_by_id(request_id)

    @staticmethod
    def _validate_window(departure: datetime, return_time: datetime, check_past: bool) -> None:
        if departure >= return_time:
            raise ValidationError("Return time must be after departure time", field="return_time")
        if check_past and departure < datetime.now(timezone.utc):
            raise ValidationError("Departure time cannot be in the past", field="departure_time")

    @staticmethod
    def _validate_target(target: AssignVehicle) -> None:
        if target.is_rental:
            if not target.rental_company_id:
                raise ValidationError(
                    "Rental company ID is required for rental assignments", field="rental_company_id"
                )
            if target.vehicle_id:
                raise ValidationError("A rental assignment cannot name a pool vehicle", field="vehicle_id")
        else:
            if not target.vehicle_id:
                raise ValidationError("Vehicle ID is required for company vehicle assignments", field="vehicle_id")
            if target.rental_company_id:
                raise ValidationError(
                    "A company vehicle assignment cannot name a rental company", field="rental_company_id"
                )

    def _ensure_claimable(self, vehicle_id: Any, exclude_request_id: Optional[Any] = None) -> None:
        try:
            self.registry.ensure_claimable(vehicle_id, exclude_request_id=exclude_request_id, lock=True)
        except VehicleNotAvailableError as e:
            raise self._as_conflict(e) from e

    @staticmethod
    def _as_conflict(error: VehicleNotAvailableError) -> ConflictError:
        return ConflictError(error.message, details=error.details)

    @staticmethod
    def _ensure_creator(request: TripRequest, actor: ActorContext, action: str) -> None:
        if request.requester_id != actor.user_id:
            raise ForbiddenError(
                f"Only the request creator can {action}",
                details={"request_id": request.id, "requester_id": request.requester_id},
            )

    def _release_claim(self, request: TripRequest, into_status: VehicleStatus) -> None:
        """Release the request's pool vehicle if, and only if, it holds the claim."""
        if request.holds_vehicle_claim:
            self.registry.release(request.vehicle_id, into_status, from_statuses=TRIP_CLAIM_STATUSES)

    def _context(self, request: TripRequest) -> Dict[str, Any]:
        context: Dict[str, Any] = {
            "departure_location": request.departure_location,
            "destination": request.destination,
            "departure_time": ensure_utc(request.departure_time).isoformat() if request.departure_time else None,
        }
        vehicle = self.registry.repository.find_by_id(request.vehicle_id)
        if vehicle is not None:
            context["vehicle"] = {"model": vehicle.model, "license_plate": vehicle.license_plate}
        company = self.rental_company_repository.find_by_id(request.rental_company_id)
        if company is not None:
            context["rental_company"] = company.name
        return context
