"""
Maintenance request workflow.

A request is triaged as INTERNAL or EXTERNAL work, approved, then started,
which claims the vehicle as UNDER_MAINTENANCE. Completion releases the
vehicle and rolls its maintenance schedule forward.
"""

from decimal import Decimal
from typing import Any, Dict, List, Optional, Union

from sqlalchemy.orm import Session

from motorpool.core.events import EventBus
from motorpool.core.exceptions import (
    ConflictError,
    InvalidStateError,
    ResourceNotFoundError,
    ValidationError,
    VehicleNotAvailableError,
)
from motorpool.models.base import MaintenanceKind, MaintenanceStatus, VehicleStatus, utc_now
from motorpool.models.maintenance import MaintenanceRequest
from motorpool.models.vehicle import Vehicle
from motorpool.repositories.maintenance import MaintenanceRequestRepository
from motorpool.schemas.common import ActorContext
from motorpool.schemas.maintenance import (
    MaintenanceComplete,
    MaintenanceCreate,
    MaintenanceFilter,
    MaintenanceTriage,
)
from motorpool.services.base import BaseService, ServiceResult, TransitionTable
from motorpool.services.notifications import notification_events
from motorpool.services.vehicle import VehicleRegistry

ENTITY = "MaintenanceRequest"

MAINTENANCE_TRANSITIONS = TransitionTable(
    ENTITY,
    {
        MaintenanceStatus.PENDING: {MaintenanceStatus.PENDING_APPROVAL},
        MaintenanceStatus.PENDING_APPROVAL: {MaintenanceStatus.APPROVED, MaintenanceStatus.REJECTED},
        MaintenanceStatus.APPROVED: {MaintenanceStatus.IN_PROGRESS},
        MaintenanceStatus.IN_PROGRESS: {MaintenanceStatus.COMPLETED},
        MaintenanceStatus.REJECTED: set(),
        MaintenanceStatus.COMPLETED: set(),
    },
)


class MaintenanceWorkflow(BaseService[MaintenanceRequest, MaintenanceRequestRepository]):
    """
    Maintenance request state machine.
    """

    def __init__(
        self,
        db_session: Session,
        bus: Optional[EventBus] = None,
        registry: Optional[VehicleRegistry] = None,
    ):
        super().__init__(MaintenanceRequestRepository(db_session), db_session, bus)
        self.registry = registry or VehicleRegistry(db_session, self.bus)

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def create(
        self,
        data: Union[MaintenanceCreate, Dict[str, Any]],
        actor: Union[ActorContext, Dict[str, Any]],
    ) -> ServiceResult[MaintenanceRequest]:
        """
        Report a problem on a vehicle. The vehicle is not claimed until work
        starts, but only one open request per vehicle is allowed.
        """
        try:
            actor = self._actor(actor)
            params = self._validate_input(MaintenanceCreate, data)

            with self.transaction():
                vehicle = self.registry.repository.lock_by_id(params.vehicle_id)
                if vehicle is None:
                    raise ResourceNotFoundError("Vehicle", params.vehicle_id)
                if vehicle.is_deleted:
                    raise InvalidStateError(
                        "Cannot request maintenance for a deleted vehicle",
                        current_status=vehicle.status,
                        details={"vehicle_id": vehicle.id},
                    )
                existing = self.repository.find_active_for_vehicle(vehicle.id)
                if existing is not None:
                    raise ConflictError(
                        "Vehicle already has an active maintenance request",
                        details={
                            "vehicle_id": vehicle.id,
                            "conflicting_request_id": existing.id,
                            "conflicting_status": existing.status.value,
                        },
                    )

                request = self.repository.create(
                    MaintenanceRequest(
                        vehicle_id=vehicle.id,
                        description=params.description,
                        status=MaintenanceStatus.PENDING,
                        requested_by=actor.user_id,
                    )
                )
                self._audit("CREATE", ENTITY, request.id, actor, {"vehicle_id": vehicle.id})
                self._notify(notification_events.maintenance_created(request, self._context(vehicle)))

            self._log_operation("Maintenance request created", request.id, {"vehicle_id": vehicle.id})
            return ServiceResult.success(request, message="Maintenance request created")
        except Exception as e:
            return self._handle_exception(e, "create maintenance request")

    def triage(
        self,
        request_id: Any,
        data: Union[MaintenanceTriage, Dict[str, Any]],
        actor: Union[ActorContext, Dict[str, Any]],
    ) -> ServiceResult[MaintenanceRequest]:
        """
        Classify the work and send it for approval.
        """
        try:
            actor = self._actor(actor)
            decision = self._validate_input(MaintenanceTriage, data)
            vendor = decision.external_vendor or None

            with self.transaction():
                request = self._get(request_id)
                MAINTENANCE_TRANSITIONS.validate(request.status, MaintenanceStatus.PENDING_APPROVAL, request.id)
                if decision.kind == MaintenanceKind.EXTERNAL and not vendor:
                    raise ValidationError("External maintenance requires a vendor", field="external_vendor")
                if decision.kind == MaintenanceKind.INTERNAL and vendor:
                    raise ValidationError("Internal maintenance cannot name a vendor", field="external_vendor")
                self.repository.update(
                    request,
                    {
                        "kind": decision.kind,
                        "external_vendor": vendor,
                        "estimated_cost": decision.estimated_cost,
                        "status": MaintenanceStatus.PENDING_APPROVAL,
                        "triaged_by": actor.user_id,
                        "triaged_at": utc_now(),
                    },
                )
                self._audit(
                    "TRIAGE", ENTITY, request.id, actor,
                    {"kind": decision.kind.value, "external_vendor": vendor},
                )
                self._notify(
                    notification_events.maintenance_triaged(
                        request, {**self._context(request.vehicle), "kind": decision.kind.value}
                    )
                )

            self._log_operation("Maintenance request triaged", request.id, {"kind": decision.kind.value})
            return ServiceResult.success(request, message="Maintenance request triaged")
        except Exception as e:
            return self._handle_exception(e, "triage maintenance request", request_id)

    def approve(
        self,
        request_id: Any,
        actor: Union[ActorContext, Dict[str, Any]],
    ) -> ServiceResult[MaintenanceRequest]:
        try:
            actor = self._actor(actor)
            with self.transaction():
                request = self._get(request_id)
                MAINTENANCE_TRANSITIONS.validate(request.status, MaintenanceStatus.APPROVED, request.id)
                self.repository.update(
                    request,
                    {"status": MaintenanceStatus.APPROVED, "approved_by": actor.user_id, "approved_at": utc_now()},
                )
                self._audit("APPROVE", ENTITY, request.id, actor)
                self._notify(notification_events.maintenance_approved(request, self._context(request.vehicle)))

            self._log_operation("Maintenance request approved", request.id)
            return ServiceResult.success(request, message="Maintenance request approved")
        except Exception as e:
            return self._handle_exception(e, "approve maintenance request", request_id)

    def reject(
        self,
        request_id: Any,
        actor: Union[ActorContext, Dict[str, Any]],
    ) -> ServiceResult[MaintenanceRequest]:
        try:
            actor = self._actor(actor)
            with self.transaction():
                request = self._get(request_id)
                MAINTENANCE_TRANSITIONS.validate(request.status, MaintenanceStatus.REJECTED, request.id)
                self.repository.update(
                    request,
                    {"status": MaintenanceStatus.REJECTED, "rejected_by": actor.user_id, "rejected_at": utc_now()},
                )
                self._audit("REJECT", ENTITY, request.id, actor)
                self._notify(notification_events.maintenance_rejected(request, self._context(request.vehicle)))

            self._log_operation("Maintenance request rejected", request.id)
            return ServiceResult.success(request, message="Maintenance request rejected")
        except Exception as e:
            return self._handle_exception(e, "reject maintenance request", request_id)

    def start_work(
        self,
        request_id: Any,
        actor: Union[ActorContext, Dict[str, Any]],
    ) -> ServiceResult[MaintenanceRequest]:
        """
        Claim the vehicle as UNDER_MAINTENANCE. A vehicle out on a trip is
        not preempted; the call fails with a conflict instead.
        """
        try:
            actor = self._actor(actor)
            with self.transaction():
                request = self._get(request_id)
                MAINTENANCE_TRANSITIONS.validate(request.status, MaintenanceStatus.IN_PROGRESS, request.id)
                try:
                    self.registry.try_claim(request.vehicle_id, VehicleStatus.UNDER_MAINTENANCE)
                except VehicleNotAvailableError as e:
                    raise ConflictError(
                        "Vehicle is in use and cannot go under maintenance",
                        details={**e.details, "maintenance_request_id": request.id},
                    ) from e
                self.repository.update(
                    request,
                    {"status": MaintenanceStatus.IN_PROGRESS, "started_by": actor.user_id, "started_at": utc_now()},
                )
                self._audit("START", ENTITY, request.id, actor, {"vehicle_id": request.vehicle_id})

            self._log_operation("Maintenance work started", request.id, {"vehicle_id": request.vehicle_id})
            return ServiceResult.success(request, message="Maintenance work started")
        except Exception as e:
            return self._handle_exception(e, "start maintenance work", request_id)

    def complete(
        self,
        request_id: Any,
        data: Optional[Union[MaintenanceComplete, Dict[str, Any]]],
        actor: Union[ActorContext, Dict[str, Any]],
    ) -> ServiceResult[MaintenanceRequest]:
        """
        Finish the work, release the vehicle to AVAILABLE and set its next
        scheduled maintenance date when it has an interval.
        """
        try:
            actor = self._actor(actor)
            details = self._validate_input(MaintenanceComplete, data or {})

            with self.transaction():
                request = self._get(request_id)
                MAINTENANCE_TRANSITIONS.validate(request.status, MaintenanceStatus.COMPLETED, request.id)
                self._validate_external_cost(request, details.external_cost)

                self.registry.release(
                    request.vehicle_id,
                    VehicleStatus.AVAILABLE,
                    from_statuses=[VehicleStatus.UNDER_MAINTENANCE],
                )
                vehicle = self.registry.schedule_next_maintenance(request.vehicle_id)

                self.repository.update(
                    request,
                    {
                        "status": MaintenanceStatus.COMPLETED,
                        "external_cost": details.external_cost,
                        "completion_notes": details.completion_notes,
                        "completed_by": actor.user_id,
                        "completed_at": utc_now(),
                    },
                )
                self._audit(
                    "COMPLETE", ENTITY, request.id, actor,
                    {
                        "vehicle_id": request.vehicle_id,
                        "external_cost": str(details.external_cost) if details.external_cost is not None else None,
                        "next_maintenance_date": (
                            vehicle.next_maintenance_date.isoformat() if vehicle.next_maintenance_date else None
                        ),
                    },
                )
                self._notify(notification_events.maintenance_completed(request, self._context(vehicle)))

            self._log_operation("Maintenance completed", request.id, {"vehicle_id": request.vehicle_id})
            return ServiceResult.success(request, message="Maintenance completed")
        except Exception as e:
            return self._handle_exception(e, "complete maintenance request", request_id)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_request(self, request_id: Any) -> ServiceResult[MaintenanceRequest]:
        try:
            return ServiceResult.success(self._get(request_id))
        except Exception as e:
            return self._handle_exception(e, "get maintenance request", request_id)

    def list_requests(
        self,
        filters: Optional[Union[MaintenanceFilter, Dict[str, Any]]] = None,
    ) -> ServiceResult[List[MaintenanceRequest]]:
        try:
            criteria = self._validate_input(MaintenanceFilter, filters or {})
            requests = self.repository.search(
                status=criteria.status,
                vehicle_id=criteria.vehicle_id,
                kind=criteria.kind,
                requested_by=criteria.requested_by,
                skip=criteria.skip,
                limit=criteria.limit,
            )
            return ServiceResult.success(requests, metadata={"count": len(requests)})
        except Exception as e:
            return self._handle_exception(e, "list maintenance requests")

    def get_pending_requests(self) -> ServiceResult[List[MaintenanceRequest]]:
        """Untriaged requests, oldest first."""
        try:
            return ServiceResult.success(self.repository.find_by_status_oldest_first(MaintenanceStatus.PENDING))
        except Exception as e:
            return self._handle_exception(e, "get pending maintenance requests")

    def get_pending_approval_requests(self) -> ServiceResult[List[MaintenanceRequest]]:
        try:
            return ServiceResult.success(
                self.repository.find_by_status_oldest_first(MaintenanceStatus.PENDING_APPROVAL)
            )
        except Exception as e:
            return self._handle_exception(e, "get maintenance requests pending approval")

    def get_active_maintenance_for_vehicle(self, vehicle_id: Any) -> ServiceResult[Optional[MaintenanceRequest]]:
        try:
            return ServiceResult.success(self.repository.find_active_for_vehicle(vehicle_id))
        except Exception as e:
            return self._handle_exception(e, "get active maintenance for vehicle", vehicle_id)

    def get_maintenance_history(self, vehicle_id: Any) -> ServiceResult[List[MaintenanceRequest]]:
        """Completed maintenance on a vehicle, most recent first."""
        try:
            self.registry.get_vehicle(vehicle_id, include_deleted=True)
            return ServiceResult.success(self.repository.find_completed_for_vehicle(vehicle_id))
        except Exception as e:
            return self._handle_exception(e, "get maintenance history", vehicle_id)

    def get_maintenance_schedule(self, within_days: Optional[int] = None) -> ServiceResult[List[Vehicle]]:
        """Vehicles whose scheduled maintenance is due within the window, overdue first."""
        try:
            vehicles = self.registry.vehicles_needing_maintenance(within_days)
            return ServiceResult.success(vehicles, metadata={"count": len(vehicles)})
        except Exception as e:
            return self._handle_exception(e, "get maintenance schedule")

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _get(self, request_id: Any) -> MaintenanceRequest:
        return self.repository.get_by_id(request_id)

    @staticmethod
    def _validate_external_cost(request: MaintenanceRequest, cost: Optional[Decimal]) -> None:
        if cost is None:
            return
        if request.kind != MaintenanceKind.EXTERNAL:
            raise ValidationError("External cost applies to external maintenance only", field="external_cost")
        if cost < 0:
            raise ValidationError("External cost cannot be negative", field="external_cost")

    @staticmethod
    def _context(vehicle: Optional[Vehicle]) -> Dict[str, Any]:
        if vehicle is None:
            return {}
        return {"vehicle_id": vehicle.id, "model": vehicle.model, "license_plate": vehicle.license_plate}
