"""
Inventory lifecycle workflow.

Adding a vehicle to the pool or retiring one goes through a request that
an admin approves or rejects. Approval applies the change and closes the
request in the same unit of work.
"""

from typing import Any, Dict, List, Optional, Union

from sqlalchemy.orm import Session

from motorpool.core.events import EventBus
from motorpool.core.exceptions import ConflictError, InvalidStateError, ResourceNotFoundError
from motorpool.models.base import InventoryRequestStatus, InventoryRequestType, utc_now
from motorpool.models.inventory import InventoryRequest
from motorpool.repositories.inventory import InventoryRequestRepository
from motorpool.schemas.common import ActorContext
from motorpool.schemas.inventory import InventoryDeleteCreate
from motorpool.schemas.vehicle import VehiclePayload
from motorpool.services.base import BaseService, ServiceResult, TransitionTable
from motorpool.services.notifications import notification_events
from motorpool.services.vehicle import VehicleRegistry

ENTITY = "InventoryRequest"

INVENTORY_TRANSITIONS = TransitionTable(
    ENTITY,
    {
        InventoryRequestStatus.PENDING_APPROVAL: {
            InventoryRequestStatus.APPROVED,
            InventoryRequestStatus.REJECTED,
        },
        InventoryRequestStatus.APPROVED: set(),
        InventoryRequestStatus.REJECTED: set(),
    },
)


class InventoryWorkflow(BaseService[InventoryRequest, InventoryRequestRepository]):
    """
    Approval flow for fleet additions and removals.
    """

    def __init__(
        self,
        db_session: Session,
        bus: Optional[EventBus] = None,
        registry: Optional[VehicleRegistry] = None,
    ):
        super().__init__(InventoryRequestRepository(db_session), db_session, bus)
        self.registry = registry or VehicleRegistry(db_session, self.bus)

    # -------------------------------------------------------------------------
    # Creation
    # -------------------------------------------------------------------------

    def create_add(
        self,
        payload: Union[VehiclePayload, Dict[str, Any]],
        actor: Union[ActorContext, Dict[str, Any]],
        reason: Optional[str] = None,
    ) -> ServiceResult[InventoryRequest]:
        """
        Stage a new vehicle. Plate and VIN must be unused by live vehicles
        and by other pending ADD requests.
        """
        try:
            actor = self._actor(actor)
            vehicle = self._validate_input(VehiclePayload, payload)

            with self.transaction():
                self._ensure_unique(vehicle.license_plate, vehicle.vin)
                request = self.repository.create(
                    InventoryRequest(
                        request_type=InventoryRequestType.ADD,
                        status=InventoryRequestStatus.PENDING_APPROVAL,
                        vehicle_payload=vehicle.model_dump(mode="json"),
                        license_plate=vehicle.license_plate,
                        vin=vehicle.vin,
                        reason=reason,
                        requested_by=actor.user_id,
                    )
                )
                self._audit(
                    "CREATE_ADD", ENTITY, request.id, actor,
                    {"license_plate": vehicle.license_plate, "vin": vehicle.vin},
                )
                self._notify(notification_events.inventory_request_created(request, self._context(request)))

            self._log_operation("Inventory ADD request created", request.id, {"license_plate": vehicle.license_plate})
            return ServiceResult.success(request, message="Inventory add request created")
        except Exception as e:
            return self._handle_exception(e, "create inventory add request")

    def create_delete(
        self,
        data: Union[InventoryDeleteCreate, Dict[str, Any], str],
        actor: Union[ActorContext, Dict[str, Any]],
    ) -> ServiceResult[InventoryRequest]:
        """
        Request retirement of a vehicle. Accepts a vehicle id or an
        InventoryDeleteCreate with an optional reason.
        """
        try:
            actor = self._actor(actor)
            if isinstance(data, str):
                data = {"vehicle_id": data}
            params = self._validate_input(InventoryDeleteCreate, data)

            with self.transaction():
                vehicle = self.registry.repository.find_by_id(params.vehicle_id)
                if vehicle is None:
                    raise ResourceNotFoundError("Vehicle", params.vehicle_id)
                if vehicle.is_deleted:
                    raise InvalidStateError(
                        "Vehicle is already deleted",
                        current_status=vehicle.status,
                        details={"vehicle_id": vehicle.id},
                    )
                pending = self.repository.find_pending_delete(vehicle.id)
                if pending is not None:
                    raise ConflictError(
                        "A delete request for this vehicle is already pending",
                        details={"vehicle_id": vehicle.id, "conflicting_request_id": pending.id},
                    )

                request = self.repository.create(
                    InventoryRequest(
                        request_type=InventoryRequestType.DELETE,
                        status=InventoryRequestStatus.PENDING_APPROVAL,
                        vehicle_id=vehicle.id,
                        license_plate=vehicle.license_plate,
                        vin=vehicle.vin,
                        reason=params.reason,
                        requested_by=actor.user_id,
                    )
                )
                self._audit("CREATE_DELETE", ENTITY, request.id, actor, {"vehicle_id": vehicle.id})
                self._notify(notification_events.inventory_request_created(request, self._context(request)))

            self._log_operation("Inventory DELETE request created", request.id, {"vehicle_id": vehicle.id})
            return ServiceResult.success(request, message="Inventory delete request created")
        except Exception as e:
            return self._handle_exception(e, "create inventory delete request")

    # -------------------------------------------------------------------------
    # Decisions
    # -------------------------------------------------------------------------

    def approve(
        self,
        request_id: Any,
        actor: Union[ActorContext, Dict[str, Any]],
    ) -> ServiceResult[InventoryRequest]:
        """
        ADD: re-check plate and VIN, then create the vehicle.
        DELETE: lock the vehicle, confirm nothing references it, retire it.
        """
        try:
            actor = self._actor(actor)
            with self.transaction():
                request = self._get(request_id)
                INVENTORY_TRANSITIONS.validate(request.status, InventoryRequestStatus.APPROVED, request.id)

                if request.request_type == InventoryRequestType.ADD:
                    payload = VehiclePayload.model_validate(request.vehicle_payload or {})
                    self._ensure_unique(payload.license_plate, payload.vin, exclude_id=request.id)
                    vehicle = self.registry.register_vehicle(payload)
                else:
                    vehicle = self.registry.repository.lock_by_id(request.vehicle_id)
                    if vehicle is None:
                        raise ResourceNotFoundError("Vehicle", request.vehicle_id)
                    if not self.registry.can_delete(vehicle.id):
                        raise InvalidStateError(
                            "Vehicle cannot be deleted while it is deleted or has active requests",
                            current_status=vehicle.status,
                            details={"vehicle_id": vehicle.id},
                        )
                    vehicle = self.registry.mark_deleted(vehicle.id)

                self.repository.update(
                    request,
                    {
                        "status": InventoryRequestStatus.APPROVED,
                        "vehicle_id": vehicle.id,
                        "approved_by": actor.user_id,
                        "approved_at": utc_now(),
                    },
                )
                self._audit(
                    "APPROVE", ENTITY, request.id, actor,
                    {"request_type": request.request_type.value, "vehicle_id": vehicle.id},
                )
                self._notify(notification_events.inventory_request_approved(request, self._context(request)))

            self._log_operation(
                "Inventory request approved",
                request.id,
                {"request_type": request.request_type.value, "vehicle_id": request.vehicle_id},
            )
            return ServiceResult.success(request, message="Inventory request approved")
        except Exception as e:
            return self._handle_exception(e, "approve inventory request", request_id)

    def reject(
        self,
        request_id: Any,
        actor: Union[ActorContext, Dict[str, Any]],
    ) -> ServiceResult[InventoryRequest]:
        try:
            actor = self._actor(actor)
            with self.transaction():
                request = self._get(request_id)
                INVENTORY_TRANSITIONS.validate(request.status, InventoryRequestStatus.REJECTED, request.id)
                self.repository.update(
                    request,
                    {
                        "status": InventoryRequestStatus.REJECTED,
                        "rejected_by": actor.user_id,
                        "rejected_at": utc_now(),
                    },
                )
                self._audit("REJECT", ENTITY, request.id, actor, {"request_type": request.request_type.value})
                self._notify(notification_events.inventory_request_rejected(request, self._context(request)))

            self._log_operation("Inventory request rejected", request.id)
            return ServiceResult.success(request, message="Inventory request rejected")
        except Exception as e:
            return self._handle_exception(e, "reject inventory request", request_id)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_request(self, request_id: Any) -> ServiceResult[InventoryRequest]:
        try:
            return ServiceResult.success(self._get(request_id))
        except Exception as e:
            return self._handle_exception(e, "get inventory request", request_id)

    def list_requests(
        self,
        status: Optional[InventoryRequestStatus] = None,
        request_type: Optional[InventoryRequestType] = None,
        skip: int = 0,
        limit: Optional[int] = 100,
    ) -> ServiceResult[List[InventoryRequest]]:
        try:
            requests = self.repository.search(status=status, request_type=request_type, skip=skip, limit=limit)
            return ServiceResult.success(requests, metadata={"count": len(requests)})
        except Exception as e:
            return self._handle_exception(e, "list inventory requests")

    def get_pending_requests(self) -> ServiceResult[List[InventoryRequest]]:
        return self.list_requests(status=InventoryRequestStatus.PENDING_APPROVAL, limit=None)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _get(self, request_id: Any) -> InventoryRequest:
        return self.repository.get_by_id(request_id)

    def _ensure_unique(self, license_plate: str, vin: str, exclude_id: Optional[Any] = None) -> None:
        """
        Raises:
            ConflictError: Plate or VIN used by a live vehicle or another pending ADD
        """
        self.registry.ensure_identifiers_free(license_plate, vin)
        self.registry.ensure_not_staged(license_plate, vin, exclude_request_id=exclude_id)

    @staticmethod
    def _context(request: InventoryRequest) -> Dict[str, Any]:
        return {
            "request_type": request.request_type.value,
            "license_plate": request.license_plate,
            "vin": request.vin,
        }
