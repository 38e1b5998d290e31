"""
Parts purchase request workflow.

The garage asks to buy parts from a vendor; an admin approves or rejects
the request while it is PENDING_APPROVAL. Both decisions are final.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from sqlalchemy.orm import Session

from motorpool.core.events import EventBus
from motorpool.models.base import PurchaseRequestStatus, ensure_utc, utc_now
from motorpool.models.parts import PurchaseRequest
from motorpool.repositories.parts import PurchaseRequestRepository
from motorpool.schemas.common import ActorContext
from motorpool.schemas.parts import PurchaseRequestCreate, PurchaseRequestFilter
from motorpool.services.base import BaseService, ServiceResult, TransitionTable
from motorpool.services.notifications import notification_events

ENTITY = "PurchaseRequest"

PURCHASE_TRANSITIONS = TransitionTable(
    ENTITY,
    {
        PurchaseRequestStatus.PENDING_APPROVAL: {
            PurchaseRequestStatus.APPROVED,
            PurchaseRequestStatus.REJECTED,
        },
        PurchaseRequestStatus.APPROVED: set(),
        PurchaseRequestStatus.REJECTED: set(),
    },
)


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    value = ensure_utc(value)
    return value.astimezone(timezone.utc) if value is not None else None


class PurchaseRequestWorkflow(BaseService[PurchaseRequest, PurchaseRequestRepository]):
    """
    Approval flow for buying parts.
    """

    def __init__(self, db_session: Session, bus: Optional[EventBus] = None):
        super().__init__(PurchaseRequestRepository(db_session), db_session, bus)

    def create(
        self,
        data: Union[PurchaseRequestCreate, Dict[str, Any]],
        actor: Union[ActorContext, Dict[str, Any]],
    ) -> ServiceResult[PurchaseRequest]:
        try:
            actor = self._actor(actor)
            params = self._validate_input(PurchaseRequestCreate, data)

            with self.transaction():
                request = self.repository.create(
                    PurchaseRequest(
                        part_name=params.part_name,
                        quantity=params.quantity,
                        estimated_cost=params.estimated_cost,
                        vendor=params.vendor,
                        status=PurchaseRequestStatus.PENDING_APPROVAL,
                        requested_by=actor.user_id,
                    )
                )
                self._audit(
                    "CREATE", ENTITY, request.id, actor,
                    {"part_name": request.part_name, "quantity": request.quantity, "vendor": request.vendor},
                )
                self._notify(notification_events.purchase_request_created(request, self._context(request)))

            self._log_operation("Purchase request created", request.id, {"part_name": request.part_name})
            return ServiceResult.success(request, message="Purchase request created")
        except Exception as e:
            return self._handle_exception(e, "create purchase request")

    def approve(
        self,
        request_id: Any,
        actor: Union[ActorContext, Dict[str, Any]],
    ) -> ServiceResult[PurchaseRequest]:
        return self._decide(request_id, actor, PurchaseRequestStatus.APPROVED)

    def reject(
        self,
        request_id: Any,
        actor: Union[ActorContext, Dict[str, Any]],
    ) -> ServiceResult[PurchaseRequest]:
        return self._decide(request_id, actor, PurchaseRequestStatus.REJECTED)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_request(self, request_id: Any) -> ServiceResult[PurchaseRequest]:
        try:
            return ServiceResult.success(self.repository.get_by_id(request_id))
        except Exception as e:
            return self._handle_exception(e, "get purchase request", request_id)

    def list_requests(
        self,
        filters: Optional[Union[PurchaseRequestFilter, Dict[str, Any]]] = None,
    ) -> ServiceResult[List[PurchaseRequest]]:
        """Requests newest first, by status and creation-time window."""
        try:
            criteria = self._validate_input(PurchaseRequestFilter, filters or {})
            requests = self.repository.search(
                status=criteria.status,
                created_from=_as_utc(criteria.from_date),
                created_to=_as_utc(criteria.to_date),
                skip=criteria.skip,
                limit=criteria.limit,
            )
            return ServiceResult.success(requests, metadata={"count": len(requests)})
        except Exception as e:
            return self._handle_exception(e, "list purchase requests")

    def get_pending_requests(self) -> ServiceResult[List[PurchaseRequest]]:
        """Requests awaiting a decision, oldest first."""
        try:
            return ServiceResult.success(self.repository.find_pending_oldest_first())
        except Exception as e:
            return self._handle_exception(e, "get pending purchase requests")

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _decide(
        self,
        request_id: Any,
        actor: Union[ActorContext, Dict[str, Any]],
        decision: PurchaseRequestStatus,
    ) -> ServiceResult[PurchaseRequest]:
        approving = decision == PurchaseRequestStatus.APPROVED
        verb = "approve" if approving else "reject"
        try:
            actor = self._actor(actor)
            with self.transaction():
                request = self.repository.get_by_id(request_id)
                PURCHASE_TRANSITIONS.validate(request.status, decision, request.id)
                stamp = "approved" if approving else "rejected"
                self.repository.update(
                    request,
                    {"status": decision, f"{stamp}_by": actor.user_id, f"{stamp}_at": utc_now()},
                )
                self._audit(verb.upper(), ENTITY, request.id, actor)
                builder = (
                    notification_events.purchase_request_approved
                    if approving
                    else notification_events.purchase_request_rejected
                )
                self._notify(builder(request, self._context(request)))

            self._log_operation(f"Purchase request {stamp}", request.id)
            return ServiceResult.success(request, message=f"Purchase request {stamp}")
        except Exception as e:
            return self._handle_exception(e, f"{verb} purchase request", request_id)

    @staticmethod
    def _context(request: PurchaseRequest) -> Dict[str, Any]:
        return {
            "part_name": request.part_name,
            "quantity": request.quantity,
            "vendor": request.vendor,
        }
