"""
Parts ledger: the parts catalogue and the parts consumed by maintenance.

QUANTITY parts are debited with a guarded UPDATE so stock never goes
negative. A SERIAL_NUMBER part is a single unit; its usage record, backed
by a unique column, marks it as used.
"""

from typing import Any, Dict, List, Optional, Union

from sqlalchemy.orm import Session

from motorpool.config import settings
from motorpool.core.events import EventBus
from motorpool.core.exceptions import (
    ConflictError,
    DuplicateEntryError,
    InsufficientStockError,
    InvalidStateError,
    ResourceNotFoundError,
    ValidationError,
)
from motorpool.models.base import MaintenanceStatus, TrackingMode
from motorpool.models.maintenance import MaintenanceRequest
from motorpool.models.parts import MaintenancePartUsage, Part
from motorpool.repositories.maintenance import MaintenanceRequestRepository
from motorpool.repositories.parts import MaintenancePartUsageRepository, PartRepository
from motorpool.schemas.common import ActorContext
from motorpool.schemas.parts import AssignPart, PartCreate, PartFilter, PartUpdate
from motorpool.services.base import BaseService, ServiceResult

PART = "Part"
PART_USAGE = "MaintenancePartUsage"


class PartsLedger(BaseService[Part, PartRepository]):
    """
    Part catalogue and maintenance part usage.
    """

    def __init__(self, db_session: Session, bus: Optional[EventBus] = None):
        super().__init__(PartRepository(db_session), db_session, bus)
        self.usage_repository = MaintenancePartUsageRepository(db_session)
        self.maintenance_repository = MaintenanceRequestRepository(db_session)

    # -------------------------------------------------------------------------
    # Usage against maintenance
    # -------------------------------------------------------------------------

    def assign(
        self,
        data: Union[AssignPart, Dict[str, Any]],
        actor: Union[ActorContext, Dict[str, Any]],
    ) -> ServiceResult[MaintenancePartUsage]:
        """
        Record a part used by in-progress maintenance.

        QUANTITY parts are taken out of stock; SERIAL_NUMBER parts are
        assigned one unit at a time and only once.
        """
        try:
            actor = self._actor(actor)
            params = self._validate_input(AssignPart, data)

            with self.transaction():
                maintenance = self._in_progress_maintenance(params.maintenance_request_id, "assign parts to")
                part = self._get_part(params.part_id)

                if part.is_serial:
                    if params.quantity != 1:
                        raise ValidationError(
                            "Serial-number tracked parts can only be assigned one at a time",
                            field="quantity",
                        )
                    if self.usage_repository.part_in_use(part.id):
                        raise ConflictError(
                            "This serial-number tracked part is already assigned to a maintenance request",
                            details={"part_id": part.id, "serial_number": part.serial_number},
                        )
                elif not self.repository.debit_quantity(part.id, params.quantity):
                    current = self.repository.reload(part.id)
                    raise InsufficientStockError(
                        part.id, params.quantity, current.quantity if current is not None else None
                    )

                usage = self.usage_repository.create(
                    MaintenancePartUsage(
                        maintenance_request_id=maintenance.id,
                        part_id=part.id,
                        serial_part_id=part.id if part.is_serial else None,
                        quantity_used=params.quantity,
                        assigned_by=actor.user_id,
                    )
                )
                self.repository.reload(part.id)
                self._audit(
                    "ASSIGN_PART", PART_USAGE, usage.id, actor,
                    {"maintenance_request_id": maintenance.id, "part_id": part.id, "quantity": params.quantity},
                )

            self._log_operation(
                "Part assigned",
                usage.id,
                {"part_id": part.id, "maintenance_request_id": maintenance.id, "quantity": params.quantity},
            )
            return ServiceResult.success(usage, message="Part assigned")
        except Exception as e:
            return self._handle_exception(e, "assign part")

    def unassign(
        self,
        usage_id: Any,
        actor: Union[ActorContext, Dict[str, Any]],
    ) -> ServiceResult[bool]:
        """Remove a usage record and return QUANTITY stock."""
        try:
            actor = self._actor(actor)
            with self.transaction():
                usage = self.usage_repository.get_by_id(usage_id)
                self._in_progress_maintenance(usage.maintenance_request_id, "remove parts from")
                part = self.repository.find_by_id(usage.part_id, include_deleted=True)
                if part is not None and not part.is_serial:
                    self.repository.credit_quantity(part.id, usage.quantity_used)
                    self.repository.reload(part.id)

                details = {
                    "maintenance_request_id": usage.maintenance_request_id,
                    "part_id": usage.part_id,
                    "quantity": usage.quantity_used,
                }
                self.usage_repository.delete(usage)
                self._audit("UNASSIGN_PART", PART_USAGE, usage_id, actor, details)

            self._log_operation("Part unassigned", usage_id, details)
            return ServiceResult.success(True, message="Part assignment removed")
        except Exception as e:
            return self._handle_exception(e, "unassign part", usage_id)

    def get_parts_for_maintenance(self, maintenance_id: Any) -> ServiceResult[List[MaintenancePartUsage]]:
        try:
            self.maintenance_repository.get_by_id(maintenance_id)
            return ServiceResult.success(self.usage_repository.find_for_maintenance(maintenance_id))
        except Exception as e:
            return self._handle_exception(e, "get parts for maintenance", maintenance_id)

    def get_part_usage_history(self, part_id: Any) -> ServiceResult[List[MaintenancePartUsage]]:
        try:
            self._get_part(part_id)
            return ServiceResult.success(self.usage_repository.find_for_part(part_id))
        except Exception as e:
            return self._handle_exception(e, "get part usage history", part_id)

    # -------------------------------------------------------------------------
    # Catalogue
    # -------------------------------------------------------------------------

    def create_part(
        self,
        data: Union[PartCreate, Dict[str, Any]],
        actor: Union[ActorContext, Dict[str, Any]],
    ) -> ServiceResult[Part]:
        try:
            actor = self._actor(actor)
            params = self._validate_input(PartCreate, data)

            if params.tracking_mode == TrackingMode.QUANTITY:
                if params.quantity is None or params.quantity < 0:
                    raise ValidationError("Quantity is required for quantity-based tracking", field="quantity")
                if params.serial_number:
                    raise ValidationError(
                        "Serial number should not be provided for quantity-based tracking",
                        field="serial_number",
                    )
                quantity, serial_number = params.quantity, None
            else:
                if not params.serial_number:
                    raise ValidationError(
                        "Serial number is required for serial-number-based tracking", field="serial_number"
                    )
                if params.quantity is not None and params.quantity != 1:
                    raise ValidationError(
                        "Quantity must be 1 for serial-number-based tracking", field="quantity"
                    )
                quantity, serial_number = 1, params.serial_number

            with self.transaction():
                if serial_number and self.repository.find_by_serial_number(serial_number) is not None:
                    raise DuplicateEntryError(
                        f"Part with serial number {serial_number} already exists",
                        field="serial_number",
                        value=serial_number,
                    )
                part = self.repository.create(
                    Part(
                        name=params.name,
                        vehicle_type=params.vehicle_type,
                        vehicle_model=params.vehicle_model,
                        description=params.description,
                        tracking_mode=params.tracking_mode,
                        quantity=quantity,
                        serial_number=serial_number,
                    )
                )
                self._audit("CREATE", PART, part.id, actor, {"tracking_mode": part.tracking_mode.value})

            self._log_operation("Part created", part.id, {"tracking_mode": part.tracking_mode.value})
            return ServiceResult.success(part, message="Part created")
        except Exception as e:
            return self._handle_exception(e, "create part")

    def update_part(
        self,
        part_id: Any,
        changes: Union[PartUpdate, Dict[str, Any]],
        actor: Union[ActorContext, Dict[str, Any]],
    ) -> ServiceResult[Part]:
        """Edit catalogue fields. Quantity is only editable on QUANTITY parts."""
        try:
            actor = self._actor(actor)
            data = self._validate_input(PartUpdate, changes).model_dump(exclude_unset=True)

            with self.transaction():
                part = self._get_part(part_id)
                if "quantity" in data:
                    if part.is_serial:
                        raise ValidationError(
                            "Cannot update quantity for serial-number-based parts", field="quantity"
                        )
                    if data["quantity"] is None or data["quantity"] < 0:
                        raise ValidationError("Quantity cannot be negative", field="quantity")
                if "name" in data and not data["name"]:
                    raise ValidationError("Name cannot be cleared", field="name")
                if "vehicle_model" in data and not data["vehicle_model"]:
                    raise ValidationError("Vehicle model cannot be cleared", field="vehicle_model")

                self.repository.update(part, data)
                self._audit("UPDATE", PART, part.id, actor, {"fields": sorted(data)})

            return ServiceResult.success(part, message="Part updated")
        except Exception as e:
            return self._handle_exception(e, "update part", part_id)

    def adjust_quantity(
        self,
        part_id: Any,
        adjustment: int,
        actor: Union[ActorContext, Dict[str, Any]],
    ) -> ServiceResult[Part]:
        """
        Add (positive) or remove (negative) stock from a QUANTITY part.

        Raises InsufficientStock, reported as a failed result, when the
        adjustment would leave stock below zero.
        """
        try:
            actor = self._actor(actor)
            with self.transaction():
                part = self._get_part(part_id)
                if part.is_serial:
                    raise ValidationError(
                        "Cannot adjust quantity for serial-number-based parts", field="tracking_mode"
                    )
                if adjustment < 0:
                    if not self.repository.debit_quantity(part.id, -adjustment):
                        raise InsufficientStockError(part.id, -adjustment, part.quantity)
                elif adjustment > 0:
                    self.repository.credit_quantity(part.id, adjustment)
                part = self.repository.reload(part.id)
                self._audit(
                    "ADJUST_QUANTITY", PART, part.id, actor,
                    {"adjustment": adjustment, "quantity": part.quantity},
                )

            self._log_operation("Part quantity adjusted", part.id, {"adjustment": adjustment, "quantity": part.quantity})
            return ServiceResult.success(part, message="Quantity adjusted")
        except Exception as e:
            return self._handle_exception(e, "adjust part quantity", part_id)

    def delete_part(
        self,
        part_id: Any,
        actor: Union[ActorContext, Dict[str, Any]],
    ) -> ServiceResult[Part]:
        """Soft delete; usage history keeps referring to the part."""
        try:
            actor = self._actor(actor)
            with self.transaction():
                part = self._get_part(part_id)
                self.repository.soft_delete(part)
                self._audit("DELETE", PART, part.id, actor)

            self._log_operation("Part deleted", part.id)
            return ServiceResult.success(part, message="Part deleted")
        except Exception as e:
            return self._handle_exception(e, "delete part", part_id)

    def get_part(self, part_id: Any) -> ServiceResult[Part]:
        try:
            return ServiceResult.success(self._get_part(part_id))
        except Exception as e:
            return self._handle_exception(e, "get part", part_id)

    def list_parts(self, filters: Optional[Union[PartFilter, Dict[str, Any]]] = None) -> ServiceResult[List[Part]]:
        try:
            criteria = self._validate_input(PartFilter, filters or {})
            parts = self.repository.search(
                search=criteria.search,
                vehicle_type=criteria.vehicle_type,
                vehicle_model=criteria.vehicle_model,
                tracking_mode=criteria.tracking_mode,
                skip=criteria.skip,
                limit=criteria.limit,
            )
            return ServiceResult.success(parts, metadata={"count": len(parts)})
        except Exception as e:
            return self._handle_exception(e, "list parts")

    def get_low_stock_parts(self, threshold: Optional[int] = None) -> ServiceResult[List[Part]]:
        """QUANTITY parts at or below the threshold, lowest stock first."""
        try:
            limit = settings.LOW_STOCK_THRESHOLD if threshold is None else threshold
            if limit < 0:
                raise ValidationError("Threshold cannot be negative", field="threshold")
            parts = self.repository.find_low_stock(limit)
            return ServiceResult.success(parts, metadata={"threshold": limit, "count": len(parts)})
        except Exception as e:
            return self._handle_exception(e, "get low stock parts")

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _get_part(self, part_id: Any) -> Part:
        part = self.repository.find_by_id(part_id)
        if part is None:
            raise ResourceNotFoundError(PART, part_id)
        return part

    def _in_progress_maintenance(self, maintenance_id: Any, action: str) -> MaintenanceRequest:
        maintenance = self.maintenance_repository.get_by_id(maintenance_id)
        if maintenance.status != MaintenanceStatus.IN_PROGRESS:
            raise InvalidStateError(
                f"Can only {action} maintenance requests that are in progress",
                current_status=maintenance.status,
                details={"maintenance_request_id": maintenance.id},
            )
        return maintenance
