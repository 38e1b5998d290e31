"""
Base service class providing common functionality for all services.
"""

from abc import ABC
from contextlib import contextmanager
from typing import Any, Dict, Generic, Iterator, List, Optional, Type, TypeVar, Union

from pydantic import BaseModel as PydanticModel
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from motorpool.core.events import AuditEvent, BaseEvent, EventBus, NotificationEvent, event_bus
from motorpool.core.exceptions import BaseAppException, ErrorCode, ValidationError
from motorpool.core.logging import get_logger
from motorpool.repositories.base import BaseRepository
from motorpool.schemas.common import ActorContext
from motorpool.services.base.event_dispatcher import EventDispatcher
from motorpool.services.base.service_result import ErrorSeverity, ServiceError, ServiceResult

TModel = TypeVar("TModel")
TRepo = TypeVar("TRepo", bound=BaseRepository)
TSchema = TypeVar("TSchema", bound=PydanticModel)

# Unit-of-work bookkeeping shared by every service bound to the same session
_TX_DEPTH_KEY = "motorpool.tx_depth"
_PENDING_EVENTS_KEY = "motorpool.pending_events"


class BaseService(ABC, Generic[TModel, TRepo]):
    """
    Base service with common behaviors:
    - Shared logger and db session
    - Consistent error handling via ServiceResult
    - Unit-of-work transactions with post-commit event dispatch
    """

    def __init__(
        self,
        repository: TRepo,
        db_session: Session,
        bus: Optional[EventBus] = None,
    ):
        """
        Initialize base service.

        Args:
            repository: Repository instance for data access
            db_session: SQLAlchemy database session
            bus: Event bus receiving committed events (global bus by default)
        """
        self.repository: TRepo = repository
        self.db: Session = db_session
        self.bus: EventBus = bus if bus is not None else event_bus
        self._dispatcher = EventDispatcher(self.bus)
        self._logger = get_logger(self.__class__.__name__)

    # -------------------------------------------------------------------------
    # Exception & Error Handling
    # -------------------------------------------------------------------------

    def _handle_exception(
        self,
        exception: Exception,
        operation: str,
        entity_ref: Optional[Any] = None,
        additional_context: Optional[Dict[str, Any]] = None,
    ) -> ServiceResult:
        """
        Convert exception to a ServiceResult failure with logging.

        Domain exceptions keep their own code and details and are logged at
        WARNING; anything else is logged at ERROR with the traceback.
        """
        context = {
            "operation": operation,
            "entity_ref": str(entity_ref) if entity_ref is not None else None,
            "exception_type": type(exception).__name__,
        }
        if additional_context:
            context.update(additional_context)

        if isinstance(exception, BaseAppException):
            context["error_code"] = exception.error_code.value
            self._logger.warning(f"{operation} rejected: {exception.message}", extra=context)
            return ServiceResult.failure(ServiceError.from_app_exception(exception))

        if isinstance(exception, PydanticValidationError):
            converted = self._from_pydantic(exception)
            self._logger.warning(f"{operation} rejected: {converted.message}", extra=context)
            return ServiceResult.failure(ServiceError.from_app_exception(converted))

        self._logger.error(
            f"Error during {operation}: {exception}",
            exc_info=True,
            extra=context,
        )

        return ServiceResult.failure(
            ServiceError(
                code=self._map_exception_to_error_code(exception),
                message=f"Failed to {operation}",
                details={
                    "error": str(exception),
                    "entity_ref": str(entity_ref) if entity_ref is not None else None,
                },
                severity=ErrorSeverity.CRITICAL,
            )
        )

    def _map_exception_to_error_code(self, exception: Exception) -> ErrorCode:
        """
        Map non-domain exception types to error codes.
        """
        exception_mapping = {
            IntegrityError: ErrorCode.CONFLICT,
            SQLAlchemyError: ErrorCode.DATABASE_ERROR,
            ValueError: ErrorCode.INVALID_INPUT,
        }

        for exc_type, error_code in exception_mapping.items():
            if isinstance(exception, exc_type):
                return error_code

        return ErrorCode.INTERNAL_ERROR

    @staticmethod
    def _from_pydantic(exception: PydanticValidationError) -> ValidationError:
        field_errors: Dict[str, List[str]] = {}
        for error in exception.errors():
            location = ".".join(str(part) for part in error.get("loc", ())) or "__root__"
            field_errors.setdefault(location, []).append(error.get("msg", "invalid value"))
        first_field = next(iter(field_errors), None)
        return ValidationError(
            message="Invalid input",
            field=first_field if first_field != "__root__" else None,
            field_errors=field_errors,
        )

    # -------------------------------------------------------------------------
    # Input coercion
    # -------------------------------------------------------------------------

    def _validate_input(self, schema: Type[TSchema], data: Union[TSchema, Dict[str, Any], Any]) -> TSchema:
        """
        Return ``data`` as an instance of ``schema``.

        Raises:
            ValidationError: If the data does not satisfy the schema
        """
        if isinstance(data, schema):
            return data
        if isinstance(data, PydanticModel):
            data = data.model_dump(exclude_unset=True)
        try:
            return schema.model_validate(data)
        except PydanticValidationError as e:
            raise self._from_pydantic(e) from e

    def _actor(self, actor: Union[ActorContext, Dict[str, Any]]) -> ActorContext:
        return self._validate_input(ActorContext, actor)

    # -------------------------------------------------------------------------
    # Transaction Management
    # -------------------------------------------------------------------------

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """
        Unit of work with automatic commit or rollback.

        Nested calls, including calls from other services sharing the
        session, join the outermost unit of work. Events queued inside it
        are published after the outermost commit and discarded on rollback.

        Example:
            with self.transaction():
                self.repository.create(entity)
        """
        info = self.db.info
        depth = info.get(_TX_DEPTH_KEY, 0)
        if depth == 0:
            info[_PENDING_EVENTS_KEY] = []
        info[_TX_DEPTH_KEY] = depth + 1
        try:
            yield self.db
            if depth == 0:
                self._commit()
        except Exception:
            if depth == 0:
                self._rollback()
                info[_PENDING_EVENTS_KEY] = []
            raise
        finally:
            info[_TX_DEPTH_KEY] = depth

        if depth == 0:
            events = info.pop(_PENDING_EVENTS_KEY, [])
            if events:
                self._dispatcher.dispatch_all(events)

    @property
    def in_transaction(self) -> bool:
        return self.db.info.get(_TX_DEPTH_KEY, 0) > 0

    def _commit(self) -> None:
        """Commit the current transaction with error handling."""
        try:
            self.db.commit()
            self._logger.debug("Transaction committed successfully")
        except Exception as e:
            self._logger.error(f"Commit failed: {e}", exc_info=True)
            self._rollback()
            raise

    def _rollback(self) -> None:
        """Rollback the current transaction, suppressing rollback errors."""
        try:
            self.db.rollback()
            self._logger.debug("Transaction rolled back")
        except Exception as e:
            # Rollback errors must not mask the original error
            self._logger.warning(f"Rollback failed: {e}")

    # -------------------------------------------------------------------------
    # Event emission
    # -------------------------------------------------------------------------

    def _queue_event(self, event: BaseEvent) -> None:
        """
        Queue an event for publication after the current unit of work
        commits. Outside a unit of work the event is published immediately.
        """
        if not self.in_transaction:
            self._dispatcher.dispatch(event)
            return
        self.db.info.setdefault(_PENDING_EVENTS_KEY, []).append(event)

    def _audit(
        self,
        action: str,
        entity_type: str,
        entity_id: Any,
        actor: Optional[ActorContext] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        department = actor.department.value if actor and actor.department else None
        self._queue_event(
            AuditEvent(
                action=action,
                entity_type=entity_type,
                entity_id=entity_id,
                actor_id=actor.user_id if actor else None,
                department=department,
                details=details,
            )
        )

    def _notify(self, event: Optional[NotificationEvent]) -> None:
        if event is not None:
            self._queue_event(event)

    # -------------------------------------------------------------------------
    # Utility Methods
    # -------------------------------------------------------------------------

    def _log_operation(
        self,
        operation: str,
        entity_ref: Optional[Any] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Log service operation with standardized format.
        """
        context = {"entity_ref": str(entity_ref) if entity_ref else None}
        if extra:
            context.update(extra)
        self._logger.info(f"{operation}", extra=context)
