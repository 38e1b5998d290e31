"""
Base event classes for the event system.

Events are immutable facts produced by the workflow services after a
transition has been committed. Audit and notification collaborators
consume them from the event bus.
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import uuid4


AUDIT_EVENT = "audit"
NOTIFICATION_EVENT = "notification"


class BaseEvent:
    """Base class for all events in the system."""

    def __init__(self, event_type: str, data: Optional[Dict[str, Any]] = None):
        self.event_id = str(uuid4())
        self.event_type = event_type
        self.data = dict(data or {})
        self.timestamp = datetime.now(timezone.utc)
        self.processed = False

    def __str__(self) -> str:
        return f"{self.event_type}({self.event_id})"

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary."""
        return {
            "event_id": self.event_id,
            "event_type": self.event_type,
            "data": self.data,
            "timestamp": self.timestamp.isoformat(),
            "processed": self.processed
        }


class AuditEvent(BaseEvent):
    """Record of a successful transition for the audit collaborator."""

    def __init__(
        self,
        action: str,
        entity_type: str,
        entity_id: Any,
        actor_id: Optional[Any] = None,
        department: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.action = action
        self.entity_type = entity_type
        self.entity_id = str(entity_id)
        self.actor_id = str(actor_id) if actor_id is not None else None
        self.department = department
        self.details = dict(details or {})
        super().__init__(AUDIT_EVENT, {
            "action": self.action,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "actor_id": self.actor_id,
            "department": self.department,
            "details": self.details,
        })


class NotificationEvent(BaseEvent):
    """Request for the notification collaborator to inform users or departments."""

    def __init__(
        self,
        notification_type: str,
        entity_type: str,
        entity_id: Any,
        target_user_ids: Optional[List[Any]] = None,
        target_departments: Optional[List[str]] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        self.notification_type = notification_type
        self.entity_type = entity_type
        self.entity_id = str(entity_id)
        self.target_user_ids = [str(uid) for uid in (target_user_ids or [])]
        self.target_departments = list(target_departments or [])
        self.context = dict(context or {})
        super().__init__(NOTIFICATION_EVENT, {
            "type": self.notification_type,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "target_user_ids": self.target_user_ids,
            "target_departments": self.target_departments,
            "context": self.context,
        })
