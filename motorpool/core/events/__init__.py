"""
Event system: immutable post-commit facts and the bus that delivers them.
"""
from .base_event import AUDIT_EVENT, NOTIFICATION_EVENT, AuditEvent, BaseEvent, NotificationEvent
from .event_bus import EventBus, event_bus
from .event_handlers import ALL_EVENTS, EventHandler, EventHandlerRegistry, SyncEventHandler

__all__ = [
    "AUDIT_EVENT",
    "NOTIFICATION_EVENT",
    "ALL_EVENTS",
    "BaseEvent",
    "AuditEvent",
    "NotificationEvent",
    "EventBus",
    "EventHandler",
    "EventHandlerRegistry",
    "SyncEventHandler",
    "event_bus",
]
