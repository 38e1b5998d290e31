"""
Event handlers for the event system.
"""
from abc import ABC, abstractmethod
from threading import Lock
from typing import Callable, Dict, List
from .base_event import BaseEvent
import logging

logger = logging.getLogger(__name__)

ALL_EVENTS = "*"


class EventHandler(ABC):
    """Base class for event handlers."""

    @abstractmethod
    def handle(self, event: BaseEvent) -> None:
        """Handle the event."""


class SyncEventHandler(EventHandler):
    """Wraps a plain callable."""

    def __init__(self, handler_func: Callable[[BaseEvent], None]):
        self.handler_func = handler_func

    def handle(self, event: BaseEvent) -> None:
        self.handler_func(event)

    def __eq__(self, other) -> bool:
        if isinstance(other, SyncEventHandler):
            return self.handler_func == other.handler_func
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.handler_func)


class EventHandlerRegistry:
    """Registry for event handlers."""

    def __init__(self):
        self._handlers: Dict[str, List[EventHandler]] = {}
        self._lock = Lock()

    def register(self, event_type: str, handler: EventHandler) -> None:
        """Register an event handler."""
        with self._lock:
            self._handlers.setdefault(event_type, []).append(handler)

    def unregister(self, event_type: str, handler: EventHandler) -> None:
        """Unregister an event handler."""
        with self._lock:
            if handler in self._handlers.get(event_type, []):
                self._handlers[event_type].remove(handler)

    def get_handlers(self, event_type: str) -> List[EventHandler]:
        """Handlers for an event type, followed by wildcard handlers."""
        with self._lock:
            return list(self._handlers.get(event_type, [])) + list(self._handlers.get(ALL_EVENTS, []))

    def counts(self) -> Dict[str, int]:
        with self._lock:
            return {event_type: len(handlers) for event_type, handlers in self._handlers.items()}

    def clear(self) -> None:
        """Clear all handlers."""
        with self._lock:
            self._handlers.clear()
