"""
Event bus implementation for the motor pool core.

Published events are queued and delivered to subscribers either by a
background worker thread or by an explicit drain(). Handler failures are
logged and dropped; they never reach the publisher.
"""

import logging
import queue
import threading
from typing import Any, Callable, Dict, List, Optional

from .base_event import BaseEvent
from .event_handlers import EventHandler, EventHandlerRegistry, SyncEventHandler


logger = logging.getLogger(__name__)


class EventBus:
    """
    Event bus for handling application events.
    """

    def __init__(self, poll_interval: float = 0.5):
        self._registry = EventHandlerRegistry()
        self._queue: "queue.Queue[BaseEvent]" = queue.Queue()
        self._running = False
        self._worker: Optional[threading.Thread] = None
        self._poll_interval = poll_interval
        self._failed_deliveries = 0

    def subscribe(self, event_type: str, handler: Callable[[BaseEvent], None]) -> EventHandler:
        """
        Subscribe a handler to an event type.

        Args:
            event_type: The type of event to subscribe to, or "*" for all events
            handler: Callable receiving the event

        Returns:
            The registered handler, usable with unsubscribe()
        """
        event_handler = handler if isinstance(handler, EventHandler) else SyncEventHandler(handler)
        self._registry.register(event_type, event_handler)
        logger.info(f"Registered handler for event type: {event_type}")
        return event_handler

    def unsubscribe(self, event_type: str, handler: EventHandler) -> None:
        """
        Unsubscribe a handler from an event type.
        """
        self._registry.unregister(event_type, handler)
        logger.info(f"Unregistered handler for event type: {event_type}")

    def publish(self, event: BaseEvent) -> None:
        """
        Queue an event for delivery. Never blocks on handlers.
        """
        logger.debug(f"Publishing event: {event}")
        self._queue.put(event)

    def emit(self, event_type: str, data: Optional[Dict[str, Any]] = None) -> None:
        """
        Emit an event by type and data.
        """
        self.publish(BaseEvent(event_type, data))

    def drain(self) -> int:
        """
        Deliver every queued event on the calling thread.

        Returns:
            Number of events processed
        """
        processed = 0
        while True:
            try:
                event = self._queue.get_nowait()
            except queue.Empty:
                break
            self._process_event(event)
            self._queue.task_done()
            processed += 1
        return processed

    def start(self) -> None:
        """Start the background delivery worker."""
        if self._running:
            logger.warning("Event bus is already running")
            return

        self._running = True
        self._worker = threading.Thread(target=self._work, name="motorpool-event-bus", daemon=True)
        self._worker.start()
        logger.info("Event bus started")

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        """Stop the worker after delivering what is already queued."""
        if not self._running:
            logger.warning("Event bus is not running")
            return

        self._running = False
        if self._worker:
            self._worker.join(timeout=timeout)
            self._worker = None

        self.drain()
        logger.info("Event bus stopped")

    def _work(self) -> None:
        logger.info("Event bus worker started")

        while self._running:
            try:
                event = self._queue.get(timeout=self._poll_interval)
            except queue.Empty:
                continue
            self._process_event(event)
            self._queue.task_done()

        logger.info("Event bus worker stopped")

    def _process_event(self, event: BaseEvent) -> None:
        handlers = self._registry.get_handlers(event.event_type)

        if not handlers:
            logger.debug(f"No handlers found for event type: {event.event_type}")
            return

        failures = 0
        for handler in handlers:
            try:
                handler.handle(event)
            except Exception as e:
                failures += 1
                self._failed_deliveries += 1
                logger.error(
                    f"Error handling event {event}: {e}",
                    exc_info=True,
                    extra={"event_type": event.event_type, "event_id": event.event_id},
                )

        event.processed = failures == 0

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def get_stats(self) -> Dict[str, Any]:
        """Get statistics about the event bus."""
        return {
            "running": self._running,
            "queue_size": self._queue.qsize(),
            "failed_deliveries": self._failed_deliveries,
            "registered_handlers": self._registry.counts(),
        }


# Global event bus instance
event_bus = EventBus()


__all__: List[str] = ["EventBus", "event_bus"]
