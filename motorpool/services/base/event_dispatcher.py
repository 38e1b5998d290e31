"""
Post-commit event dispatcher.

Services collect audit and notification events while a unit of work is
open; the dispatcher hands them to the event bus only after the commit.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Iterable, List, Optional

from motorpool.core.events import BaseEvent, EventBus
from motorpool.core.logging import get_logger


@dataclass
class DispatchedEvent:
    """Result of event dispatch operation."""

    event: BaseEvent
    dispatched: bool
    error: Optional[str] = None
    dispatched_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class DispatchResult:
    """Aggregated result of multiple event dispatches."""

    total: int = 0
    successful: int = 0
    failed: int = 0
    events: List[DispatchedEvent] = field(default_factory=list)

    @property
    def success_rate(self) -> float:
        return (self.successful / self.total * 100) if self.total > 0 else 0.0


class EventDispatcher:
    """
    Publishes committed events to the event bus.

    Publishing never raises: a failed publish is logged and reported in
    the DispatchResult, and the committed transition stands.
    """

    def __init__(self, bus: EventBus):
        self.bus = bus
        self._logger = get_logger(self.__class__.__name__)
        self._filters: List[Callable[[BaseEvent], bool]] = []

    def add_filter(self, predicate: Callable[[BaseEvent], bool]) -> None:
        """Only events for which every filter returns True are published."""
        self._filters.append(predicate)

    def dispatch(self, event: BaseEvent) -> DispatchedEvent:
        """
        Dispatch a single event.
        """
        if not all(predicate(event) for predicate in self._filters):
            self._logger.debug(
                f"Event filtered out: {event.event_type}",
                extra={"event_type": event.event_type},
            )
            return DispatchedEvent(event=event, dispatched=False, error="Filtered by dispatch filter")

        try:
            self.bus.publish(event)
        except Exception as e:
            self._logger.warning(
                f"Event dispatch failed: {e}",
                extra={"event_type": event.event_type, "event_id": event.event_id},
            )
            return DispatchedEvent(event=event, dispatched=False, error=str(e))

        self._logger.debug(
            f"Event dispatched: {event.event_type}",
            extra={"event_type": event.event_type, "event_id": event.event_id},
        )
        return DispatchedEvent(event=event, dispatched=True)

    def dispatch_all(self, events: Iterable[BaseEvent]) -> DispatchResult:
        """Dispatch events in order."""
        result = DispatchResult()
        for event in events:
            outcome = self.dispatch(event)
            result.total += 1
            if outcome.dispatched:
                result.successful += 1
            else:
                result.failed += 1
            result.events.append(outcome)
        return result
