"""
Tests for the event bus, post-commit dispatch and transition tables.
"""

import pytest

from motorpool.core.events import AUDIT_EVENT, AuditEvent, BaseEvent, EventBus, NotificationEvent
from motorpool.core.exceptions import ConflictError, InvalidTransitionError
from motorpool.models.base import TripRequestStatus
from motorpool.models.trip import RentalCompany
from motorpool.services.base import ErrorCode, EventDispatcher, TransitionTable
from motorpool.services.trip import TRIP_TRANSITIONS


class TestEventBus:
    """Test delivery semantics of the event bus."""

    def test_events_queue_until_drained(self):
        bus = EventBus()
        seen = []
        bus.subscribe("ping", seen.append)

        bus.emit("ping", {"n": 1})

        assert seen == []
        assert bus.pending == 1
        assert bus.drain() == 1
        assert [e.data["n"] for e in seen] == [1]

    def test_handler_failure_is_contained(self):
        bus = EventBus()
        seen = []

        def broken(event):
            raise RuntimeError("mailer down")

        bus.subscribe("ping", broken)
        bus.subscribe("ping", seen.append)
        bus.emit("ping")
        bus.drain()

        assert len(seen) == 1
        assert seen[0].processed is False
        assert bus.get_stats()["failed_deliveries"] == 1

    def test_unsubscribe(self):
        bus = EventBus()
        seen = []
        handler = bus.subscribe("ping", seen.append)
        bus.unsubscribe("ping", handler)

        bus.emit("ping")
        bus.drain()

        assert seen == []

    def test_background_worker_delivers_on_stop(self):
        bus = EventBus(poll_interval=0.01)
        seen = []
        bus.subscribe("ping", seen.append)

        bus.start()
        bus.emit("ping")
        bus.stop()

        assert len(seen) == 1


class TestEventDispatcher:
    """Test dispatch filters and failure reporting."""

    def test_filters_drop_events(self, bus, recorder):
        dispatcher = EventDispatcher(bus)
        dispatcher.add_filter(lambda event: event.event_type == AUDIT_EVENT)

        result = dispatcher.dispatch_all([
            AuditEvent("CREATE", "Vehicle", "v-1"),
            NotificationEvent("VEHICLE_RETURNED", "TripRequest", "t-1"),
        ])

        assert (result.total, result.successful, result.failed) == (2, 1, 1)
        assert [e.event_type for e in recorder.flush()] == [AUDIT_EVENT]

    def test_publish_failure_is_reported(self):
        class BrokenBus(EventBus):
            def publish(self, event):
                raise RuntimeError("queue closed")

        result = EventDispatcher(BrokenBus()).dispatch_all([BaseEvent("ping")])

        assert result.failed == 1
        assert result.events[0].error == "queue closed"
        assert result.success_rate == 0.0


class TestUnitOfWork:
    """Test post-commit event publication in BaseService.transaction."""

    def test_events_published_after_commit(self, rentals, admin, recorder):
        with rentals.transaction():
            rentals.repository.create(RentalCompany(name="Acme", is_active=True))
            rentals._audit("CREATE", "RentalCompany", "c-1", admin)
            assert rentals.bus.pending == 0

        assert recorder.audit_actions() == ["CREATE"]

    def test_rollback_discards_events_and_writes(self, rentals, admin, recorder):
        with pytest.raises(ConflictError):
            with rentals.transaction():
                rentals.repository.create(RentalCompany(name="Acme", is_active=True))
                rentals._audit("CREATE", "RentalCompany", "c-1", admin)
                raise ConflictError("boom")

        assert recorder.flush() == []
        assert rentals.list().data == []

    def test_nested_units_commit_once(self, db, rentals, admin, recorder):
        with rentals.transaction():
            with rentals.transaction():
                rentals.repository.create(RentalCompany(name="Inner", is_active=True))
                rentals._audit("CREATE", "RentalCompany", "inner", admin)
            assert rentals.in_transaction
            assert recorder.flush() == []
            rentals._audit("UPDATE", "RentalCompany", "inner", admin)

        assert not rentals.in_transaction
        assert recorder.audit_actions() == ["CREATE", "UPDATE"]

    def test_inner_failure_rolls_back_outer_work(self, rentals, admin, recorder):
        with pytest.raises(ConflictError):
            with rentals.transaction():
                rentals.repository.create(RentalCompany(name="Outer", is_active=True))
                with rentals.transaction():
                    raise ConflictError("boom")

        assert rentals.list().data == []

    def test_event_outside_transaction_is_published_immediately(self, rentals, admin, recorder):
        rentals._audit("PING", "RentalCompany", "c-1", admin)

        assert recorder.audit_actions() == ["PING"]

    def test_audit_carries_actor(self, rentals, admin, recorder):
        rentals.create({"name": "Acme"}, admin).unwrap()

        audit = recorder.audits[0]
        assert audit.actor_id == admin.user_id
        assert audit.department == admin.department.value

    def test_invalid_actor_is_rejected(self, rentals):
        result = rentals.create({"name": "Acme"}, {"user_id": ""})

        assert result.error_code == ErrorCode.INVALID_INPUT


class TestTransitionTable:
    """Test transition table lookups."""

    def test_terminal_states(self):
        for status in (TripRequestStatus.RETURNED, TripRequestStatus.REJECTED, TripRequestStatus.CANCELLED):
            assert TRIP_TRANSITIONS.is_terminal(status)
        assert not TRIP_TRANSITIONS.is_terminal(TripRequestStatus.PENDING)

    def test_validate_raises_with_context(self):
        with pytest.raises(InvalidTransitionError) as info:
            TRIP_TRANSITIONS.validate(TripRequestStatus.RETURNED, TripRequestStatus.ASSIGNED, "t-1")

        assert info.value.error_code == ErrorCode.INVALID_TRANSITION

    def test_statuses_include_targets(self):
        table = TransitionTable("Thing", {"open": {"closed"}})

        assert table.statuses == frozenset({"open", "closed"})
        assert table.allowed_targets("closed") == frozenset()
