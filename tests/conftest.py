"""
Shared fixtures: an in-memory SQLite database per test, a private event
bus that records every delivered event, and the workflow services bound
to one session.
"""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from motorpool.core.events import ALL_EVENTS, AUDIT_EVENT, NOTIFICATION_EVENT, EventBus
from motorpool.db.init_db import drop_db, init_db
from motorpool.db.session import build_engine
from motorpool.models import Part, Vehicle
from motorpool.models.base import Department, TrackingMode, UserRole, VehicleStatus, VehicleType
from motorpool.schemas.common import ActorContext
from motorpool.services import (
    InventoryWorkflow,
    MaintenanceWorkflow,
    PartsLedger,
    PurchaseRequestWorkflow,
    RentalCompanyService,
    TripRequestWorkflow,
    VehicleRegistry,
)


class EventRecorder:
    """Subscriber collecting delivered events in order."""

    def __init__(self, bus: EventBus):
        self.bus = bus
        self.events = []
        bus.subscribe(ALL_EVENTS, self.events.append)

    def flush(self):
        self.bus.drain()
        return self.events

    @property
    def audits(self):
        return [e for e in self.flush() if e.event_type == AUDIT_EVENT]

    @property
    def notifications(self):
        return [e for e in self.flush() if e.event_type == NOTIFICATION_EVENT]

    def notification_types(self):
        return [e.notification_type for e in self.notifications]

    def audit_actions(self, entity_type=None):
        return [a.action for a in self.audits if entity_type is None or a.entity_type == entity_type]

    def clear(self):
        self.flush()
        self.events.clear()


@pytest.fixture
def engine():
    engine = build_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield engine
    drop_db(engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    yield session
    session.close()


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def recorder(bus):
    return EventRecorder(bus)


@pytest.fixture
def registry(db, bus):
    return VehicleRegistry(db, bus)


@pytest.fixture
def trips(db, bus, registry):
    return TripRequestWorkflow(db, bus, registry)


@pytest.fixture
def maintenance(db, bus, registry):
    return MaintenanceWorkflow(db, bus, registry)


@pytest.fixture
def inventory(db, bus, registry):
    return InventoryWorkflow(db, bus, registry)


@pytest.fixture
def parts(db, bus):
    return PartsLedger(db, bus)


@pytest.fixture
def rentals(db, bus):
    return RentalCompanyService(db, bus)


@pytest.fixture
def purchases(db, bus):
    return PurchaseRequestWorkflow(db, bus)


# ---------------------------------------------------------------------------
# Actors
# ---------------------------------------------------------------------------

@pytest.fixture
def employee():
    return ActorContext(user_id="emp-1", role=UserRole.EMPLOYEE, department=Department.OPERATION)


@pytest.fixture
def other_employee():
    return ActorContext(user_id="emp-2", role=UserRole.EMPLOYEE, department=Department.OPERATION)


@pytest.fixture
def garage():
    return ActorContext(user_id="garage-1", role=UserRole.EMPLOYEE, department=Department.GARAGE)


@pytest.fixture
def admin():
    return ActorContext(user_id="admin-1", role=UserRole.ADMIN, department=Department.ADMIN)


@pytest.fixture
def mechanic():
    return ActorContext(user_id="mech-1", role=UserRole.EMPLOYEE, department=Department.MAINTENANCE)


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------

_plate_counter = {"n": 0}


@pytest.fixture
def make_vehicle(db):
    """Insert a vehicle directly, bypassing the inventory workflow."""

    def _make(status=VehicleStatus.AVAILABLE, **overrides):
        _plate_counter["n"] += 1
        n = _plate_counter["n"]
        values = dict(
            model="Corolla",
            vehicle_type=VehicleType.SEDAN,
            year=2022,
            license_plate=f"PLT-{n:04d}",
            vin=f"VIN{n:014d}",
            mileage=10000,
            status=status,
        )
        values.update(overrides)
        vehicle = Vehicle(**values)
        db.add(vehicle)
        db.commit()
        return vehicle

    return _make


@pytest.fixture
def make_part(db):
    def _make(tracking_mode=TrackingMode.QUANTITY, quantity=10, serial_number=None, **overrides):
        values = dict(
            name="Brake pad",
            vehicle_type=VehicleType.SEDAN,
            vehicle_model="Corolla",
            tracking_mode=tracking_mode,
            quantity=quantity if tracking_mode == TrackingMode.QUANTITY else 1,
            serial_number=serial_number,
        )
        values.update(overrides)
        part = Part(**values)
        db.add(part)
        db.commit()
        return part

    return _make


@pytest.fixture
def trip_window():
    """Departure tomorrow, return the day after."""
    departure = datetime.now(timezone.utc) + timedelta(days=1)
    return departure, departure + timedelta(days=1)


@pytest.fixture
def trip_data(trip_window):
    def _data(**overrides):
        departure, return_time = trip_window
        data = dict(
            requested_vehicle_type=VehicleType.SEDAN,
            departure_location="HQ",
            destination="Branch office",
            description="Client visit",
            departure_time=departure,
            return_time=return_time,
        )
        data.update(overrides)
        return data

    return _data


@pytest.fixture
def vehicle_payload():
    def _payload(**overrides):
        data = dict(
            model="Hilux",
            vehicle_type=VehicleType.TRUCK,
            year=2024,
            color="White",
            license_plate="NEW-0001",
            vin="NEWVIN00000000001",
            mileage=0,
            maintenance_interval_months=6,
        )
        data.update(overrides)
        return data

    return _payload


def status_of(db, vehicle_id):
    """Vehicle status as stored, bypassing the identity map."""
    db.expire_all()
    return db.get(Vehicle, vehicle_id).status
