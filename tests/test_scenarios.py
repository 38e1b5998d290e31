"""
End-to-end scenarios across the trip, maintenance, inventory and parts
workflows sharing one vehicle pool.
"""

import threading

import pytest
from sqlalchemy.orm import sessionmaker

from motorpool.core.events import EventBus
from motorpool.core.exceptions import VehicleNotAvailableError
from motorpool.db.init_db import init_db
from motorpool.db.session import build_engine
from motorpool.models import TripRequest, Vehicle
from motorpool.models.base import (
    InventoryRequestStatus,
    MaintenanceKind,
    MaintenanceStatus,
    TrackingMode,
    TripRequestStatus,
    VehicleStatus,
    VehicleType,
)
from motorpool.services import TripRequestWorkflow
from motorpool.services.base import ErrorCode

from conftest import status_of


class TestVehicleContention:
    """Test that trip and maintenance claims exclude each other."""

    def test_second_assignment_of_same_vehicle_conflicts(self, db, trips, employee, other_employee, garage, trip_data, make_vehicle):
        vehicle = make_vehicle()
        first = trips.create(trip_data(), employee).unwrap()
        second = trips.create(trip_data(), other_employee).unwrap()

        assert trips.assign(first.id, {"vehicle_id": vehicle.id}, garage).data.status == TripRequestStatus.ASSIGNED
        assert status_of(db, vehicle.id) == VehicleStatus.ASSIGNED

        result = trips.assign(second.id, {"vehicle_id": vehicle.id}, garage)

        assert result.error_code == ErrorCode.CONFLICT
        assert trips.get_request(second.id).data.status == TripRequestStatus.PENDING

    def test_only_one_claim_wins(self, registry, make_vehicle):
        vehicle = make_vehicle()

        registry.try_claim(vehicle.id, VehicleStatus.ASSIGNED)
        with pytest.raises(VehicleNotAvailableError):
            registry.try_claim(vehicle.id, VehicleStatus.UNDER_MAINTENANCE)

    def test_rejected_transition_leaves_status(self, trips, employee, garage, admin, trip_data, make_vehicle):
        vehicle = make_vehicle()
        request = trips.create(trip_data(), employee).unwrap()
        trips.assign(request.id, {"vehicle_id": vehicle.id}, garage).unwrap()
        trips.reject(request.id, admin).unwrap()

        assert trips.approve(request.id, admin).error_code == ErrorCode.INVALID_TRANSITION
        assert trips.get_request(request.id).data.status == TripRequestStatus.REJECTED

    def test_vehicle_freed_by_trip_can_go_to_maintenance(
        self, db, trips, maintenance, employee, garage, admin, mechanic, trip_data, make_vehicle
    ):
        vehicle = make_vehicle()
        request = trips.create(trip_data(), employee).unwrap()
        trips.assign(request.id, {"vehicle_id": vehicle.id}, garage).unwrap()

        job = maintenance.create({"vehicle_id": vehicle.id, "description": "Tyres"}, mechanic).unwrap()
        maintenance.triage(job.id, {"kind": MaintenanceKind.INTERNAL}, mechanic).unwrap()
        maintenance.approve(job.id, admin).unwrap()
        assert maintenance.start_work(job.id, mechanic).error_code == ErrorCode.CONFLICT

        trips.cancel(request.id, employee).unwrap()

        assert maintenance.start_work(job.id, mechanic).data.status == MaintenanceStatus.IN_PROGRESS
        assert status_of(db, vehicle.id) == VehicleStatus.UNDER_MAINTENANCE


class TestConcurrentSessions:
    """Test claims racing from separate sessions on a shared database file."""

    CONTENDERS = 8

    @pytest.fixture
    def file_engine(self, tmp_path):
        engine = build_engine(
            f"sqlite:///{tmp_path / 'pool.db'}",
            connect_args={"check_same_thread": False, "timeout": 30},
        )
        init_db(engine)
        yield engine
        engine.dispose()

    def test_only_one_session_assigns_the_vehicle(self, file_engine, employee, garage, trip_data):
        make_session = sessionmaker(autocommit=False, autoflush=False, bind=file_engine)

        setup = make_session()
        vehicle = Vehicle(
            model="Corolla",
            vehicle_type=VehicleType.SEDAN,
            year=2022,
            license_plate="RACE-0001",
            vin="RACEVIN0000000001",
            mileage=0,
            status=VehicleStatus.AVAILABLE,
        )
        setup.add(vehicle)
        setup.commit()
        vehicle_id = vehicle.id
        request_ids = [
            TripRequestWorkflow(setup, EventBus()).create(trip_data(), employee).unwrap().id
            for _ in range(self.CONTENDERS)
        ]
        setup.close()

        barrier = threading.Barrier(self.CONTENDERS)
        outcomes = []
        lock = threading.Lock()

        def contend(request_id):
            session = make_session()
            try:
                workflow = TripRequestWorkflow(session, EventBus())
                barrier.wait()
                result = workflow.assign(request_id, {"vehicle_id": vehicle_id}, garage)
                with lock:
                    outcomes.append((result.is_success, result.error_code))
            finally:
                session.close()

        threads = [threading.Thread(target=contend, args=(rid,)) for rid in request_ids]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=60)

        assert len(outcomes) == self.CONTENDERS
        winners = [o for o in outcomes if o[0]]
        assert len(winners) == 1
        assert all(code == ErrorCode.CONFLICT for ok, code in outcomes if not ok)

        check = make_session()
        try:
            assert check.get(Vehicle, vehicle_id).status == VehicleStatus.ASSIGNED
            assigned = [
                rid for rid in request_ids
                if check.get(TripRequest, rid).status == TripRequestStatus.ASSIGNED
            ]
            assert len(assigned) == 1
        finally:
            check.close()


class TestExternalTriage:
    """Test external maintenance needs a vendor."""

    def test_vendor_required_then_accepted(self, maintenance, mechanic, make_vehicle):
        vehicle = make_vehicle()
        job = maintenance.create({"vehicle_id": vehicle.id, "description": "Gearbox"}, mechanic).unwrap()
        assert job.status == MaintenanceStatus.PENDING

        missing = maintenance.triage(job.id, {"kind": MaintenanceKind.EXTERNAL}, mechanic)
        accepted = maintenance.triage(
            job.id, {"kind": MaintenanceKind.EXTERNAL, "external_vendor": "Acme"}, mechanic
        )

        assert missing.error_code == ErrorCode.INVALID_INPUT
        assert accepted.data.status == MaintenanceStatus.PENDING_APPROVAL


class TestRetirementBlockedByTrip:
    """Test a vehicle out on an approved trip cannot be retired."""

    def test_delete_waits_for_return(self, db, trips, inventory, employee, garage, admin, trip_data, make_vehicle):
        vehicle = make_vehicle()
        trip = trips.create(trip_data(), employee).unwrap()
        trips.assign(trip.id, {"vehicle_id": vehicle.id}, garage).unwrap()
        trips.approve(trip.id, admin).unwrap()
        retirement = inventory.create_delete(vehicle.id, garage).unwrap()

        blocked = inventory.approve(retirement.id, admin)

        assert blocked.error_code == ErrorCode.INVALID_STATE
        assert inventory.get_request(retirement.id).data.status == InventoryRequestStatus.PENDING_APPROVAL

        trips.mark_in_transit(trip.id, employee).unwrap()
        trips.confirm_return(trip.id, {"mileage": 10300}, garage).unwrap()

        approved = inventory.approve(retirement.id, admin)

        assert approved.data.status == InventoryRequestStatus.APPROVED
        assert status_of(db, vehicle.id) == VehicleStatus.DELETED


class TestPartRules:
    """Test serial and quantity part rules during maintenance."""

    @pytest.fixture
    def start_job(self, maintenance, mechanic, admin, make_vehicle):
        def _start():
            job = maintenance.create({"vehicle_id": make_vehicle().id, "description": "Service"}, mechanic).unwrap()
            maintenance.triage(job.id, {"kind": MaintenanceKind.INTERNAL}, mechanic).unwrap()
            maintenance.approve(job.id, admin).unwrap()
            return maintenance.start_work(job.id, mechanic).unwrap()

        return _start

    def test_serial_part_rules(self, parts, mechanic, make_part, start_job):
        part = make_part(tracking_mode=TrackingMode.SERIAL_NUMBER, serial_number="TURBO-7")
        first, second = start_job(), start_job()

        too_many = parts.assign({"maintenance_request_id": first.id, "part_id": part.id, "quantity": 2}, mechanic)
        assigned = parts.assign({"maintenance_request_id": first.id, "part_id": part.id}, mechanic)
        again = parts.assign({"maintenance_request_id": second.id, "part_id": part.id}, mechanic)

        assert too_many.error_code == ErrorCode.INVALID_INPUT
        assert assigned.is_success
        assert again.error_code == ErrorCode.CONFLICT

    def test_insufficient_stock_leaves_stock(self, parts, mechanic, make_part, start_job):
        part = make_part(quantity=3)
        job = start_job()

        result = parts.assign({"maintenance_request_id": job.id, "part_id": part.id, "quantity": 5}, mechanic)

        assert result.error_code == ErrorCode.INSUFFICIENT_STOCK
        assert parts.get_part(part.id).data.quantity == 3
