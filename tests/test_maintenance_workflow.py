"""
Tests for the maintenance workflow.
"""

from datetime import datetime, timezone
from decimal import Decimal

import pytest
from dateutil.relativedelta import relativedelta

from motorpool.models.base import Department, MaintenanceKind, MaintenanceStatus, VehicleStatus
from motorpool.services.base import ErrorCode
from motorpool.services.notifications import NotificationType

from conftest import status_of


@pytest.fixture
def vehicle(make_vehicle):
    return make_vehicle(maintenance_interval_months=6)


@pytest.fixture
def pending(maintenance, mechanic, vehicle):
    return maintenance.create({"vehicle_id": vehicle.id, "description": "Brakes squeal"}, mechanic).unwrap()


@pytest.fixture
def approved(maintenance, mechanic, admin, pending):
    maintenance.triage(pending.id, {"kind": MaintenanceKind.INTERNAL}, mechanic).unwrap()
    maintenance.approve(pending.id, admin).unwrap()
    return pending


class TestCreate:
    """Test maintenance request creation."""

    def test_create_pending(self, maintenance, mechanic, vehicle, recorder):
        result = maintenance.create({"vehicle_id": vehicle.id, "description": "Oil leak"}, mechanic)

        assert result.is_success
        assert result.data.status == MaintenanceStatus.PENDING
        assert result.data.requested_by == mechanic.user_id
        notification = recorder.notifications[0]
        assert notification.notification_type == NotificationType.MAINTENANCE_REQUEST_CREATED.value
        assert notification.target_departments == [Department.MAINTENANCE.value]

    def test_create_does_not_claim_vehicle(self, db, maintenance, mechanic, vehicle):
        maintenance.create({"vehicle_id": vehicle.id, "description": "Oil leak"}, mechanic).unwrap()

        assert status_of(db, vehicle.id) == VehicleStatus.AVAILABLE

    def test_missing_vehicle(self, maintenance, mechanic):
        result = maintenance.create({"vehicle_id": "missing", "description": "Oil leak"}, mechanic)

        assert result.error_code == ErrorCode.NOT_FOUND

    def test_deleted_vehicle(self, maintenance, mechanic, make_vehicle):
        retired = make_vehicle(status=VehicleStatus.DELETED)

        result = maintenance.create({"vehicle_id": retired.id, "description": "Oil leak"}, mechanic)

        assert result.error_code == ErrorCode.INVALID_STATE

    def test_one_open_request_per_vehicle(self, maintenance, mechanic, vehicle, pending):
        result = maintenance.create({"vehicle_id": vehicle.id, "description": "Again"}, mechanic)

        assert result.error_code == ErrorCode.CONFLICT
        assert result.error.details["conflicting_request_id"] == pending.id

    def test_new_request_after_rejection(self, maintenance, mechanic, admin, vehicle, pending):
        maintenance.triage(pending.id, {"kind": MaintenanceKind.INTERNAL}, mechanic).unwrap()
        maintenance.reject(pending.id, admin).unwrap()

        assert maintenance.create({"vehicle_id": vehicle.id, "description": "Again"}, mechanic).is_success

    def test_vehicle_on_a_trip_can_be_reported(self, maintenance, mechanic, make_vehicle):
        busy = make_vehicle(status=VehicleStatus.IN_TRANSIT)

        assert maintenance.create({"vehicle_id": busy.id, "description": "Warning light"}, mechanic).is_success


class TestTriage:
    """Test triage rules."""

    def test_external_requires_vendor(self, maintenance, mechanic, pending):
        result = maintenance.triage(pending.id, {"kind": MaintenanceKind.EXTERNAL}, mechanic)

        assert result.error_code == ErrorCode.INVALID_INPUT
        assert maintenance.get_request(pending.id).data.status == MaintenanceStatus.PENDING

    def test_internal_forbids_vendor(self, maintenance, mechanic, pending):
        result = maintenance.triage(
            pending.id, {"kind": MaintenanceKind.INTERNAL, "external_vendor": "Acme"}, mechanic
        )

        assert result.error_code == ErrorCode.INVALID_INPUT

    def test_external_with_vendor(self, maintenance, mechanic, pending, recorder):
        recorder.clear()

        result = maintenance.triage(
            pending.id,
            {"kind": MaintenanceKind.EXTERNAL, "external_vendor": "Acme", "estimated_cost": "120.50"},
            mechanic,
        )

        assert result.data.status == MaintenanceStatus.PENDING_APPROVAL
        assert result.data.external_vendor == "Acme"
        assert result.data.estimated_cost == Decimal("120.50")
        notification = recorder.notifications[0]
        assert notification.notification_type == NotificationType.MAINTENANCE_TRIAGED.value
        assert notification.target_user_ids == [mechanic.user_id]
        assert notification.target_departments == [Department.ADMIN.value]

    def test_negative_estimate_rejected(self, maintenance, mechanic, pending):
        result = maintenance.triage(
            pending.id, {"kind": MaintenanceKind.INTERNAL, "estimated_cost": "-1"}, mechanic
        )

        assert result.error_code == ErrorCode.INVALID_INPUT

    def test_triage_twice_is_invalid(self, maintenance, mechanic, pending):
        maintenance.triage(pending.id, {"kind": MaintenanceKind.INTERNAL}, mechanic).unwrap()

        result = maintenance.triage(pending.id, {"kind": MaintenanceKind.INTERNAL}, mechanic)

        assert result.error_code == ErrorCode.INVALID_TRANSITION

    def test_approve_before_triage_is_invalid(self, maintenance, admin, pending):
        assert maintenance.approve(pending.id, admin).error_code == ErrorCode.INVALID_TRANSITION

    def test_retriage_reports_transition_before_vendor_rules(self, maintenance, mechanic, approved):
        """An EXTERNAL triage without vendor on an approved request is a bad transition, not bad input."""
        result = maintenance.triage(approved.id, {"kind": MaintenanceKind.EXTERNAL}, mechanic)

        assert result.error_code == ErrorCode.INVALID_TRANSITION
        assert result.error.details["current_status"] == MaintenanceStatus.APPROVED.value

    def test_triage_missing_request_with_bad_vendor_is_not_found(self, maintenance, mechanic):
        result = maintenance.triage("missing", {"kind": MaintenanceKind.INTERNAL, "external_vendor": "Acme"}, mechanic)

        assert result.error_code == ErrorCode.NOT_FOUND


class TestWork:
    """Test starting and completing work."""

    def test_start_work_claims_vehicle(self, db, maintenance, mechanic, vehicle, approved):
        result = maintenance.start_work(approved.id, mechanic)

        assert result.data.status == MaintenanceStatus.IN_PROGRESS
        assert result.data.started_by == mechanic.user_id
        assert status_of(db, vehicle.id) == VehicleStatus.UNDER_MAINTENANCE

    def test_start_work_on_vehicle_mid_trip_conflicts(self, db, maintenance, registry, mechanic, vehicle, approved):
        registry.try_claim(vehicle.id, VehicleStatus.ASSIGNED)

        result = maintenance.start_work(approved.id, mechanic)

        assert result.error_code == ErrorCode.CONFLICT
        assert maintenance.get_request(approved.id).data.status == MaintenanceStatus.APPROVED
        assert status_of(db, vehicle.id) == VehicleStatus.ASSIGNED

    def test_complete_releases_and_reschedules(self, db, maintenance, mechanic, vehicle, approved, recorder):
        maintenance.start_work(approved.id, mechanic).unwrap()
        recorder.clear()

        result = maintenance.complete(approved.id, {"completion_notes": "Pads replaced"}, mechanic)

        assert result.data.status == MaintenanceStatus.COMPLETED
        assert result.data.completion_notes == "Pads replaced"
        assert status_of(db, vehicle.id) == VehicleStatus.AVAILABLE

        today = datetime.now(timezone.utc).date()
        refreshed = db.get(type(vehicle), vehicle.id)
        assert refreshed.last_maintenance_date == today
        assert refreshed.next_maintenance_date == today + relativedelta(months=6)
        assert recorder.notification_types() == [NotificationType.MAINTENANCE_COMPLETED.value]

    def test_external_cost_recorded_for_external_work(self, maintenance, mechanic, admin, pending):
        maintenance.triage(
            pending.id, {"kind": MaintenanceKind.EXTERNAL, "external_vendor": "Acme"}, mechanic
        ).unwrap()
        maintenance.approve(pending.id, admin).unwrap()
        maintenance.start_work(pending.id, mechanic).unwrap()

        result = maintenance.complete(pending.id, {"external_cost": "310.00"}, mechanic)

        assert result.data.external_cost == Decimal("310.00")

    def test_external_cost_rejected_for_internal_work(self, db, maintenance, mechanic, vehicle, approved):
        maintenance.start_work(approved.id, mechanic).unwrap()

        result = maintenance.complete(approved.id, {"external_cost": "10"}, mechanic)

        assert result.error_code == ErrorCode.INVALID_INPUT
        assert status_of(db, vehicle.id) == VehicleStatus.UNDER_MAINTENANCE

    def test_negative_external_cost_rejected(self, maintenance, mechanic, admin, pending):
        maintenance.triage(
            pending.id, {"kind": MaintenanceKind.EXTERNAL, "external_vendor": "Acme"}, mechanic
        ).unwrap()
        maintenance.approve(pending.id, admin).unwrap()
        maintenance.start_work(pending.id, mechanic).unwrap()

        assert maintenance.complete(pending.id, {"external_cost": "-5"}, mechanic).error_code == ErrorCode.INVALID_INPUT

    def test_complete_before_start_is_invalid(self, maintenance, mechanic, approved):
        assert maintenance.complete(approved.id, None, mechanic).error_code == ErrorCode.INVALID_TRANSITION

    def test_trip_cannot_take_vehicle_under_maintenance(
        self, maintenance, trips, mechanic, employee, garage, trip_data, vehicle, approved
    ):
        maintenance.start_work(approved.id, mechanic).unwrap()
        request = trips.create(trip_data(), employee).unwrap()

        assert trips.assign(request.id, {"vehicle_id": vehicle.id}, garage).error_code == ErrorCode.CONFLICT


class TestQueries:
    """Test read operations."""

    def test_pending_and_pending_approval_lists(self, maintenance, mechanic, make_vehicle):
        first = maintenance.create({"vehicle_id": make_vehicle().id, "description": "A"}, mechanic).unwrap()
        second = maintenance.create({"vehicle_id": make_vehicle().id, "description": "B"}, mechanic).unwrap()
        maintenance.triage(second.id, {"kind": MaintenanceKind.INTERNAL}, mechanic).unwrap()

        assert [r.id for r in maintenance.get_pending_requests().data] == [first.id]
        assert [r.id for r in maintenance.get_pending_approval_requests().data] == [second.id]

    def test_active_maintenance_for_vehicle(self, maintenance, vehicle, pending):
        assert maintenance.get_active_maintenance_for_vehicle(vehicle.id).data.id == pending.id

    def test_history_lists_completed_work(self, maintenance, mechanic, vehicle, approved):
        maintenance.start_work(approved.id, mechanic).unwrap()
        maintenance.complete(approved.id, None, mechanic).unwrap()

        history = maintenance.get_maintenance_history(vehicle.id).data

        assert [r.id for r in history] == [approved.id]
        assert maintenance.get_active_maintenance_for_vehicle(vehicle.id).data is None

    def test_history_for_missing_vehicle(self, maintenance):
        assert maintenance.get_maintenance_history("missing").error_code == ErrorCode.NOT_FOUND

    def test_list_requests_filter(self, maintenance, mechanic, vehicle, pending, make_vehicle):
        maintenance.create({"vehicle_id": make_vehicle().id, "description": "Other"}, mechanic).unwrap()

        result = maintenance.list_requests({"vehicle_id": vehicle.id})

        assert [r.id for r in result.data] == [pending.id]

    def test_maintenance_schedule(self, maintenance, make_vehicle):
        today = datetime.now(timezone.utc).date()
        due = make_vehicle(next_maintenance_date=today)

        assert [v.id for v in maintenance.get_maintenance_schedule(7).data] == [due.id]
