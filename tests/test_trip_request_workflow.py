"""
Tests for the trip request workflow.
"""

from datetime import datetime, timedelta, timezone

import pytest

from motorpool.core.events import AuditEvent
from motorpool.models.base import Department, TripRequestStatus, VehicleStatus
from motorpool.services.base import ErrorCode
from motorpool.services.notifications import NotificationType

from conftest import status_of


@pytest.fixture
def company(rentals, admin):
    return rentals.create({"name": "Acme Rentals", "phone": "555-0100"}, admin).unwrap()


@pytest.fixture
def assigned(trips, employee, garage, trip_data, make_vehicle):
    """A request assigned a pool vehicle."""
    vehicle = make_vehicle()
    request = trips.create(trip_data(), employee).unwrap()
    trips.assign(request.id, {"vehicle_id": vehicle.id}, garage).unwrap()
    return request, vehicle


@pytest.fixture
def in_transit(trips, employee, admin, assigned):
    request, vehicle = assigned
    trips.approve(request.id, admin).unwrap()
    trips.mark_in_transit(request.id, employee).unwrap()
    return request, vehicle


class TestCreate:
    """Test request creation."""

    def test_create_pending_request(self, trips, employee, trip_data, recorder):
        result = trips.create(trip_data(), employee)

        assert result.is_success
        request = result.data
        assert request.status == TripRequestStatus.PENDING
        assert request.requester_id == employee.user_id
        assert request.is_rental is False

        notification = recorder.notifications[0]
        assert notification.notification_type == NotificationType.TRIP_REQUEST_CREATED.value
        assert notification.target_departments == [Department.GARAGE.value]
        assert recorder.audit_actions("TripRequest") == ["CREATE"]

    def test_return_must_follow_departure(self, trips, employee, trip_data, trip_window):
        departure, _ = trip_window

        result = trips.create(trip_data(return_time=departure - timedelta(hours=1)), employee)

        assert result.error_code == ErrorCode.INVALID_INPUT
        assert result.error.field == "return_time"

    def test_departure_cannot_be_in_the_past(self, trips, employee, trip_data):
        past = datetime.now(timezone.utc) - timedelta(hours=2)

        result = trips.create(trip_data(departure_time=past, return_time=past + timedelta(days=1)), employee)

        assert result.error_code == ErrorCode.INVALID_INPUT
        assert result.error.field == "departure_time"

    def test_missing_fields_reported_per_field(self, trips, employee):
        result = trips.create({"departure_location": "HQ"}, employee)

        assert result.error_code == ErrorCode.INVALID_INPUT
        assert "destination" in result.error.details["field_errors"]

    def test_named_vehicle_must_exist(self, trips, employee, trip_data):
        result = trips.create(trip_data(vehicle_id="no-such-vehicle"), employee)

        assert result.error_code == ErrorCode.NOT_FOUND

    def test_named_vehicle_must_be_available(self, trips, employee, trip_data, make_vehicle):
        vehicle = make_vehicle(status=VehicleStatus.UNDER_MAINTENANCE)

        result = trips.create(trip_data(vehicle_id=vehicle.id), employee)

        assert result.error_code == ErrorCode.CONFLICT
        assert result.error.details["current_status"] == "UNDER_MAINTENANCE"

    def test_named_vehicle_with_competing_request(self, trips, employee, other_employee, trip_data, make_vehicle):
        vehicle = make_vehicle()
        first = trips.create(trip_data(vehicle_id=vehicle.id), employee).unwrap()

        result = trips.create(trip_data(vehicle_id=vehicle.id), other_employee)

        assert result.error_code == ErrorCode.CONFLICT
        assert result.error.details["conflicting_request_id"] == first.id

    def test_create_does_not_claim_vehicle(self, db, trips, employee, trip_data, make_vehicle):
        vehicle = make_vehicle()

        trips.create(trip_data(vehicle_id=vehicle.id), employee).unwrap()

        assert status_of(db, vehicle.id) == VehicleStatus.AVAILABLE

    def test_failed_create_emits_nothing(self, trips, employee, trip_data, recorder):
        trips.create(trip_data(vehicle_id="no-such-vehicle"), employee)

        assert recorder.flush() == []


class TestUpdate:
    """Test editing pending requests."""

    def test_creator_updates_pending_request(self, trips, employee, trip_data):
        request = trips.create(trip_data(), employee).unwrap()

        result = trips.update(request.id, {"destination": "Airport"}, employee)

        assert result.is_success
        assert result.data.destination == "Airport"
        assert result.data.departure_location == "HQ"

    def test_only_creator_may_update(self, trips, employee, other_employee, trip_data):
        request = trips.create(trip_data(), employee).unwrap()

        result = trips.update(request.id, {"destination": "Airport"}, other_employee)

        assert result.error_code == ErrorCode.FORBIDDEN

    def test_only_pending_requests_may_be_updated(self, trips, employee, assigned):
        request, _ = assigned

        result = trips.update(request.id, {"destination": "Airport"}, employee)

        assert result.error_code == ErrorCode.INVALID_STATE

    def test_update_revalidates_window(self, trips, employee, trip_data, trip_window):
        departure, _ = trip_window
        request = trips.create(trip_data(), employee).unwrap()

        result = trips.update(request.id, {"return_time": departure - timedelta(minutes=5)}, employee)

        assert result.error_code == ErrorCode.INVALID_INPUT

    def test_update_checks_newly_named_vehicle(self, trips, employee, trip_data, make_vehicle):
        busy = make_vehicle(status=VehicleStatus.ASSIGNED)
        request = trips.create(trip_data(), employee).unwrap()

        result = trips.update(request.id, {"vehicle_id": busy.id}, employee)

        assert result.error_code == ErrorCode.CONFLICT

    def test_update_can_clear_named_vehicle(self, trips, employee, trip_data, make_vehicle):
        vehicle = make_vehicle()
        request = trips.create(trip_data(vehicle_id=vehicle.id), employee).unwrap()

        result = trips.update(request.id, {"vehicle_id": None}, employee)

        assert result.is_success
        assert result.data.vehicle_id is None


class TestAssign:
    """Test assignment of pool vehicles and rentals."""

    def test_assign_pool_vehicle_claims_it(self, db, trips, employee, garage, trip_data, make_vehicle, recorder):
        vehicle = make_vehicle()
        request = trips.create(trip_data(), employee).unwrap()
        recorder.clear()

        result = trips.assign(request.id, {"vehicle_id": vehicle.id}, garage)

        assert result.is_success
        assert result.data.status == TripRequestStatus.ASSIGNED
        assert result.data.vehicle_id == vehicle.id
        assert result.data.assigned_by == garage.user_id
        assert status_of(db, vehicle.id) == VehicleStatus.ASSIGNED

        notification = recorder.notifications[0]
        assert notification.notification_type == NotificationType.TRIP_REQUEST_ASSIGNED.value
        assert notification.target_user_ids == [employee.user_id]
        assert notification.target_departments == [Department.ADMIN.value]

    def test_assign_vehicle_named_by_same_request(self, trips, employee, garage, trip_data, make_vehicle):
        vehicle = make_vehicle()
        request = trips.create(trip_data(vehicle_id=vehicle.id), employee).unwrap()

        assert trips.assign(request.id, {"vehicle_id": vehicle.id}, garage).is_success

    def test_assign_vehicle_named_by_other_pending_request(
        self, trips, employee, other_employee, garage, trip_data, make_vehicle
    ):
        vehicle = make_vehicle()
        trips.create(trip_data(vehicle_id=vehicle.id), employee).unwrap()
        other = trips.create(trip_data(), other_employee).unwrap()

        result = trips.assign(other.id, {"vehicle_id": vehicle.id}, garage)

        assert result.error_code == ErrorCode.CONFLICT

    def test_assign_rental(self, trips, employee, garage, trip_data, company):
        request = trips.create(trip_data(), employee).unwrap()

        result = trips.assign(request.id, {"is_rental": True, "rental_company_id": company.id}, garage)

        assert result.is_success
        assert result.data.is_rental is True
        assert result.data.rental_company_id == company.id
        assert result.data.vehicle_id is None
        assert result.data.holds_vehicle_claim is False

    def test_assign_inactive_rental_company(self, trips, rentals, employee, garage, admin, trip_data, company):
        rentals.deactivate(company.id, admin).unwrap()
        request = trips.create(trip_data(), employee).unwrap()

        result = trips.assign(request.id, {"is_rental": True, "rental_company_id": company.id}, garage)

        assert result.error_code == ErrorCode.NOT_FOUND

    def test_rental_replaces_vehicle_named_at_creation(self, db, trips, employee, garage, trip_data, company, make_vehicle):
        vehicle = make_vehicle()
        request = trips.create(trip_data(vehicle_id=vehicle.id), employee).unwrap()

        result = trips.assign(request.id, {"is_rental": True, "rental_company_id": company.id}, garage)

        assert result.data.vehicle_id is None
        assert status_of(db, vehicle.id) == VehicleStatus.AVAILABLE

    @pytest.mark.parametrize("target", [
        {},
        {"is_rental": True},
        {"is_rental": False, "vehicle_id": "v", "rental_company_id": "c"},
        {"is_rental": True, "vehicle_id": "v", "rental_company_id": "c"},
    ])
    def test_target_must_name_exactly_one_resource(self, trips, employee, garage, trip_data, target):
        request = trips.create(trip_data(), employee).unwrap()

        result = trips.assign(request.id, target, garage)

        assert result.error_code == ErrorCode.INVALID_INPUT

    def test_assign_twice_is_invalid_transition(self, trips, garage, assigned, make_vehicle):
        request, _ = assigned
        other_vehicle = make_vehicle()

        result = trips.assign(request.id, {"vehicle_id": other_vehicle.id}, garage)

        assert result.error_code == ErrorCode.INVALID_TRANSITION
        assert result.error.details["current_status"] == "ASSIGNED"
        assert result.error.details["target_status"] == "ASSIGNED"

    def test_assign_vehicle_under_maintenance(self, trips, employee, garage, trip_data, make_vehicle):
        vehicle = make_vehicle(status=VehicleStatus.UNDER_MAINTENANCE)
        request = trips.create(trip_data(), employee).unwrap()

        result = trips.assign(request.id, {"vehicle_id": vehicle.id}, garage)

        assert result.error_code == ErrorCode.CONFLICT
        assert trips.get_request(request.id).data.status == TripRequestStatus.PENDING

    def test_assign_missing_request(self, trips, garage, make_vehicle):
        result = trips.assign("missing", {"vehicle_id": make_vehicle().id}, garage)

        assert result.error_code == ErrorCode.NOT_FOUND


class TestDecisions:
    """Test approval, rejection and cancellation."""

    def test_approve_keeps_claim(self, db, trips, admin, assigned):
        request, vehicle = assigned

        result = trips.approve(request.id, admin)

        assert result.data.status == TripRequestStatus.APPROVED
        assert result.data.approved_by == admin.user_id
        assert status_of(db, vehicle.id) == VehicleStatus.ASSIGNED

    def test_reject_releases_vehicle(self, db, trips, admin, assigned, recorder):
        request, vehicle = assigned
        recorder.clear()

        result = trips.reject(request.id, admin)

        assert result.data.status == TripRequestStatus.REJECTED
        assert status_of(db, vehicle.id) == VehicleStatus.AVAILABLE
        assert recorder.notification_types() == [NotificationType.TRIP_REQUEST_REJECTED.value]

    def test_approve_pending_request_is_invalid(self, trips, employee, admin, trip_data):
        request = trips.create(trip_data(), employee).unwrap()

        assert trips.approve(request.id, admin).error_code == ErrorCode.INVALID_TRANSITION

    def test_rejected_is_terminal(self, trips, admin, employee, assigned):
        request, _ = assigned
        trips.reject(request.id, admin).unwrap()

        assert trips.approve(request.id, admin).error_code == ErrorCode.INVALID_TRANSITION
        assert trips.cancel(request.id, employee).error_code == ErrorCode.INVALID_TRANSITION

    def test_cancel_pending_leaves_vehicle_alone(self, db, trips, employee, trip_data, make_vehicle):
        vehicle = make_vehicle()
        request = trips.create(trip_data(vehicle_id=vehicle.id), employee).unwrap()

        result = trips.cancel(request.id, employee)

        assert result.data.status == TripRequestStatus.CANCELLED
        assert result.data.cancelled_by == employee.user_id
        assert status_of(db, vehicle.id) == VehicleStatus.AVAILABLE

    def test_cancel_pending_does_not_clobber_other_claim(
        self, db, trips, registry, employee, trip_data, make_vehicle
    ):
        vehicle = make_vehicle()
        request = trips.create(trip_data(vehicle_id=vehicle.id), employee).unwrap()
        registry.try_claim(vehicle.id, VehicleStatus.UNDER_MAINTENANCE)

        trips.cancel(request.id, employee).unwrap()

        assert status_of(db, vehicle.id) == VehicleStatus.UNDER_MAINTENANCE

    def test_cancel_assigned_releases_vehicle(self, db, trips, employee, assigned):
        request, vehicle = assigned

        trips.cancel(request.id, employee).unwrap()

        assert status_of(db, vehicle.id) == VehicleStatus.AVAILABLE

    def test_cancel_approved_releases_vehicle(self, db, trips, employee, admin, assigned):
        request, vehicle = assigned
        trips.approve(request.id, admin).unwrap()

        trips.cancel(request.id, employee).unwrap()

        assert status_of(db, vehicle.id) == VehicleStatus.AVAILABLE

    def test_only_creator_may_cancel(self, db, trips, other_employee, assigned):
        request, vehicle = assigned

        result = trips.cancel(request.id, other_employee)

        assert result.error_code == ErrorCode.FORBIDDEN
        assert trips.get_request(request.id).data.status == TripRequestStatus.ASSIGNED
        assert status_of(db, vehicle.id) == VehicleStatus.ASSIGNED

    def test_cannot_cancel_in_transit(self, trips, employee, in_transit):
        request, _ = in_transit

        assert trips.cancel(request.id, employee).error_code == ErrorCode.INVALID_TRANSITION


class TestTrip:
    """Test pickup and return."""

    def test_full_trip_cycle(self, db, trips, employee, garage, in_transit, recorder):
        request, vehicle = in_transit
        assert status_of(db, vehicle.id) == VehicleStatus.IN_TRANSIT
        recorder.clear()

        result = trips.confirm_return(request.id, {"notes": "Clean", "mileage": 10250}, garage)

        assert result.is_success
        returned = result.data
        assert returned.status == TripRequestStatus.RETURNED
        assert returned.return_notes == "Clean"
        assert returned.return_mileage == 10250
        assert returned.returned_by == garage.user_id
        assert status_of(db, vehicle.id) == VehicleStatus.AVAILABLE
        assert db.get(type(vehicle), vehicle.id).mileage == 10250

        notification = recorder.notifications[0]
        assert notification.notification_type == NotificationType.VEHICLE_RETURNED.value
        assert notification.target_user_ids == [employee.user_id]

    def test_only_creator_marks_in_transit(self, db, trips, admin, other_employee, assigned):
        request, vehicle = assigned
        trips.approve(request.id, admin).unwrap()

        result = trips.mark_in_transit(request.id, other_employee)

        assert result.error_code == ErrorCode.FORBIDDEN
        assert status_of(db, vehicle.id) == VehicleStatus.ASSIGNED

    def test_in_transit_requires_approval(self, trips, employee, assigned):
        request, _ = assigned

        result = trips.mark_in_transit(request.id, employee)

        assert result.error_code == ErrorCode.INVALID_TRANSITION

    def test_return_with_lower_mileage_rolls_back(self, db, trips, garage, in_transit, recorder):
        request, vehicle = in_transit
        recorder.clear()

        result = trips.confirm_return(request.id, {"mileage": 50}, garage)

        assert result.error_code == ErrorCode.INVALID_INPUT
        assert trips.get_request(request.id).data.status == TripRequestStatus.IN_TRANSIT
        assert status_of(db, vehicle.id) == VehicleStatus.IN_TRANSIT
        assert recorder.flush() == []

    def test_return_with_negative_mileage(self, trips, garage, in_transit):
        request, _ = in_transit

        assert trips.confirm_return(request.id, {"mileage": -1}, garage).error_code == ErrorCode.INVALID_INPUT

    def test_return_without_details(self, db, trips, garage, in_transit):
        request, vehicle = in_transit

        assert trips.confirm_return(request.id, None, garage).is_success
        assert status_of(db, vehicle.id) == VehicleStatus.AVAILABLE

    def test_rental_trip_cycle(self, trips, employee, garage, admin, trip_data, company):
        request = trips.create(trip_data(), employee).unwrap()
        trips.assign(request.id, {"is_rental": True, "rental_company_id": company.id}, garage).unwrap()
        trips.approve(request.id, admin).unwrap()
        trips.mark_in_transit(request.id, employee).unwrap()

        result = trips.confirm_return(request.id, {"notes": "Returned to agency"}, garage)

        assert result.data.status == TripRequestStatus.RETURNED

    def test_audit_trail(self, trips, garage, in_transit, recorder):
        request, _ = in_transit
        trips.confirm_return(request.id, {}, garage).unwrap()

        audits = [a for a in recorder.audits if isinstance(a, AuditEvent) and a.entity_id == request.id]

        assert [a.action for a in audits] == ["CREATE", "ASSIGN", "APPROVE", "IN_TRANSIT", "RETURN"]
        assert audits[1].actor_id == garage.user_id
        assert audits[1].department == Department.GARAGE.value


class TestQueries:
    """Test read operations."""

    def test_pending_requests_oldest_first(self, trips, employee, other_employee, trip_data):
        first = trips.create(trip_data(), employee).unwrap()
        second = trips.create(trip_data(), other_employee).unwrap()

        pending = trips.get_pending_requests().data

        assert [r.id for r in pending] == [first.id, second.id]

    def test_assigned_requests(self, trips, assigned):
        request, _ = assigned

        assert [r.id for r in trips.get_assigned_requests().data] == [request.id]

    def test_requests_by_user(self, trips, employee, other_employee, trip_data):
        mine = trips.create(trip_data(), employee).unwrap()
        trips.create(trip_data(), other_employee).unwrap()

        assert [r.id for r in trips.get_requests_by_user(employee.user_id).data] == [mine.id]

    def test_list_requests_by_status(self, trips, employee, trip_data, assigned):
        trips.create(trip_data(), employee).unwrap()

        result = trips.list_requests({"status": TripRequestStatus.ASSIGNED})

        assert [r.id for r in result.data] == [assigned[0].id]
        assert result.metadata["count"] == 1

    def test_active_requests_for_vehicle(self, trips, employee, assigned):
        request, vehicle = assigned

        assert [r.id for r in trips.get_active_requests_for_vehicle(vehicle.id).data] == [request.id]

        trips.cancel(request.id, employee).unwrap()
        assert trips.get_active_requests_for_vehicle(vehicle.id).data == []

    def test_get_missing_request(self, trips):
        assert trips.get_request("missing").error_code == ErrorCode.NOT_FOUND
