"""
Tests for the rental company directory.
"""

from motorpool.services.base import ErrorCode


class TestRentalCompanies:
    """Test rental company registration and deactivation."""

    def test_create(self, rentals, admin, recorder):
        result = rentals.create({"name": "Acme Rentals", "phone": "555-0100"}, admin)

        assert result.is_success
        assert result.data.is_active is True
        assert recorder.audit_actions("RentalCompany") == ["CREATE"]

    def test_duplicate_active_name(self, rentals, admin):
        rentals.create({"name": "Acme Rentals"}, admin).unwrap()

        assert rentals.create({"name": "Acme Rentals"}, admin).error_code == ErrorCode.CONFLICT

    def test_name_reusable_after_deactivation(self, rentals, admin):
        first = rentals.create({"name": "Acme Rentals"}, admin).unwrap()
        rentals.deactivate(first.id, admin).unwrap()

        assert rentals.create({"name": "Acme Rentals"}, admin).is_success

    def test_list_hides_inactive(self, rentals, admin):
        active = rentals.create({"name": "Beta Cars"}, admin).unwrap()
        retired = rentals.create({"name": "Alpha Cars"}, admin).unwrap()
        rentals.deactivate(retired.id, admin).unwrap()

        assert [c.id for c in rentals.list().data] == [active.id]
        assert [c.id for c in rentals.list(include_inactive=True).data] == [retired.id, active.id]

    def test_deactivate_is_idempotent(self, rentals, admin, recorder):
        company = rentals.create({"name": "Acme Rentals"}, admin).unwrap()

        rentals.deactivate(company.id, admin).unwrap()
        result = rentals.deactivate(company.id, admin)

        assert result.data.is_active is False
        assert recorder.audit_actions("RentalCompany") == ["CREATE", "DEACTIVATE"]

    def test_get_missing(self, rentals):
        assert rentals.get("missing").error_code == ErrorCode.NOT_FOUND

    def test_inactive_company_cannot_fulfil_trips(self, rentals, trips, admin, employee, garage, trip_data):
        company = rentals.create({"name": "Acme Rentals"}, admin).unwrap()
        rentals.deactivate(company.id, admin).unwrap()
        request = trips.create(trip_data(), employee).unwrap()

        result = trips.assign(request.id, {"is_rental": True, "rental_company_id": company.id}, garage)

        assert result.error_code == ErrorCode.NOT_FOUND
