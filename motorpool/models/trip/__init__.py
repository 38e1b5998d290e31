"""Trip request and rental company models."""
from motorpool.models.trip.rental_company import RentalCompany
from motorpool.models.trip.trip_request import TripRequest

__all__ = ["RentalCompany", "TripRequest"]
