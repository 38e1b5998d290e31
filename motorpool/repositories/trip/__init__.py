from motorpool.repositories.trip.trip_request_repository import RentalCompanyRepository, TripRequestRepository

__all__ = ["RentalCompanyRepository", "TripRequestRepository"]
