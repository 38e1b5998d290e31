from motorpool.schemas.trip.rental_company import RentalCompanyCreate, RentalCompanyResponse
from motorpool.schemas.trip.trip_request import (
    AssignVehicle,
    ReturnVehicle,
    TripRequestCreate,
    TripRequestFilter,
    TripRequestResponse,
    TripRequestUpdate,
)

__all__ = [
    "AssignVehicle",
    "RentalCompanyCreate",
    "RentalCompanyResponse",
    "ReturnVehicle",
    "TripRequestCreate",
    "TripRequestFilter",
    "TripRequestResponse",
    "TripRequestUpdate",
]
