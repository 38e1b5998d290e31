from motorpool.repositories.vehicle.vehicle_repository import VehicleRepository

__all__ = ["VehicleRepository"]
