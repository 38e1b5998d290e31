from motorpool.services.vehicle.vehicle_registry import VehicleRegistry

__all__ = ["VehicleRegistry"]
