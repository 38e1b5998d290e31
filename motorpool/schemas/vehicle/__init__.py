from motorpool.schemas.vehicle.vehicle import VehicleFilter, VehiclePayload, VehicleResponse, VehicleUpdate

__all__ = ["VehicleFilter", "VehiclePayload", "VehicleResponse", "VehicleUpdate"]
