"""Vehicle models."""
from motorpool.models.vehicle.vehicle import Vehicle

__all__ = ["Vehicle"]
