"""
Process bootstrap for the motor pool core.

Embedding applications call startup() once, bind services to a session
with build_services(), and call shutdown() on exit so queued audit and
notification events are delivered.
"""
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from motorpool.config.settings import settings
from motorpool.core.events import EventBus, event_bus
from motorpool.core.logging import get_logger, setup_logging
from motorpool.db.init_db import init_db
from motorpool.services import (
    InventoryWorkflow,
    MaintenanceWorkflow,
    PartsLedger,
    PurchaseRequestWorkflow,
    RentalCompanyService,
    TripRequestWorkflow,
    VehicleRegistry,
)

logger = get_logger(__name__)


@dataclass
class MotorPool:
    """Workflow services sharing one session and one vehicle registry."""

    registry: VehicleRegistry
    trips: TripRequestWorkflow
    maintenance: MaintenanceWorkflow
    inventory: InventoryWorkflow
    parts: PartsLedger
    purchases: PurchaseRequestWorkflow
    rentals: RentalCompanyService


def build_services(db: Session, bus: Optional[EventBus] = None) -> MotorPool:
    bus = bus if bus is not None else event_bus
    registry = VehicleRegistry(db, bus)
    return MotorPool(
        registry=registry,
        trips=TripRequestWorkflow(db, bus, registry),
        maintenance=MaintenanceWorkflow(db, bus, registry),
        inventory=InventoryWorkflow(db, bus, registry),
        parts=PartsLedger(db, bus),
        purchases=PurchaseRequestWorkflow(db, bus),
        rentals=RentalCompanyService(db, bus),
    )


def startup(bind: Optional[Engine] = None) -> None:
    """Configure logging, create tables outside production, start event delivery."""
    setup_logging()

    if not settings.is_production():
        # Production schemas are managed by migrations
        init_db(bind)

    if settings.EVENT_BUS_WORKER_ENABLED:
        event_bus.start()

    logger.info("Motor pool core started", extra={"environment": settings.ENVIRONMENT})


def shutdown() -> None:
    """Deliver queued events and stop the worker."""
    if event_bus.get_stats()["running"]:
        event_bus.stop()
    else:
        event_bus.drain()
    logger.info("Motor pool core stopped")
