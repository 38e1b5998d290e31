"""
Tests for settings, logging helpers and the service bootstrap.
"""

import logging

import pytest
from pydantic import ValidationError

from motorpool.config.settings import LoggingSettings, Settings
from motorpool.core.events import event_bus
from motorpool.core.logging import REDACTED, current_context, get_logger, log_context, redact
from motorpool.main import build_services, shutdown


class TestSettings:
    """Test settings validation."""

    def test_defaults(self):
        config = Settings()

        assert config.LOW_STOCK_THRESHOLD == 5
        assert config.MAINTENANCE_DUE_WINDOW_DAYS == 30

    def test_negative_threshold_rejected(self):
        with pytest.raises(ValidationError):
            Settings(LOW_STOCK_THRESHOLD=-1)

    def test_log_level_normalised(self):
        assert LoggingSettings(LOG_LEVEL="debug").LOG_LEVEL == "DEBUG"

    def test_unknown_log_format_rejected(self):
        with pytest.raises(ValidationError):
            LoggingSettings(LOG_FORMAT="xml")


class TestLoggerAdapter:
    """Test bound logging context."""

    def test_context_added_to_records(self, caplog):
        logger = get_logger("motorpool.tests").add_context(vehicle_id="v-1")

        with caplog.at_level(logging.INFO, logger="motorpool.tests"):
            logger.info("claimed", extra={"status": "ASSIGNED"})

        record = caplog.records[-1]
        assert record.vehicle_id == "v-1"
        assert record.status == "ASSIGNED"

    def test_context_removed(self, caplog):
        logger = get_logger("motorpool.tests").add_context(vehicle_id="v-1").remove_context("vehicle_id")

        with caplog.at_level(logging.INFO, logger="motorpool.tests"):
            logger.info("released")

        assert not hasattr(caplog.records[-1], "vehicle_id")

    def test_loggers_live_under_package_namespace(self):
        assert get_logger("VehicleRegistry").logger.name == "motorpool.VehicleRegistry"
        assert get_logger("motorpool.db").logger.name == "motorpool.db"

    def test_log_context_is_scoped(self):
        with log_context(actor_id="admin-1"):
            with log_context(request_id="r-1"):
                assert current_context() == {"actor_id": "admin-1", "request_id": "r-1"}
            assert current_context() == {"actor_id": "admin-1"}

        assert current_context() == {}

    def test_redact_masks_nested_secrets(self):
        cleaned = redact({"user": "u-1", "details": {"api_token": "abc"}, "password": "x"})

        assert cleaned == {"user": "u-1", "details": {"api_token": REDACTED}, "password": REDACTED}


class TestBootstrap:
    """Test service wiring."""

    def test_services_share_registry(self, db, bus):
        pool = build_services(db, bus)

        assert pool.trips.registry is pool.registry
        assert pool.maintenance.registry is pool.registry
        assert pool.inventory.registry is pool.registry
        assert pool.parts.bus is bus

    def test_shutdown_delivers_queued_events(self):
        seen = []
        handler = event_bus.subscribe("bootstrap.ping", seen.append)
        try:
            event_bus.emit("bootstrap.ping")
            shutdown()
        finally:
            event_bus.unsubscribe("bootstrap.ping", handler)

        assert len(seen) == 1
