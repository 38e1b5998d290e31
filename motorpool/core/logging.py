"""
Logging for the motor pool core.

Everything is emitted through the standard library so an embedding
application keeps control of handlers. ``setup_logging()`` installs a
console (and optional rotating file) handler with either a plain or a
python-json-logger formatter, and configures structlog with the same
context and redaction processors when structured logging is enabled.

Values bound with ``log_context()`` (actor, request id) are attached to
every record logged inside the block.
"""

import logging
import logging.handlers
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

import structlog
from pythonjsonlogger import jsonlogger

from motorpool.config import settings

ROOT_LOGGER = "motorpool"
REDACTED = "[REDACTED]"
SENSITIVE_KEYS = ("password", "token", "secret", "authorization", "credentials")

_bound: ContextVar[Dict[str, Any]] = ContextVar("motorpool_log_context", default={})


# ==================== Context ====================

def current_context() -> Dict[str, Any]:
    return dict(_bound.get())


@contextmanager
def log_context(**values: Any) -> Iterator[Dict[str, Any]]:
    """
    Bind values to every record logged inside the block.

    Example:
        with log_context(actor_id=actor.user_id):
            workflow.approve(request_id, actor)
    """
    token = _bound.set({**_bound.get(), **values})
    try:
        yield current_context()
    finally:
        _bound.reset(token)


def redact(values: Dict[str, Any]) -> Dict[str, Any]:
    """Copy of ``values`` with sensitive keys masked, nested dicts included."""
    cleaned: Dict[str, Any] = {}
    for key, value in values.items():
        if any(marker in str(key).lower() for marker in SENSITIVE_KEYS):
            cleaned[key] = REDACTED
        elif isinstance(value, dict):
            cleaned[key] = redact(value)
        else:
            cleaned[key] = value
    return cleaned


# ==================== stdlib plumbing ====================

class ContextFilter(logging.Filter):
    """Copies bound context onto records without overriding explicit extras."""

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in _bound.get().items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True


class MotorPoolJsonFormatter(jsonlogger.JsonFormatter):
    """JSON records carrying level, logger, location and environment."""

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["location"] = f"{record.module}.{record.funcName}:{record.lineno}"
        log_record["environment"] = settings.ENVIRONMENT
        if record.exc_info and "exception" not in log_record:
            log_record["exception"] = self.formatException(record.exc_info)

    def process_log_record(self, log_record):
        return redact(log_record)


def _formatter() -> logging.Formatter:
    if settings.logging.LOG_FORMAT == "json":
        return MotorPoolJsonFormatter("%(asctime)s %(name)s %(levelname)s %(message)s")
    return logging.Formatter("%(asctime)s %(levelname)-8s %(name)s: %(message)s")


def _file_handler(path: Path) -> logging.Handler:
    path.parent.mkdir(parents=True, exist_ok=True)
    if settings.logging.LOG_ROTATION == "size":
        return logging.handlers.RotatingFileHandler(path, maxBytes=10 * 1024 * 1024, backupCount=5)
    return logging.handlers.TimedRotatingFileHandler(
        path, when="midnight", backupCount=settings.logging.LOG_RETENTION
    )


def _handlers() -> List[logging.Handler]:
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if settings.logging.LOG_FILE:
        handlers.append(_file_handler(Path(settings.logging.LOG_FILE)))

    formatter = _formatter()
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(ContextFilter())
    return handlers


# ==================== structlog ====================

def _merge_context(logger, method_name, event_dict):
    for key, value in _bound.get().items():
        event_dict.setdefault(key, value)
    event_dict.setdefault("service", ROOT_LOGGER)
    return event_dict


def _redact_event(logger, method_name, event_dict):
    return redact(event_dict)


def configure_structlog() -> None:
    renderer = (
        structlog.processors.JSONRenderer()
        if settings.logging.LOG_FORMAT == "json"
        else structlog.processors.KeyValueRenderer(key_order=["event", "level", "logger"])
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            _merge_context,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            _redact_event,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )


# ==================== Public API ====================

class ContextLogger(logging.LoggerAdapter):
    """
    Logger adapter with per-instance context merged into ``extra``.

    Explicit ``extra`` passed to a call wins over instance context.
    """

    def __init__(self, logger: logging.Logger):
        super().__init__(logger, {})

    def add_context(self, **values: Any) -> "ContextLogger":
        self.extra.update(values)
        return self

    def remove_context(self, *keys: str) -> "ContextLogger":
        for key in keys:
            self.extra.pop(key, None)
        return self

    def process(self, msg, kwargs):
        kwargs["extra"] = {**self.extra, **(kwargs.get("extra") or {})}
        return msg, kwargs


def get_logger(name: Optional[str] = None) -> ContextLogger:
    """Logger under the ``motorpool`` namespace."""
    if not name:
        name = ROOT_LOGGER
    elif name != ROOT_LOGGER and not name.startswith(f"{ROOT_LOGGER}."):
        name = f"{ROOT_LOGGER}.{name}"
    return ContextLogger(logging.getLogger(name))


def setup_logging(level: Optional[str] = None) -> None:
    """
    Install handlers on the ``motorpool`` logger. Safe to call again;
    previous handlers are replaced.
    """
    level_name = (level or settings.logging.LOG_LEVEL).upper()

    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(level_name)
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    for handler in _handlers():
        root.addHandler(handler)

    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.logging.LOG_SQL_QUERIES else logging.WARNING
    )

    if settings.logging.ENABLE_STRUCTURED_LOGGING:
        configure_structlog()

    get_logger(__name__).info(
        "Logging configured",
        extra={"log_level": level_name, "log_format": settings.logging.LOG_FORMAT},
    )


__all__ = [
    "ContextLogger",
    "configure_structlog",
    "current_context",
    "get_logger",
    "log_context",
    "redact",
    "setup_logging",
]
