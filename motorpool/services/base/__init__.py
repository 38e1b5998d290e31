"""
Service base classes: results, transactions, events and transition tables.
"""

from motorpool.services.base.base_service import BaseService
from motorpool.services.base.event_dispatcher import DispatchedEvent, DispatchResult, EventDispatcher
from motorpool.services.base.service_result import (
    ErrorCode,
    ErrorSeverity,
    ServiceError,
    ServiceResult,
)
from motorpool.services.base.state_machine import TransitionTable

__all__ = [
    "BaseService",
    "DispatchedEvent",
    "DispatchResult",
    "ErrorCode",
    "ErrorSeverity",
    "EventDispatcher",
    "ServiceError",
    "ServiceResult",
    "TransitionTable",
]
