"""
Notification events emitted by the workflows.

Maps each committed transition to the users and departments that should
hear about it. Rendering and delivery belong to the notification
collaborator subscribed to the event bus.
"""

import enum
from typing import Any, Dict, List, Optional

from motorpool.core.events import NotificationEvent
from motorpool.models.base.enums import Department

TRIP_REQUEST = "TripRequest"
MAINTENANCE_REQUEST = "MaintenanceRequest"
INVENTORY_REQUEST = "InventoryRequest"
PURCHASE_REQUEST = "PurchaseRequest"
VEHICLE = "Vehicle"


class NotificationType(str, enum.Enum):
    """Notification kinds understood by the notification collaborator."""
    TRIP_REQUEST_CREATED = "TRIP_REQUEST_CREATED"
    TRIP_REQUEST_ASSIGNED = "TRIP_REQUEST_ASSIGNED"
    TRIP_REQUEST_APPROVED = "TRIP_REQUEST_APPROVED"
    TRIP_REQUEST_REJECTED = "TRIP_REQUEST_REJECTED"
    VEHICLE_IN_TRANSIT = "VEHICLE_IN_TRANSIT"
    VEHICLE_RETURNED = "VEHICLE_RETURNED"
    MAINTENANCE_REQUEST_CREATED = "MAINTENANCE_REQUEST_CREATED"
    MAINTENANCE_TRIAGED = "MAINTENANCE_TRIAGED"
    MAINTENANCE_APPROVED = "MAINTENANCE_APPROVED"
    MAINTENANCE_REJECTED = "MAINTENANCE_REJECTED"
    MAINTENANCE_COMPLETED = "MAINTENANCE_COMPLETED"
    INVENTORY_REQUEST_CREATED = "INVENTORY_REQUEST_CREATED"
    INVENTORY_REQUEST_APPROVED = "INVENTORY_REQUEST_APPROVED"
    INVENTORY_REQUEST_REJECTED = "INVENTORY_REQUEST_REJECTED"
    PURCHASE_REQUEST_CREATED = "PURCHASE_REQUEST_CREATED"
    PURCHASE_REQUEST_APPROVED = "PURCHASE_REQUEST_APPROVED"
    PURCHASE_REQUEST_REJECTED = "PURCHASE_REQUEST_REJECTED"
    SCHEDULED_MAINTENANCE_APPROACHING = "SCHEDULED_MAINTENANCE_APPROACHING"
    SCHEDULED_MAINTENANCE_OVERDUE = "SCHEDULED_MAINTENANCE_OVERDUE"
    WARRANTY_EXPIRING = "WARRANTY_EXPIRING"


def _event(
    notification_type: NotificationType,
    entity_type: str,
    entity_id: Any,
    users: Optional[List[Any]] = None,
    departments: Optional[List[Department]] = None,
    context: Optional[Dict[str, Any]] = None,
) -> NotificationEvent:
    return NotificationEvent(
        notification_type=notification_type.value,
        entity_type=entity_type,
        entity_id=entity_id,
        target_user_ids=[u for u in (users or []) if u],
        target_departments=[d.value for d in (departments or [])],
        context=context,
    )


# ==========================================
# Trip request events
# ==========================================

def trip_request_created(request, context: Optional[Dict[str, Any]] = None) -> NotificationEvent:
    # Garage assigns the vehicle
    return _event(
        NotificationType.TRIP_REQUEST_CREATED, TRIP_REQUEST, request.id,
        departments=[Department.GARAGE], context=context,
    )


def trip_request_assigned(request, context: Optional[Dict[str, Any]] = None) -> NotificationEvent:
    # Requester is informed, admins must approve
    return _event(
        NotificationType.TRIP_REQUEST_ASSIGNED, TRIP_REQUEST, request.id,
        users=[request.requester_id], departments=[Department.ADMIN], context=context,
    )


def trip_request_approved(request, context: Optional[Dict[str, Any]] = None) -> NotificationEvent:
    return _event(
        NotificationType.TRIP_REQUEST_APPROVED, TRIP_REQUEST, request.id,
        users=[request.requester_id], context=context,
    )


def trip_request_rejected(request, context: Optional[Dict[str, Any]] = None) -> NotificationEvent:
    return _event(
        NotificationType.TRIP_REQUEST_REJECTED, TRIP_REQUEST, request.id,
        users=[request.requester_id], context=context,
    )


def vehicle_in_transit(request, context: Optional[Dict[str, Any]] = None) -> NotificationEvent:
    return _event(
        NotificationType.VEHICLE_IN_TRANSIT, TRIP_REQUEST, request.id,
        departments=[Department.GARAGE], context=context,
    )


def vehicle_returned(request, context: Optional[Dict[str, Any]] = None) -> NotificationEvent:
    return _event(
        NotificationType.VEHICLE_RETURNED, TRIP_REQUEST, request.id,
        users=[request.requester_id], context=context,
    )


# ==========================================
# Maintenance events
# ==========================================

def maintenance_created(request, context: Optional[Dict[str, Any]] = None) -> NotificationEvent:
    return _event(
        NotificationType.MAINTENANCE_REQUEST_CREATED, MAINTENANCE_REQUEST, request.id,
        departments=[Department.MAINTENANCE], context=context,
    )


def maintenance_triaged(request, context: Optional[Dict[str, Any]] = None) -> NotificationEvent:
    # Creator is informed, admins must approve
    return _event(
        NotificationType.MAINTENANCE_TRIAGED, MAINTENANCE_REQUEST, request.id,
        users=[request.requested_by], departments=[Department.ADMIN], context=context,
    )


def maintenance_approved(request, context: Optional[Dict[str, Any]] = None) -> NotificationEvent:
    # Maintenance can start work
    return _event(
        NotificationType.MAINTENANCE_APPROVED, MAINTENANCE_REQUEST, request.id,
        users=[request.requested_by], departments=[Department.MAINTENANCE], context=context,
    )


def maintenance_rejected(request, context: Optional[Dict[str, Any]] = None) -> NotificationEvent:
    return _event(
        NotificationType.MAINTENANCE_REJECTED, MAINTENANCE_REQUEST, request.id,
        users=[request.requested_by], context=context,
    )


def maintenance_completed(request, context: Optional[Dict[str, Any]] = None) -> NotificationEvent:
    # Garage gets the vehicle back
    return _event(
        NotificationType.MAINTENANCE_COMPLETED, MAINTENANCE_REQUEST, request.id,
        departments=[Department.GARAGE], context=context,
    )


# ==========================================
# Inventory events
# ==========================================

def inventory_request_created(request, context: Optional[Dict[str, Any]] = None) -> NotificationEvent:
    return _event(
        NotificationType.INVENTORY_REQUEST_CREATED, INVENTORY_REQUEST, request.id,
        departments=[Department.ADMIN], context=context,
    )


def inventory_request_approved(request, context: Optional[Dict[str, Any]] = None) -> NotificationEvent:
    return _event(
        NotificationType.INVENTORY_REQUEST_APPROVED, INVENTORY_REQUEST, request.id,
        users=[request.requested_by], context=context,
    )


def inventory_request_rejected(request, context: Optional[Dict[str, Any]] = None) -> NotificationEvent:
    return _event(
        NotificationType.INVENTORY_REQUEST_REJECTED, INVENTORY_REQUEST, request.id,
        users=[request.requested_by], context=context,
    )


# ==========================================
# Purchase request events
# ==========================================

def purchase_request_created(request, context: Optional[Dict[str, Any]] = None) -> NotificationEvent:
    return _event(
        NotificationType.PURCHASE_REQUEST_CREATED, PURCHASE_REQUEST, request.id,
        departments=[Department.ADMIN], context=context,
    )


def purchase_request_approved(request, context: Optional[Dict[str, Any]] = None) -> NotificationEvent:
    return _event(
        NotificationType.PURCHASE_REQUEST_APPROVED, PURCHASE_REQUEST, request.id,
        users=[request.requested_by], context=context,
    )


def purchase_request_rejected(request, context: Optional[Dict[str, Any]] = None) -> NotificationEvent:
    return _event(
        NotificationType.PURCHASE_REQUEST_REJECTED, PURCHASE_REQUEST, request.id,
        users=[request.requested_by], context=context,
    )


# ==========================================
# Fleet schedule alerts
# ==========================================

def scheduled_maintenance_approaching(vehicle, context: Optional[Dict[str, Any]] = None) -> NotificationEvent:
    return _event(
        NotificationType.SCHEDULED_MAINTENANCE_APPROACHING, VEHICLE, vehicle.id,
        departments=[Department.GARAGE, Department.MAINTENANCE], context=context,
    )


def scheduled_maintenance_overdue(vehicle, context: Optional[Dict[str, Any]] = None) -> NotificationEvent:
    return _event(
        NotificationType.SCHEDULED_MAINTENANCE_OVERDUE, VEHICLE, vehicle.id,
        departments=[Department.GARAGE, Department.MAINTENANCE, Department.ADMIN], context=context,
    )


def warranty_expiring(vehicle, context: Optional[Dict[str, Any]] = None) -> NotificationEvent:
    return _event(
        NotificationType.WARRANTY_EXPIRING, VEHICLE, vehicle.id,
        departments=[Department.GARAGE, Department.ADMIN], context=context,
    )
