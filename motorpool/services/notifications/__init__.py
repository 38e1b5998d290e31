"""Notification event builders."""
from motorpool.services.notifications import notification_events
from motorpool.services.notifications.notification_events import NotificationType

__all__ = ["NotificationType", "notification_events"]
