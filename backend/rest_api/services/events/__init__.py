"""
Event Services - order lifecycle notifications.

Notifications are published after the triggering transaction commits and
never fail the business operation.
"""

from .notification_service import NotificationService

__all__ = [
    "NotificationService",
]
