"""User notifications module.

Provides functionality for:
- Listing a user's notifications with read/unread filtering
- Marking notifications read or unread
- Pruning old read notifications
"""

from .manager import NotificationManager
from .models import Notification
from .schemas import NotificationPage, NotificationResponse, NotificationType

__all__ = [
    "NotificationManager",
    "Notification",
    "NotificationPage",
    "NotificationResponse",
    "NotificationType",
]
