"""Activity and notification recorder.

The recorder never opens, commits or rolls back a session. It only adds
rows to the session it is given, so an activity entry or notification is
committed in the same unit of work as the state change it describes.
"""

from datetime import datetime
from typing import Any, Optional, Union

from sqlalchemy.orm import Session

from ..notifications.models import Notification
from ..notifications.schemas import NotificationType
from ..utils import utcnow
from .models import Activity
from .schemas import ActivityAction, ActorType


class ActivityRecorder:
    """Appends activity entries and notifications inside a caller's session."""

    def record(
        self,
        session: Session,
        action: Union[ActivityAction, str],
        user_id: str,
        user_type: ActorType = ActorType.STUDENT,
        book_id: Optional[str] = None,
        book_title: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
        now: Optional[datetime] = None,
    ) -> Activity:
        """Add an activity entry to the session.

        Args:
            session: Open unit of work of the calling operation
            action: Action label
            user_id: Actor identity
            user_type: Actor type
            book_id: Book the action concerns
            book_title: Book title at the time of the action
            details: Free-form JSON-serialisable details
            now: Timestamp (default: now)

        Returns:
            The pending Activity
        """
        activity = Activity(
            action=action.value if isinstance(action, ActivityAction) else action,
            user_id=user_id,
            user_type=user_type.value,
            book_id=book_id,
            book_title=book_title,
            timestamp=now or utcnow(),
        )
        activity.set_details(details)
        session.add(activity)
        return activity

    def notify(
        self,
        session: Session,
        user_id: str,
        title: str,
        message: str,
        notification_type: NotificationType = NotificationType.INFO,
        now: Optional[datetime] = None,
    ) -> Notification:
        """Add a notification for a user to the session.

        Returns:
            The pending Notification
        """
        notification = Notification(
            user_id=user_id,
            title=title,
            message=message,
            type=notification_type.value,
            read=False,
            created_at=now or utcnow(),
        )
        session.add(notification)
        return notification
