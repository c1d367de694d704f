"""Notification manager for reading and maintaining user notifications.

Notifications are created by the PDF request workflow through the activity
recorder; this manager only reads them and flips their read flag.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import delete, func, select, update

from ..config import Config, get_config
from ..db.schemas import Pagination
from ..db.sqlite import Database, get_db
from ..utils import page_offset, utcnow
from .models import Notification
from .schemas import NotificationPage, NotificationResponse

logger = logging.getLogger(__name__)


class NotificationManager:
    """Manages a user's notifications."""

    def __init__(self, db: Optional[Database] = None, config: Optional[Config] = None):
        """Initialize notification manager.

        Args:
            db: Database instance
            config: Configuration (retention period)
        """
        self.db = db or get_db()
        self.config = config or get_config()

    def list_for_user(
        self,
        user_id: str,
        read: Optional[bool] = None,
        page: int = 1,
        limit: int = 10,
    ) -> NotificationPage:
        """List a user's notifications, newest first.

        Args:
            user_id: Owner of the notifications
            read: Only read (True) or unread (False) notifications
            page: Page number, starting at 1
            limit: Notifications per page

        Returns:
            NotificationPage with pagination and the unread count
        """
        offset = page_offset(page, limit)

        with self.db.get_session() as session:
            conditions = [Notification.user_id == user_id]
            if read is not None:
                conditions.append(Notification.read == read)

            rows = session.execute(
                select(Notification)
                .where(*conditions)
                .order_by(Notification.created_at.desc())
                .offset(offset)
                .limit(limit)
            ).scalars().all()

            total = session.execute(
                select(func.count()).select_from(Notification).where(*conditions)
            ).scalar() or 0

            return NotificationPage(
                notifications=[NotificationResponse.model_validate(n) for n in rows],
                pagination=Pagination.build(page, limit, total),
                unread=self._unread_count(session, user_id),
            )

    def unread_count(self, user_id: str) -> int:
        """Count a user's unread notifications."""
        with self.db.get_session() as session:
            return self._unread_count(session, user_id)

    def _unread_count(self, session, user_id: str) -> int:
        return session.execute(
            select(func.count()).select_from(Notification).where(
                Notification.user_id == user_id,
                Notification.read.is_(False),
            )
        ).scalar() or 0

    def mark_read(self, notification_ids: list[str], user_id: str) -> int:
        """Mark notifications as read.

        Only notifications owned by ``user_id`` are touched.

        Returns:
            Number of notifications updated
        """
        return self._set_read(notification_ids, user_id, True)

    def mark_unread(self, notification_ids: list[str], user_id: str) -> int:
        """Mark notifications as unread.

        Returns:
            Number of notifications updated
        """
        return self._set_read(notification_ids, user_id, False)

    def _set_read(self, notification_ids: list[str], user_id: str, read: bool) -> int:
        if not notification_ids:
            return 0

        with self.db.get_session() as session:
            result = session.execute(
                update(Notification)
                .where(
                    Notification.id.in_(notification_ids),
                    Notification.user_id == user_id,
                )
                .values(read=read)
                .execution_options(synchronize_session=False)
            )
            return result.rowcount

    def delete(self, notification_id: str, user_id: str) -> bool:
        """Delete one of a user's notifications.

        Returns:
            True if deleted
        """
        with self.db.get_session() as session:
            result = session.execute(
                delete(Notification)
                .where(
                    Notification.id == notification_id,
                    Notification.user_id == user_id,
                )
                .execution_options(synchronize_session=False)
            )
            return result.rowcount > 0

    def delete_old(
        self,
        days_old: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> int:
        """Delete read notifications older than the retention period.

        Unread notifications are kept regardless of age.

        Args:
            days_old: Age cutoff in days (default: configured retention)
            now: Reference time (default: now)

        Returns:
            Number of notifications deleted
        """
        days = days_old if days_old is not None else self.config.notification_retention_days
        cutoff = (now or utcnow()) - timedelta(days=days)

        with self.db.get_session() as session:
            result = session.execute(
                delete(Notification)
                .where(
                    Notification.created_at < cutoff,
                    Notification.read.is_(True),
                )
                .execution_options(synchronize_session=False)
            )
            deleted = result.rowcount

        if deleted:
            logger.info("Deleted %d read notification(s) older than %d day(s)", deleted, days)
        return deleted
