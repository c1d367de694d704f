"""Read access to the activity log."""

from typing import Optional

from sqlalchemy import func, select

from ..db.schemas import Pagination
from ..db.sqlite import Database, get_db
from ..utils import page_offset
from .models import Activity
from .schemas import ActivityPage, ActivityResponse


class ActivityManager:
    """Lists activity log entries for administrators."""

    def __init__(self, db: Optional[Database] = None):
        """Initialize activity manager.

        Args:
            db: Database instance
        """
        self.db = db or get_db()

    def list_activities(
        self,
        page: int = 1,
        limit: int = 20,
        user_id: Optional[str] = None,
        book_id: Optional[str] = None,
    ) -> ActivityPage:
        """List activity entries, newest first.

        Args:
            page: Page number, starting at 1
            limit: Entries per page
            user_id: Only entries for this user
            book_id: Only entries for this book

        Returns:
            ActivityPage with pagination metadata
        """
        offset = page_offset(page, limit)

        with self.db.get_session() as session:
            conditions = []
            if user_id:
                conditions.append(Activity.user_id == user_id)
            if book_id:
                conditions.append(Activity.book_id == book_id)

            rows = session.execute(
                select(Activity)
                .where(*conditions)
                .order_by(Activity.timestamp.desc())
                .offset(offset)
                .limit(limit)
            ).scalars().all()

            total = session.execute(
                select(func.count()).select_from(Activity).where(*conditions)
            ).scalar() or 0

            return ActivityPage(
                activities=[ActivityResponse.model_validate(a) for a in rows],
                pagination=Pagination.build(page, limit, total),
            )
