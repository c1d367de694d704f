"""SQLAlchemy models for the activity log.

Tables:
- activities: Append-only audit trail of circulation and PDF events
"""

import json
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ..db.models import Base, generate_uuid
from ..utils import utcnow
from .schemas import ActorType


class Activity(Base):
    """Activity model - one audit entry per state change."""

    __tablename__ = "activities"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    action: Mapped[str] = mapped_column(String(100), nullable=False, index=True)

    # Who
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    user_type: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ActorType.STUDENT.value
    )

    # What (kept without a foreign key so entries outlive the book)
    book_id: Mapped[Optional[str]] = mapped_column(String(36), index=True)
    book_title: Mapped[Optional[str]] = mapped_column(String(500))

    timestamp: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow, index=True)
    details: Mapped[Optional[str]] = mapped_column(Text)  # JSON object

    def __repr__(self) -> str:
        return f"<Activity(id={self.id}, action='{self.action}', user_id={self.user_id})>"

    def get_details(self) -> Optional[dict[str, Any]]:
        """Get details as dict."""
        if not self.details:
            return None
        return json.loads(self.details)

    def set_details(self, details: Optional[dict[str, Any]]) -> None:
        """Set details from dict."""
        self.details = json.dumps(details) if details is not None else None
