"""Pydantic schemas for user notifications."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel

from ..db.schemas import Pagination


class NotificationType(str, Enum):
    """Severity of a notification."""

    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class NotificationResponse(BaseModel):
    """Schema for notification responses."""

    id: str
    user_id: str
    title: str
    message: str
    type: NotificationType
    read: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class NotificationPage(BaseModel):
    """A page of a user's notifications."""

    notifications: list[NotificationResponse]
    pagination: Pagination
    unread: int
