"""Pydantic schemas for the activity log."""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, field_validator

from ..db.schemas import Pagination


class ActorType(str, Enum):
    """Kind of user an activity is attributed to."""

    STUDENT = "student"
    ADMIN = "admin"


class ActivityAction(str, Enum):
    """Action labels written by the circulation and PDF workflows."""

    BOOK_BORROWED = "Book borrowed"
    BOOK_RETURNED = "Book returned"
    PDF_REQUESTED = "PDF requested"
    PDF_APPROVED = "PDF request approved"
    PDF_REJECTED = "PDF request rejected"


class ActivityResponse(BaseModel):
    """Schema for activity log entries."""

    id: str
    action: str
    user_id: str
    user_type: ActorType
    book_id: Optional[str]
    book_title: Optional[str]
    timestamp: datetime
    details: Optional[dict[str, Any]] = None

    model_config = {"from_attributes": True}

    @field_validator("details", mode="before")
    @classmethod
    def parse_details(cls, v):
        """Accept the JSON text stored on the ORM row."""
        if isinstance(v, str):
            return json.loads(v)
        return v


class ActivityPage(BaseModel):
    """A page of the activity log."""

    activities: list[ActivityResponse]
    pagination: Pagination
