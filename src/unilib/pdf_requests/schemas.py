"""Pydantic schemas for PDF copy requests."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ..db.schemas import Pagination


class PdfRequestStatus(str, Enum):
    """Status of a PDF request. Approved and rejected are terminal."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class PdfRequestCreate(BaseModel):
    """Schema for submitting a PDF request."""

    book_id: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1)
    reason: str = Field(..., min_length=1, max_length=2000)

    @field_validator("reason")
    @classmethod
    def strip_reason(cls, v: str) -> str:
        """Reject whitespace-only reasons."""
        v = v.strip()
        if not v:
            raise ValueError("reason must not be blank")
        return v


class PdfDecision(BaseModel):
    """Schema for an administrator's decision on a PDF request."""

    status: PdfRequestStatus
    admin_notes: Optional[str] = Field(None, max_length=2000)
    pdf_url: Optional[str] = Field(None, max_length=2000)
    admin_id: Optional[str] = None

    @field_validator("status")
    @classmethod
    def must_be_terminal(cls, v: PdfRequestStatus) -> PdfRequestStatus:
        """A decision is either approved or rejected."""
        if v == PdfRequestStatus.PENDING:
            raise ValueError("decision must be approved or rejected")
        return v


class PdfRequestResponse(BaseModel):
    """Schema for PDF request responses."""

    id: str
    book_id: str
    user_id: str
    request_date: datetime
    status: PdfRequestStatus
    reason: str
    admin_notes: Optional[str]
    pdf_url: Optional[str]
    processed_date: Optional[datetime]

    # Related data (populated by manager)
    book_title: Optional[str] = None

    model_config = {"from_attributes": True}


class PdfRequestPage(BaseModel):
    """A page of PDF requests."""

    requests: list[PdfRequestResponse]
    pagination: Pagination


class PdfRequestStats(BaseModel):
    """Counts of PDF requests by status."""

    pending: int
    approved: int
    rejected: int
    total: int
