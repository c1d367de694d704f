"""Pydantic schemas for borrowing."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class LoanStatus(str, Enum):
    """Status of a borrowing record."""

    BORROWED = "borrowed"
    RETURNED = "returned"
    OVERDUE = "overdue"  # only set by the overdue status sync


class BorrowRequest(BaseModel):
    """Input for borrowing a book."""

    book_id: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1)


class LoanResponse(BaseModel):
    """Schema for borrowing record responses."""

    id: str
    book_id: str
    user_id: str
    borrow_date: datetime
    due_date: datetime
    return_date: Optional[datetime]
    status: LoanStatus
    fine: Optional[int]

    # Related data (populated by manager)
    book_title: Optional[str] = None
    days_overdue: int = 0

    model_config = {"from_attributes": True}


class BorrowingStats(BaseModel):
    """Overall borrowing statistics."""

    total_borrowed: int  # status borrowed
    overdue_count: int  # status overdue (as of the last sync)
    past_due_count: int  # not returned and past due right now
    total_fines: int  # sum of fines over returned loans


class OverdueReport(BaseModel):
    """Report of loans that are out past their due date."""

    loans: list[LoanResponse]
    total_overdue: int
    oldest_overdue_days: int
    projected_fines: int  # fines due if everything were returned now
