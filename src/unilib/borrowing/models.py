"""SQLAlchemy models for borrowing.

Tables:
- borrowed_books: One row per loan of a physical copy
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..db.models import Base, Book, generate_uuid
from ..utils import utcnow
from .schemas import LoanStatus


class BorrowedBook(Base):
    """Loan record - created on borrow, closed once on return."""

    __tablename__ = "borrowed_books"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)

    book_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("books.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    # Dates
    borrow_date: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    due_date: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    return_date: Mapped[Optional[datetime]] = mapped_column(DateTime)

    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=LoanStatus.BORROWED.value, index=True
    )
    fine: Mapped[Optional[int]] = mapped_column(Integer)  # set on return

    # Relationships
    book: Mapped["Book"] = relationship("Book")

    def __repr__(self) -> str:
        return f"<BorrowedBook(id={self.id}, book_id={self.book_id}, user_id={self.user_id}, status={self.status})>"

    def is_overdue(self, now: Optional[datetime] = None) -> bool:
        """Check if the loan is still out and past its due date."""
        now = now or utcnow()
        return self.status != LoanStatus.RETURNED.value and self.due_date < now

    def overdue_days(self, now: Optional[datetime] = None) -> int:
        """Whole days past due (0 if not overdue)."""
        now = now or utcnow()
        if not self.is_overdue(now):
            return 0
        return (now - self.due_date).days
