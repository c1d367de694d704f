"""SQLAlchemy models for PDF copy requests.

Tables:
- pdf_requests: Student requests for a PDF copy of a catalogued book
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..db.models import Base, Book, generate_uuid
from ..utils import utcnow
from .schemas import PdfRequestStatus

_PENDING_ONLY = text(f"status = '{PdfRequestStatus.PENDING.value}'")


class PdfRequest(Base):
    """PDF request model - pending until an administrator decides it once."""

    __tablename__ = "pdf_requests"
    __table_args__ = (
        # At most one pending request per (book, user)
        Index(
            "uq_pdf_requests_pending_book_user",
            "book_id",
            "user_id",
            unique=True,
            sqlite_where=_PENDING_ONLY,
            postgresql_where=_PENDING_ONLY,
        ),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)

    book_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("books.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    request_date: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow, index=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=PdfRequestStatus.PENDING.value, index=True
    )
    reason: Mapped[str] = mapped_column(Text, nullable=False)

    # Set by the decision
    admin_notes: Mapped[Optional[str]] = mapped_column(Text)
    pdf_url: Mapped[Optional[str]] = mapped_column(Text)  # approved only
    processed_date: Mapped[Optional[datetime]] = mapped_column(DateTime)

    # Relationships
    book: Mapped["Book"] = relationship("Book")

    def __repr__(self) -> str:
        return f"<PdfRequest(id={self.id}, book_id={self.book_id}, user_id={self.user_id}, status={self.status})>"

    @property
    def is_pending(self) -> bool:
        """Check if the request still awaits a decision."""
        return self.status == PdfRequestStatus.PENDING.value
