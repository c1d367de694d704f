"""SQLAlchemy ORM models for the catalog.

Tables:
- books: Catalog records with availability counters

Circulation, PDF request, activity and notification tables live in their
feature packages and register on the same ``Base``.
"""

from datetime import datetime
from typing import Optional
from uuid import uuid4

from sqlalchemy import CheckConstraint, DateTime, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from ..utils import utcnow


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


def generate_uuid() -> str:
    """Generate a UUID string for primary keys."""
    return str(uuid4())


class Book(Base):
    """Book model - a catalogued title and its loanable copies."""

    __tablename__ = "books"
    __table_args__ = (
        CheckConstraint("available >= 0", name="ck_books_available_non_negative"),
        CheckConstraint("total >= 0", name="ck_books_total_non_negative"),
        CheckConstraint("available <= total", name="ck_books_available_le_total"),
    )

    # Primary key
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)

    # Bibliographic fields
    title: Mapped[str] = mapped_column(String(500), nullable=False, index=True)
    author: Mapped[str] = mapped_column(String(500), nullable=False, index=True)
    isbn: Mapped[str] = mapped_column(String(20), nullable=False, unique=True, index=True)
    category: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    description: Mapped[Optional[str]] = mapped_column(Text)
    published_year: Mapped[Optional[int]] = mapped_column(Integer)
    publisher: Mapped[Optional[str]] = mapped_column(String(500))
    location: Mapped[Optional[str]] = mapped_column(String(100))  # shelf
    cover_image: Mapped[Optional[str]] = mapped_column(Text)  # URL

    # Copies: available only moves through borrow/return
    available: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    total: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)

    def __repr__(self) -> str:
        return f"<Book(id={self.id}, title='{self.title}', available={self.available}/{self.total})>"

    @property
    def on_loan(self) -> int:
        """Copies currently lent out."""
        return self.total - self.available

    @property
    def is_available(self) -> bool:
        """Check if at least one copy can be borrowed."""
        return self.available > 0
