"""SQLite database operations.

Handles database connection, session management, and catalog CRUD.
"""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Optional

from sqlalchemy import create_engine, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ..config import get_config
from ..errors import BookInUseError, DuplicateIsbnError
from ..utils import page_offset, utcnow
from .models import Base, Book
from .schemas import (
    BookCreate,
    BookPage,
    BookResponse,
    BookUpdate,
    CatalogStats,
    CategoryCount,
    Pagination,
)

logger = logging.getLogger(__name__)


class Database:
    """Database connection and operations manager."""

    def __init__(self, db_path: Optional[str] = None):
        """Initialize database connection.

        Args:
            db_path: Path to SQLite database file, or ":memory:". If None,
                     uses the configured UNILIB_DB_PATH.
        """
        if db_path is None:
            db_path = str(get_config().db_path)

        self.db_path = Path(db_path)
        self._is_memory = str(db_path) == ":memory:"

        if not self._is_memory:
            self._ensure_directory()

        # For in-memory databases, use StaticPool to reuse the same connection
        # This ensures all sessions share the same in-memory database
        if self._is_memory:
            self.engine = create_engine(
                "sqlite:///:memory:",
                echo=False,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        else:
            self.engine = create_engine(
                f"sqlite:///{self.db_path}",
                echo=False,
                connect_args={"check_same_thread": False},
            )
        self.SessionLocal = sessionmaker(bind=self.engine, autocommit=False, autoflush=False)

    def _ensure_directory(self) -> None:
        """Ensure the database directory exists."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def create_tables(self) -> None:
        """Create all database tables."""
        # Import feature models to register them with Base
        from ..borrowing.models import BorrowedBook  # noqa: F401
        from ..pdf_requests.models import PdfRequest  # noqa: F401
        from ..activity.models import Activity  # noqa: F401
        from ..notifications.models import Notification  # noqa: F401

        Base.metadata.create_all(self.engine)

    def drop_tables(self) -> None:
        """Drop all database tables. Use with caution!"""
        Base.metadata.drop_all(self.engine)

    @contextmanager
    def get_session(self) -> Generator[Session, None, None]:
        """Get a database session context manager.

        The session is one unit of work: everything written through it is
        committed together on clean exit, or rolled back together when the
        block raises.
        """
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    # ========================================================================
    # Book Operations
    # ========================================================================

    def create_book(self, book: BookCreate, session: Optional[Session] = None) -> Book:
        """Catalog a new book with all of its copies available."""

        def _create(s: Session) -> Book:
            existing = s.execute(select(Book.id).where(Book.isbn == book.isbn)).first()
            if existing:
                raise DuplicateIsbnError(book.isbn)

            db_book = Book(
                title=book.title,
                author=book.author,
                isbn=book.isbn,
                category=book.category,
                description=book.description,
                published_year=book.published_year,
                publisher=book.publisher,
                location=book.location,
                cover_image=book.cover_image,
                available=book.quantity,
                total=book.quantity,
            )
            s.add(db_book)
            try:
                s.flush()
            except IntegrityError as e:
                raise DuplicateIsbnError(book.isbn) from e

            logger.info("Catalogued book %s (%s), %d copies", db_book.id, db_book.title, db_book.total)
            return db_book

        if session:
            return _create(session)
        else:
            with self.get_session() as s:
                book_obj = _create(s)
                s.commit()
                s.refresh(book_obj)
                s.expunge(book_obj)
                return book_obj

    def get_book(self, book_id: str, session: Optional[Session] = None) -> Optional[Book]:
        """Get a book by ID."""

        def _get(s: Session) -> Optional[Book]:
            return s.get(Book, book_id)

        if session:
            return _get(session)
        else:
            with self.get_session() as s:
                book = _get(s)
                if book:
                    s.expunge(book)
                return book

    def get_book_by_isbn(
        self, isbn: str, session: Optional[Session] = None
    ) -> Optional[Book]:
        """Get a book by ISBN."""

        def _get(s: Session) -> Optional[Book]:
            cleaned = isbn.strip().replace("-", "").replace(" ", "")
            stmt = select(Book).where(Book.isbn == cleaned)
            return s.execute(stmt).scalar_one_or_none()

        if session:
            return _get(session)
        else:
            with self.get_session() as s:
                book = _get(s)
                if book:
                    s.expunge(book)
                return book

    def list_books(
        self,
        search: Optional[str] = None,
        category: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
    ) -> BookPage:
        """List catalog books, newest first.

        Args:
            search: Case-insensitive match on title, author, ISBN or category
            category: Exact category filter ("all" means no filter)
            page: Page number, starting at 1
            limit: Books per page

        Returns:
            BookPage with books and pagination metadata
        """
        offset = page_offset(page, limit)

        with self.get_session() as s:
            conditions = []
            if search:
                pattern = f"%{search}%"
                conditions.append(
                    or_(
                        Book.title.ilike(pattern),
                        Book.author.ilike(pattern),
                        Book.isbn.ilike(pattern),
                        Book.category.ilike(pattern),
                    )
                )
            if category and category != "all":
                conditions.append(Book.category == category)

            stmt = (
                select(Book)
                .where(*conditions)
                .order_by(Book.created_at.desc(), Book.title)
                .offset(offset)
                .limit(limit)
            )
            books = s.execute(stmt).scalars().all()

            total = s.execute(
                select(func.count()).select_from(Book).where(*conditions)
            ).scalar() or 0

            return BookPage(
                books=[BookResponse.model_validate(b) for b in books],
                pagination=Pagination.build(page, limit, total),
            )

    def update_book(
        self, book_id: str, update_data: BookUpdate, session: Optional[Session] = None
    ) -> Optional[Book]:
        """Update a book record.

        A new ``quantity`` replaces ``total`` and moves ``available`` by the
        same amount, so copies on loan stay accounted for.

        Raises:
            BookInUseError: If the new quantity is below the copies on loan
            DuplicateIsbnError: If the new ISBN belongs to another book
        """

        def _update(s: Session) -> Optional[Book]:
            book = s.get(Book, book_id)
            if not book:
                return None

            changes = update_data.model_dump(exclude_unset=True)
            quantity = changes.pop("quantity", None)

            if "isbn" in changes and changes["isbn"] != book.isbn:
                clash = s.execute(
                    select(Book.id).where(Book.isbn == changes["isbn"], Book.id != book_id)
                ).first()
                if clash:
                    raise DuplicateIsbnError(changes["isbn"])

            for field, value in changes.items():
                if field in ("title", "author", "isbn", "category") and value is None:
                    continue
                setattr(book, field, value)

            if quantity is not None and quantity != book.total:
                delta = quantity - book.total
                # Guarded on the total we read and on the copies still on the shelf
                result = s.execute(
                    update(Book)
                    .where(
                        Book.id == book_id,
                        Book.total == book.total,
                        Book.available + delta >= 0,
                    )
                    .values(total=quantity, available=Book.available + delta, updated_at=utcnow())
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount != 1:
                    raise BookInUseError(
                        f"Cannot set quantity of book {book_id} to {quantity}: "
                        f"{book.on_loan} cop(ies) on loan"
                    )

            s.flush()
            s.refresh(book)
            return book

        if session:
            return _update(session)
        else:
            with self.get_session() as s:
                book = _update(s)
                if book:
                    s.commit()
                    s.refresh(book)
                    s.expunge(book)
                return book

    def delete_book(self, book_id: str) -> bool:
        """Delete a book and its closed loan and request history.

        Raises:
            BookInUseError: If copies are on loan or PDF requests are pending

        Returns:
            True if deleted, False if the book does not exist
        """
        from ..borrowing.models import BorrowedBook
        from ..borrowing.schemas import LoanStatus
        from ..pdf_requests.models import PdfRequest
        from ..pdf_requests.schemas import PdfRequestStatus

        with self.get_session() as s:
            book = s.get(Book, book_id)
            if not book:
                return False

            outstanding = s.execute(
                select(func.count()).select_from(BorrowedBook).where(
                    BorrowedBook.book_id == book_id,
                    BorrowedBook.status != LoanStatus.RETURNED.value,
                )
            ).scalar() or 0
            if outstanding:
                raise BookInUseError(f"Cannot delete book with {outstanding} active loan(s)")

            pending = s.execute(
                select(func.count()).select_from(PdfRequest).where(
                    PdfRequest.book_id == book_id,
                    PdfRequest.status == PdfRequestStatus.PENDING.value,
                )
            ).scalar() or 0
            if pending:
                raise BookInUseError(f"Cannot delete book with {pending} pending PDF request(s)")

            for model in (BorrowedBook, PdfRequest):
                for row in s.execute(select(model).where(model.book_id == book_id)).scalars():
                    s.delete(row)
            s.delete(book)
            logger.info("Deleted book %s (%s)", book_id, book.title)
            return True

    def get_categories(self) -> list[CategoryCount]:
        """Get catalog categories with their title counts."""
        with self.get_session() as s:
            rows = s.execute(
                select(Book.category, func.count(Book.id))
                .group_by(Book.category)
                .order_by(Book.category)
            ).all()
            return [CategoryCount(name=name, book_count=count) for name, count in rows]

    def get_book_stats(self) -> CatalogStats:
        """Get copy counts across the catalog."""
        from ..borrowing.models import BorrowedBook
        from ..borrowing.schemas import LoanStatus

        with self.get_session() as s:
            total_books = s.execute(select(func.sum(Book.total))).scalar() or 0
            available_books = s.execute(select(func.sum(Book.available))).scalar() or 0
            borrowed_books = s.execute(
                select(func.count()).select_from(BorrowedBook).where(
                    BorrowedBook.status == LoanStatus.BORROWED.value
                )
            ).scalar() or 0

            return CatalogStats(
                total_books=total_books,
                available_books=available_books,
                borrowed_books=borrowed_books,
            )


# Global database instance
_db: Optional[Database] = None


def get_db(db_path: Optional[str] = None) -> Database:
    """Get or create the global database instance."""
    global _db
    if _db is None:
        _db = Database(db_path)
        _db.create_tables()
    return _db


def reset_db() -> None:
    """Reset the global database instance. Used for testing."""
    global _db
    _db = None
