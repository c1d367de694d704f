"""Pytest configuration and shared fixtures.

This module provides fixtures for testing unilib, including an in-memory
database, a fixed configuration, managers and sample catalog data.
"""

import threading
from datetime import datetime
from pathlib import Path

import pytest
from sqlalchemy import event

from unilib.activity import ActivityManager, ActivityRecorder
from unilib.borrowing import BorrowingManager, BorrowRequest
from unilib.config import Config, reset_config
from unilib.db import BookCreate, Database, reset_db
from unilib.db.models import Book
from unilib.notifications import NotificationManager
from unilib.pdf_requests import PdfRequestCreate, PdfRequestManager

# Reference time for tests that pass ``now`` explicitly
NOW = datetime(2025, 3, 1, 12, 0, 0)


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def reset_globals():
    """Keep the process-wide db/config singletons out of every test."""
    reset_db()
    reset_config()
    yield
    reset_db()
    reset_config()


@pytest.fixture
def db() -> Database:
    """Create an in-memory database for testing."""
    database = Database(":memory:")
    database.create_tables()
    return database


@pytest.fixture
def file_db(tmp_path: Path) -> Database:
    """Create a file database, for tests that need real connections per thread."""
    database = Database(str(tmp_path / "race.db"))
    database.create_tables()
    yield database
    database.engine.dispose()


@pytest.fixture
def config(tmp_path: Path) -> Config:
    """Fixed configuration: 30 day loans, 50 per day late."""
    return Config(
        db_path=tmp_path / "library.db",
        loan_period_days=30,
        daily_fine=50,
        notification_retention_days=30,
        log_level="WARNING",
    )


# ============================================================================
# Manager Fixtures
# ============================================================================


@pytest.fixture
def recorder() -> ActivityRecorder:
    """Create an activity recorder."""
    return ActivityRecorder()


@pytest.fixture
def borrowing(db: Database, config: Config, recorder: ActivityRecorder) -> BorrowingManager:
    """Create a BorrowingManager with test database."""
    return BorrowingManager(db, config, recorder)


@pytest.fixture
def pdf_manager(db: Database, recorder: ActivityRecorder) -> PdfRequestManager:
    """Create a PdfRequestManager with test database."""
    return PdfRequestManager(db, recorder)


@pytest.fixture
def notifications(db: Database, config: Config) -> NotificationManager:
    """Create a NotificationManager with test database."""
    return NotificationManager(db, config)


@pytest.fixture
def activities(db: Database) -> ActivityManager:
    """Create an ActivityManager with test database."""
    return ActivityManager(db)


# ============================================================================
# Sample Data Fixtures
# ============================================================================


@pytest.fixture
def sample_book_data() -> BookCreate:
    """Create sample book data for testing."""
    return BookCreate(
        title="Introduction to Algorithms",
        author="Thomas H. Cormen",
        isbn="978-0-262-03384-8",
        category="Computer Science",
        publisher="MIT Press",
        published_year=2009,
        location="CS-A12",
        quantity=3,
    )


@pytest.fixture
def book(db: Database, sample_book_data: BookCreate) -> Book:
    """Create and return a book with three copies."""
    return db.create_book(sample_book_data)


@pytest.fixture
def single_copy_book(db: Database) -> Book:
    """Create and return a book with a single copy."""
    return db.create_book(
        BookCreate(
            title="Structure and Interpretation of Computer Programs",
            author="Harold Abelson",
            isbn="9780262510875",
            category="Computer Science",
            quantity=1,
        )
    )


@pytest.fixture
def multiple_books(db: Database) -> list[Book]:
    """Create several books across categories."""
    books_data = [
        BookCreate(title="Calculus", author="Michael Spivak", isbn="9780914098911", category="Mathematics", quantity=2),
        BookCreate(title="Linear Algebra Done Right", author="Sheldon Axler", isbn="9783319110790", category="Mathematics"),
        BookCreate(title="The C Programming Language", author="Brian Kernighan", isbn="9780131103627", category="Computer Science", quantity=4),
        BookCreate(title="Guns, Germs, and Steel", author="Jared Diamond", isbn="9780393317558", category="History"),
    ]
    return [db.create_book(data) for data in books_data]


@pytest.fixture
def loan(borrowing: BorrowingManager, book: Book):
    """Create a loan of ``book`` taken at NOW."""
    return borrowing.borrow(BorrowRequest(book_id=book.id, user_id="student-1"), now=NOW)


@pytest.fixture
def pending_request(pdf_manager: PdfRequestManager, book: Book):
    """Create a pending PDF request for ``book``."""
    return pdf_manager.submit(
        PdfRequestCreate(book_id=book.id, user_id="student-1", reason="Remote study"),
        now=NOW,
    )


# ============================================================================
# Concurrency Fixtures
# ============================================================================


@pytest.fixture
def race():
    """Run ``fn(i)`` in ``n`` threads released together by a barrier.

    Returns each thread's result or the exception it raised.
    """

    def _race(n, fn):
        barrier = threading.Barrier(n)
        outcomes = []
        lock = threading.Lock()

        def worker(i):
            barrier.wait()
            try:
                outcome = fn(i)
            except Exception as e:
                outcome = e
            with lock:
                outcomes.append(outcome)

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(n)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=30)
        assert len(outcomes) == n
        return outcomes

    return _race


@pytest.fixture
def interleave():
    """Run raw SQL right before the first statement starting with ``prefix``.

    With ``commit=True`` the injected write is committed on its own, as if
    another request had finished between the manager's read and its write.
    """
    registered = []

    def _interleave(db, prefix, sql, params=(), commit=False):
        fired = []

        def before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
            if not fired and statement.lstrip().startswith(prefix):
                fired.append(statement)
                cursor.connection.execute(sql, params)
                if commit:
                    cursor.connection.commit()

        event.listen(db.engine, "before_cursor_execute", before_cursor_execute)
        registered.append((db.engine, before_cursor_execute))
        return fired

    yield _interleave
    for engine, listener in registered:
        event.remove(engine, "before_cursor_execute", listener)
