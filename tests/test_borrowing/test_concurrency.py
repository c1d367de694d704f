"""Tests for borrowing under concurrent access."""

from datetime import datetime, timedelta

import pytest

from unilib.borrowing import BorrowingManager, BorrowRequest, LoanStatus
from unilib.borrowing.models import BorrowedBook
from unilib.db import BookCreate
from unilib.errors import AlreadyReturnedError, BookUnavailableError

NOW = datetime(2025, 3, 1, 12, 0, 0)


@pytest.fixture
def shared_manager(file_db, config) -> BorrowingManager:
    """BorrowingManager over a file database shared by several threads."""
    return BorrowingManager(file_db, config)


@pytest.fixture
def last_copy(file_db):
    """A book with one copy on the shared file database."""
    return file_db.create_book(
        BookCreate(title="Compilers", author="Alfred Aho", isbn="9780321486813", category="Computer Science", quantity=1)
    )


class TestRacingThreads:
    """Threads released together against one file database."""

    def test_last_copy_goes_to_one_borrower(self, race, file_db, shared_manager, last_copy):
        """Test eight borrowers racing for one copy produce exactly one loan."""
        outcomes = race(
            8,
            lambda i: shared_manager.borrow(BorrowRequest(book_id=last_copy.id, user_id=f"student-{i}"), now=NOW),
        )

        loans = [o for o in outcomes if isinstance(o, BorrowedBook)]
        refused = [o for o in outcomes if isinstance(o, BookUnavailableError)]
        assert len(loans) == 1
        assert len(refused) == 7
        assert file_db.get_book(last_copy.id).available == 0
        assert len(shared_manager.list_user_loans(loans[0].user_id)) == 1

    def test_double_return_closes_once(self, race, file_db, shared_manager, last_copy):
        """Test two racing returns of one loan restore a single copy."""
        loan = shared_manager.borrow(BorrowRequest(book_id=last_copy.id, user_id="student-1"), now=NOW)
        returned_at = NOW + timedelta(days=32)

        outcomes = race(2, lambda i: shared_manager.return_book(loan.id, now=returned_at))

        closed = [o for o in outcomes if isinstance(o, BorrowedBook)]
        refused = [o for o in outcomes if isinstance(o, AlreadyReturnedError)]
        assert len(closed) == 1
        assert len(refused) == 1
        assert file_db.get_book(last_copy.id).available == 1

        stored = shared_manager.get_loan(loan.id)
        assert stored.status == LoanStatus.RETURNED.value
        assert stored.fine == closed[0].fine


class TestGuardedWrites:
    """A competing write lands between the read and the guarded update."""

    def test_copy_taken_after_check(self, db, borrowing, single_copy_book, interleave):
        """Test the borrow is refused when the last copy goes after the availability check."""
        fired = interleave(
            db,
            "UPDATE books ",
            "UPDATE books SET available = 0 WHERE id = ?",
            (single_copy_book.id,),
            commit=True,
        )

        with pytest.raises(BookUnavailableError):
            borrowing.borrow(BorrowRequest(book_id=single_copy_book.id, user_id="student-1"), now=NOW)

        assert fired
        assert db.get_book(single_copy_book.id).available == 0
        assert borrowing.list_user_loans("student-1") == []

    def test_loan_closed_after_check(self, db, borrowing, book, loan, interleave):
        """Test the return is refused when the loan is closed after the status check."""
        fired = interleave(
            db,
            "UPDATE borrowed_books ",
            "UPDATE borrowed_books SET status = 'returned', fine = 0 WHERE id = ?",
            (loan.id,),
            commit=True,
        )

        with pytest.raises(AlreadyReturnedError):
            borrowing.return_book(loan.id, now=NOW + timedelta(days=40))

        assert fired
        stored = borrowing.get_loan(loan.id)
        assert stored.fine == 0
        assert stored.return_date is None
        # the refused return must not hand back a copy
        assert db.get_book(book.id).available == 2
