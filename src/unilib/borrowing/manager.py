"""Borrowing manager for the loan lifecycle of physical copies.

A loan moves borrowed -> returned, or borrowed -> overdue -> returned when
the overdue status sync runs in between. Borrow and return each commit the
availability change, the loan record and the activity entry as one unit of
work. The shared ``Book.available`` counter is only changed through guarded
UPDATE statements, so the store decides which of two racing borrows gets
the last copy.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional, Union

from sqlalchemy import func, select, update

from ..activity.recorder import ActivityRecorder
from ..activity.schemas import ActivityAction
from ..config import Config, get_config
from ..db.models import Book, generate_uuid
from ..db.sqlite import Database, get_db
from ..errors import (
    AlreadyReturnedError,
    BookNotFoundError,
    BookUnavailableError,
    LoanNotFoundError,
    OverdueBlockError,
)
from ..utils import utcnow
from .models import BorrowedBook
from .schemas import (
    BorrowingStats,
    BorrowRequest,
    LoanResponse,
    LoanStatus,
    OverdueReport,
)

logger = logging.getLogger(__name__)

ONE_DAY = timedelta(days=1)


def calculate_fine(due_date: datetime, returned_at: datetime, daily_rate: int) -> int:
    """Fine for returning a loan at ``returned_at``.

    Only whole days late are charged; a partial day adds nothing.

    Args:
        due_date: When the loan was due
        returned_at: When it is returned
        daily_rate: Fine per full day late

    Returns:
        Fine amount (0 if returned on time)
    """
    if returned_at <= due_date:
        return 0
    days_late = (returned_at - due_date) // ONE_DAY
    return days_late * daily_rate


def _borrowed_past_due(now: datetime):
    """Filter for loans still in BORROWED status and past due."""
    return (
        BorrowedBook.status == LoanStatus.BORROWED.value,
        BorrowedBook.due_date < now,
    )


def _outstanding_past_due(now: datetime):
    """Filter for loans that are out and past due, synced or not."""
    return (
        BorrowedBook.status != LoanStatus.RETURNED.value,
        BorrowedBook.due_date < now,
    )


class BorrowingManager:
    """Manages borrowing and returning of physical books."""

    def __init__(
        self,
        db: Optional[Database] = None,
        config: Optional[Config] = None,
        recorder: Optional[ActivityRecorder] = None,
    ):
        """Initialize borrowing manager.

        Args:
            db: Database instance
            config: Configuration (loan period, daily fine)
            recorder: Activity recorder
        """
        self.db = db or get_db()
        self.config = config or get_config()
        self.recorder = recorder or ActivityRecorder()

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def borrow(
        self,
        data: Union[BorrowRequest, str],
        user_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> BorrowedBook:
        """Borrow a copy of a book.

        Accepts either a ``BorrowRequest`` or a book ID plus ``user_id``.

        Args:
            data: Book and borrower, or the book ID
            user_id: Borrower, when ``data`` is a book ID
            now: Borrow time (default: now)

        Returns:
            The created loan

        Raises:
            BookNotFoundError: If the book does not exist
            BookUnavailableError: If no copy is left
            OverdueBlockError: If the borrower holds an overdue loan
        """
        if not isinstance(data, BorrowRequest):
            data = BorrowRequest(book_id=data, user_id=user_id)
        now = now or utcnow()

        with self.db.get_session() as session:
            book = session.get(Book, data.book_id)
            if not book:
                logger.warning("Borrow rejected: book %s not found", data.book_id)
                raise BookNotFoundError(data.book_id)

            if book.available <= 0:
                logger.warning("Borrow rejected: book %s has no copies left", book.id)
                raise BookUnavailableError(book.id)

            overdue_count = session.execute(
                select(func.count()).select_from(BorrowedBook).where(
                    BorrowedBook.user_id == data.user_id,
                    *_borrowed_past_due(now),
                )
            ).scalar() or 0
            if overdue_count:
                logger.warning(
                    "Borrow rejected: user %s holds %d overdue loan(s)",
                    data.user_id,
                    overdue_count,
                )
                raise OverdueBlockError(data.user_id, overdue_count)

            # Another borrower may have taken the last copy since the read above
            taken = session.execute(
                update(Book)
                .where(Book.id == book.id, Book.available > 0)
                .values(available=Book.available - 1, updated_at=now)
                .execution_options(synchronize_session=False)
            )
            if taken.rowcount != 1:
                logger.warning("Borrow rejected: last copy of book %s was taken", book.id)
                raise BookUnavailableError(book.id)

            loan = BorrowedBook(
                id=generate_uuid(),
                book_id=book.id,
                user_id=data.user_id,
                borrow_date=now,
                due_date=now + timedelta(days=self.config.loan_period_days),
                status=LoanStatus.BORROWED.value,
            )
            session.add(loan)

            self.recorder.record(
                session,
                ActivityAction.BOOK_BORROWED,
                user_id=data.user_id,
                book_id=book.id,
                book_title=book.title,
                details={"loan_id": loan.id, "due_date": loan.due_date.isoformat()},
                now=now,
            )

            session.commit()
            session.refresh(loan)
            session.expunge(loan)

        logger.info("User %s borrowed book %s (loan %s)", loan.user_id, loan.book_id, loan.id)
        return loan

    def return_book(self, loan_id: str, now: Optional[datetime] = None) -> BorrowedBook:
        """Return a borrowed book and settle its fine.

        Args:
            loan_id: Loan ID
            now: Return time (default: now)

        Returns:
            The closed loan, including the fine

        Raises:
            LoanNotFoundError: If the loan does not exist
            AlreadyReturnedError: If the loan was already returned
        """
        now = now or utcnow()

        with self.db.get_session() as session:
            loan = session.get(BorrowedBook, loan_id)
            if not loan:
                logger.warning("Return rejected: loan %s not found", loan_id)
                raise LoanNotFoundError(loan_id)

            if loan.status == LoanStatus.RETURNED.value:
                logger.warning("Return rejected: loan %s already returned", loan_id)
                raise AlreadyReturnedError(loan_id)

            fine = calculate_fine(loan.due_date, now, self.config.daily_fine)

            # Only one of two racing returns may close the loan
            closed = session.execute(
                update(BorrowedBook)
                .where(
                    BorrowedBook.id == loan_id,
                    BorrowedBook.status != LoanStatus.RETURNED.value,
                )
                .values(status=LoanStatus.RETURNED.value, return_date=now, fine=fine)
                .execution_options(synchronize_session=False)
            )
            if closed.rowcount != 1:
                logger.warning("Return rejected: loan %s was closed concurrently", loan_id)
                raise AlreadyReturnedError(loan_id)

            session.execute(
                update(Book)
                .where(Book.id == loan.book_id)
                .values(available=Book.available + 1, updated_at=now)
                .execution_options(synchronize_session=False)
            )

            book_title = session.execute(
                select(Book.title).where(Book.id == loan.book_id)
            ).scalar_one_or_none()

            self.recorder.record(
                session,
                ActivityAction.BOOK_RETURNED,
                user_id=loan.user_id,
                book_id=loan.book_id,
                book_title=book_title,
                details={"loan_id": loan_id, "fine": fine},
                now=now,
            )

            session.commit()
            session.refresh(loan)
            session.expunge(loan)

        logger.info("Loan %s returned, fine %d", loan_id, fine)
        return loan

    def sync_overdue_status(self, now: Optional[datetime] = None) -> int:
        """Mark borrowed loans that are past due as overdue.

        Periodic maintenance; safe to run repeatedly and alongside
        borrow/return since it never touches availability.

        Args:
            now: Reference time (default: now)

        Returns:
            Number of loans newly marked overdue
        """
        now = now or utcnow()

        with self.db.get_session() as session:
            result = session.execute(
                update(BorrowedBook)
                .where(
                    BorrowedBook.status == LoanStatus.BORROWED.value,
                    BorrowedBook.due_date < now,
                )
                .values(status=LoanStatus.OVERDUE.value)
                .execution_options(synchronize_session=False)
            )
            changed = result.rowcount

        logger.info("Overdue status sync marked %d loan(s) overdue", changed)
        return changed

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_loan(self, loan_id: str) -> Optional[BorrowedBook]:
        """Get a loan by ID.

        Args:
            loan_id: Loan ID

        Returns:
            Loan or None
        """
        with self.db.get_session() as session:
            loan = session.get(BorrowedBook, loan_id)
            if loan:
                session.expunge(loan)
            return loan

    def list_user_loans(
        self,
        user_id: str,
        status: Optional[LoanStatus] = None,
    ) -> list[BorrowedBook]:
        """List a borrower's loans, newest first.

        Args:
            user_id: Borrower
            status: Filter by status

        Returns:
            List of loans
        """
        with self.db.get_session() as session:
            stmt = select(BorrowedBook).where(BorrowedBook.user_id == user_id)
            if status:
                stmt = stmt.where(BorrowedBook.status == status.value)
            stmt = stmt.order_by(BorrowedBook.borrow_date.desc())

            loans = session.execute(stmt).scalars().all()
            for loan in loans:
                session.expunge(loan)
            return list(loans)

    def list_overdue(self, now: Optional[datetime] = None) -> list[BorrowedBook]:
        """List BORROWED loans past their due date, earliest due first.

        Loans the status sync has already marked overdue are not listed;
        ``get_overdue_report`` covers both.

        Args:
            now: Reference time (default: now)

        Returns:
            List of overdue loans
        """
        now = now or utcnow()

        with self.db.get_session() as session:
            stmt = (
                select(BorrowedBook)
                .where(*_borrowed_past_due(now))
                .order_by(BorrowedBook.due_date.asc())
            )
            loans = session.execute(stmt).scalars().all()
            for loan in loans:
                session.expunge(loan)
            return list(loans)

    def get_overdue_report(self, now: Optional[datetime] = None) -> OverdueReport:
        """Get report of past-due loans with book titles and projected fines.

        Unlike ``list_overdue`` this includes loans the sync marked overdue.

        Args:
            now: Reference time (default: now)

        Returns:
            OverdueReport with overdue loans
        """
        now = now or utcnow()
        with self.db.get_session() as session:
            loans = list(
                session.execute(
                    select(BorrowedBook)
                    .where(*_outstanding_past_due(now))
                    .order_by(BorrowedBook.due_date.asc())
                ).scalars()
            )
            for loan in loans:
                session.expunge(loan)

        titles: dict[str, str] = {}
        if loans:
            with self.db.get_session() as session:
                rows = session.execute(
                    select(Book.id, Book.title).where(
                        Book.id.in_({loan.book_id for loan in loans})
                    )
                ).all()
                titles = {book_id: title for book_id, title in rows}

        summaries = []
        projected = 0
        oldest_days = 0
        for loan in loans:
            days = loan.overdue_days(now)
            response = LoanResponse.model_validate(loan)
            response.book_title = titles.get(loan.book_id)
            response.days_overdue = days
            summaries.append(response)

            projected += calculate_fine(loan.due_date, now, self.config.daily_fine)
            oldest_days = max(oldest_days, days)

        return OverdueReport(
            loans=summaries,
            total_overdue=len(summaries),
            oldest_overdue_days=oldest_days,
            projected_fines=projected,
        )

    def get_stats(self, now: Optional[datetime] = None) -> BorrowingStats:
        """Get overall borrowing statistics.

        Args:
            now: Reference time for the past-due count (default: now)

        Returns:
            BorrowingStats with counts and fine total
        """
        now = now or utcnow()

        with self.db.get_session() as session:
            total_borrowed = session.execute(
                select(func.count()).select_from(BorrowedBook).where(
                    BorrowedBook.status == LoanStatus.BORROWED.value
                )
            ).scalar() or 0

            overdue_count = session.execute(
                select(func.count()).select_from(BorrowedBook).where(
                    BorrowedBook.status == LoanStatus.OVERDUE.value
                )
            ).scalar() or 0

            past_due_count = session.execute(
                select(func.count()).select_from(BorrowedBook).where(
                    *_outstanding_past_due(now)
                )
            ).scalar() or 0

            total_fines = session.execute(
                select(func.sum(BorrowedBook.fine)).where(
                    BorrowedBook.status == LoanStatus.RETURNED.value,
                    BorrowedBook.fine > 0,
                )
            ).scalar() or 0

            return BorrowingStats(
                total_borrowed=total_borrowed,
                overdue_count=overdue_count,
                past_due_count=past_due_count,
                total_fines=total_fines,
            )
