"""PDF request manager for the request/approval workflow.

A request is created pending and decided exactly once, as approved or
rejected. The decision, its activity entry and the requester's
notification are committed as one unit of work.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError

from ..activity.recorder import ActivityRecorder
from ..activity.schemas import ActivityAction
from ..db.models import Book, generate_uuid
from ..db.schemas import Pagination
from ..db.sqlite import Database, get_db
from ..errors import (
    AlreadyProcessedError,
    BookNotFoundError,
    DuplicateRequestError,
    PdfRequestNotFoundError,
)
from ..notifications.schemas import NotificationType
from ..utils import page_offset, utcnow
from .models import PdfRequest
from .schemas import (
    PdfDecision,
    PdfRequestCreate,
    PdfRequestPage,
    PdfRequestResponse,
    PdfRequestStats,
    PdfRequestStatus,
)

logger = logging.getLogger(__name__)

_DECISION_ACTIONS = {
    PdfRequestStatus.APPROVED: ActivityAction.PDF_APPROVED,
    PdfRequestStatus.REJECTED: ActivityAction.PDF_REJECTED,
}

_DECISION_NOTIFICATION_TYPES = {
    PdfRequestStatus.APPROVED: NotificationType.SUCCESS,
    PdfRequestStatus.REJECTED: NotificationType.WARNING,
}


class PdfRequestManager:
    """Manages PDF copy requests."""

    def __init__(
        self,
        db: Optional[Database] = None,
        recorder: Optional[ActivityRecorder] = None,
    ):
        """Initialize PDF request manager.

        Args:
            db: Database instance
            recorder: Activity recorder
        """
        self.db = db or get_db()
        self.recorder = recorder or ActivityRecorder()

    # -------------------------------------------------------------------------
    # Workflow
    # -------------------------------------------------------------------------

    def submit(self, data: PdfRequestCreate, now: Optional[datetime] = None) -> PdfRequest:
        """Submit a request for a PDF copy of a book.

        Args:
            data: Book, requester and reason
            now: Request time (default: now)

        Returns:
            The pending request

        Raises:
            BookNotFoundError: If the book does not exist
            DuplicateRequestError: If the requester already has a pending
                request for the book
        """
        now = now or utcnow()

        with self.db.get_session() as session:
            book = session.get(Book, data.book_id)
            if not book:
                logger.warning("PDF request rejected: book %s not found", data.book_id)
                raise BookNotFoundError(data.book_id)

            existing = session.execute(
                select(PdfRequest.id).where(
                    PdfRequest.book_id == data.book_id,
                    PdfRequest.user_id == data.user_id,
                    PdfRequest.status == PdfRequestStatus.PENDING.value,
                )
            ).first()
            if existing:
                logger.warning(
                    "PDF request rejected: user %s already has a pending request for book %s",
                    data.user_id,
                    data.book_id,
                )
                raise DuplicateRequestError(data.book_id, data.user_id)

            request = PdfRequest(
                id=generate_uuid(),
                book_id=book.id,
                user_id=data.user_id,
                reason=data.reason,
                status=PdfRequestStatus.PENDING.value,
                request_date=now,
            )
            session.add(request)

            self.recorder.record(
                session,
                ActivityAction.PDF_REQUESTED,
                user_id=data.user_id,
                book_id=book.id,
                book_title=book.title,
                details={"request_id": request.id},
                now=now,
            )

            # A concurrent submission for the same pair trips the pending-only unique index
            try:
                session.flush()
            except IntegrityError as e:
                raise DuplicateRequestError(data.book_id, data.user_id) from e

            session.commit()
            session.refresh(request)
            session.expunge(request)

        logger.info("User %s requested a PDF of book %s (request %s)", request.user_id, request.book_id, request.id)
        return request

    def decide(
        self,
        request_id: str,
        decision: PdfDecision,
        now: Optional[datetime] = None,
    ) -> PdfRequest:
        """Approve or reject a pending PDF request.

        A download link is only stored on approval; a rejected request
        never carries one, even if ``decision.pdf_url`` is set.

        Args:
            request_id: Request ID
            decision: Status, notes and optional download link
            now: Decision time (default: now)

        Returns:
            The decided request

        Raises:
            PdfRequestNotFoundError: If the request does not exist
            AlreadyProcessedError: If the request is no longer pending
        """
        now = now or utcnow()
        status = decision.status
        pdf_url = decision.pdf_url if status == PdfRequestStatus.APPROVED else None

        with self.db.get_session() as session:
            request = session.get(PdfRequest, request_id)
            if not request:
                logger.warning("PDF decision rejected: request %s not found", request_id)
                raise PdfRequestNotFoundError(request_id)

            if not request.is_pending:
                logger.warning(
                    "PDF decision rejected: request %s already %s", request_id, request.status
                )
                raise AlreadyProcessedError(request_id, request.status)

            # Only one of two racing decisions may leave pending
            decided = session.execute(
                update(PdfRequest)
                .where(
                    PdfRequest.id == request_id,
                    PdfRequest.status == PdfRequestStatus.PENDING.value,
                )
                .values(
                    status=status.value,
                    admin_notes=decision.admin_notes,
                    pdf_url=pdf_url,
                    processed_date=now,
                )
                .execution_options(synchronize_session=False)
            )
            if decided.rowcount != 1:
                logger.warning("PDF decision rejected: request %s was decided concurrently", request_id)
                raise AlreadyProcessedError(request_id, "processed")

            book_title = session.execute(
                select(Book.title).where(Book.id == request.book_id)
            ).scalar_one_or_none()

            details = {
                "request_id": request_id,
                "admin_notes": decision.admin_notes,
                "pdf_url": pdf_url,
            }
            if decision.admin_id:
                details["admin_id"] = decision.admin_id

            self.recorder.record(
                session,
                _DECISION_ACTIONS[status],
                user_id=request.user_id,
                book_id=request.book_id,
                book_title=book_title,
                details=details,
                now=now,
            )
            self.recorder.notify(
                session,
                user_id=request.user_id,
                title=f"PDF Request {status.value.upper()}",
                message=f'Your PDF request for "{book_title}" has been {status.value}.',
                notification_type=_DECISION_NOTIFICATION_TYPES[status],
                now=now,
            )

            session.commit()
            session.refresh(request)
            session.expunge(request)

        logger.info("PDF request %s %s", request_id, status.value)
        return request

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_request(self, request_id: str) -> Optional[PdfRequest]:
        """Get a PDF request by ID.

        Args:
            request_id: Request ID

        Returns:
            PdfRequest or None
        """
        with self.db.get_session() as session:
            request = session.get(PdfRequest, request_id)
            if request:
                session.expunge(request)
            return request

    def list_for_user(
        self,
        user_id: str,
        status: Optional[PdfRequestStatus] = None,
    ) -> list[PdfRequest]:
        """List a requester's PDF requests, newest first.

        Args:
            user_id: Requester
            status: Filter by status

        Returns:
            List of requests
        """
        with self.db.get_session() as session:
            stmt = select(PdfRequest).where(PdfRequest.user_id == user_id)
            if status:
                stmt = stmt.where(PdfRequest.status == status.value)
            stmt = stmt.order_by(PdfRequest.request_date.desc())

            requests = session.execute(stmt).scalars().all()
            for request in requests:
                session.expunge(request)
            return list(requests)

    def list_all(
        self,
        status: Optional[PdfRequestStatus] = None,
        page: int = 1,
        limit: int = 10,
    ) -> PdfRequestPage:
        """List all PDF requests for review, newest first.

        Args:
            status: Filter by status
            page: Page number, starting at 1
            limit: Requests per page

        Returns:
            PdfRequestPage with book titles and pagination metadata
        """
        offset = page_offset(page, limit)

        with self.db.get_session() as session:
            conditions = []
            if status:
                conditions.append(PdfRequest.status == status.value)

            rows = session.execute(
                select(PdfRequest, Book.title)
                .outerjoin(Book, Book.id == PdfRequest.book_id)
                .where(*conditions)
                .order_by(PdfRequest.request_date.desc())
                .offset(offset)
                .limit(limit)
            ).all()

            total = session.execute(
                select(func.count()).select_from(PdfRequest).where(*conditions)
            ).scalar() or 0

            responses = []
            for request, title in rows:
                response = PdfRequestResponse.model_validate(request)
                response.book_title = title
                responses.append(response)

            return PdfRequestPage(
                requests=responses,
                pagination=Pagination.build(page, limit, total),
            )

    def get_stats(self) -> PdfRequestStats:
        """Get counts of PDF requests by status.

        Returns:
            PdfRequestStats with counts
        """
        with self.db.get_session() as session:
            rows = session.execute(
                select(PdfRequest.status, func.count()).group_by(PdfRequest.status)
            ).all()
            counts = {status: count for status, count in rows}

            return PdfRequestStats(
                pending=counts.get(PdfRequestStatus.PENDING.value, 0),
                approved=counts.get(PdfRequestStatus.APPROVED.value, 0),
                rejected=counts.get(PdfRequestStatus.REJECTED.value, 0),
                total=sum(counts.values()),
            )
