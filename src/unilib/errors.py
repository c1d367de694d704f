"""Error taxonomy for library operations.

Every error here is a caller-correctable condition. ``status_code`` is the
HTTP status a web layer should answer with; the core never uses it itself.
Anything that is not a ``LibraryError`` (e.g. a SQLAlchemy failure) is an
internal error and propagates unchanged.
"""


class LibraryError(Exception):
    """Base exception for library operation errors."""

    status_code = 400


class NotFoundError(LibraryError):
    """Raised when a referenced record does not exist."""

    status_code = 404


class BookNotFoundError(NotFoundError):
    """Raised when a book does not exist."""

    def __init__(self, book_id: str):
        super().__init__(f"Book not found: {book_id}")
        self.book_id = book_id


class LoanNotFoundError(NotFoundError):
    """Raised when a borrowing record does not exist."""

    def __init__(self, loan_id: str):
        super().__init__(f"Borrowing record not found: {loan_id}")
        self.loan_id = loan_id


class PdfRequestNotFoundError(NotFoundError):
    """Raised when a PDF request does not exist."""

    def __init__(self, request_id: str):
        super().__init__(f"PDF request not found: {request_id}")
        self.request_id = request_id


class BookUnavailableError(LibraryError):
    """Raised when no copy of a book is left to lend."""

    status_code = 409

    def __init__(self, book_id: str):
        super().__init__(f"Book is not available: {book_id}")
        self.book_id = book_id


class OverdueBlockError(LibraryError):
    """Raised when a borrower holds an overdue loan."""

    status_code = 403

    def __init__(self, user_id: str, overdue_count: int):
        super().__init__(
            f"User {user_id} has {overdue_count} overdue book(s). Please return them first."
        )
        self.user_id = user_id
        self.overdue_count = overdue_count


class AlreadyReturnedError(LibraryError):
    """Raised when returning a loan that is already returned."""

    status_code = 409

    def __init__(self, loan_id: str):
        super().__init__(f"Book has already been returned: {loan_id}")
        self.loan_id = loan_id


class AlreadyProcessedError(LibraryError):
    """Raised when deciding a PDF request that is no longer pending."""

    status_code = 409

    def __init__(self, request_id: str, status: str):
        super().__init__(f"Request has already been processed ({status}): {request_id}")
        self.request_id = request_id
        self.status = status


class DuplicateRequestError(LibraryError):
    """Raised when a user already has a pending PDF request for a book."""

    status_code = 409

    def __init__(self, book_id: str, user_id: str):
        super().__init__(
            f"User {user_id} already has a pending request for book {book_id}"
        )
        self.book_id = book_id
        self.user_id = user_id


class DuplicateIsbnError(LibraryError):
    """Raised when a book with the same ISBN is already catalogued."""

    status_code = 409

    def __init__(self, isbn: str):
        super().__init__(f"Book with ISBN {isbn} already exists")
        self.isbn = isbn


class BookInUseError(LibraryError):
    """Raised when a catalog change conflicts with copies on loan."""

    status_code = 409
