"""Borrowing module.

Provides functionality for:
- Borrowing and returning physical copies
- Late return fines
- Overdue reporting and the periodic overdue status sync
"""

from .manager import BorrowingManager, calculate_fine
from .models import BorrowedBook
from .schemas import (
    BorrowRequest,
    BorrowingStats,
    LoanResponse,
    LoanStatus,
    OverdueReport,
)

__all__ = [
    "BorrowingManager",
    "calculate_fine",
    "BorrowedBook",
    "BorrowRequest",
    "BorrowingStats",
    "LoanResponse",
    "LoanStatus",
    "OverdueReport",
]
