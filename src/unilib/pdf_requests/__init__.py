"""PDF request module.

Provides functionality for:
- Requesting PDF copies of catalogued books
- Approving or rejecting requests, notifying the requester
- Listing requests for students and administrators
"""

from .manager import PdfRequestManager
from .models import PdfRequest
from .schemas import (
    PdfDecision,
    PdfRequestCreate,
    PdfRequestPage,
    PdfRequestResponse,
    PdfRequestStats,
    PdfRequestStatus,
)

__all__ = [
    "PdfRequestManager",
    "PdfRequest",
    "PdfDecision",
    "PdfRequestCreate",
    "PdfRequestPage",
    "PdfRequestResponse",
    "PdfRequestStats",
    "PdfRequestStatus",
]
