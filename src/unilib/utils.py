"""Utility functions for unilib."""

import math
from datetime import datetime, timezone


def utcnow() -> datetime:
    """
    Return the current UTC time as a naive datetime.

    All timestamps are stored naive in UTC so that SQLite comparisons
    between stored values and ``now`` stay consistent.

    Returns:
        Current UTC time without tzinfo
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def page_offset(page: int, limit: int) -> int:
    """
    Convert a 1-based page number into a row offset.

    Args:
        page: Page number, starting at 1
        limit: Rows per page

    Returns:
        Number of rows to skip

    Raises:
        ValueError: If page or limit is smaller than 1

    Example:
        >>> page_offset(1, 10)
        0
        >>> page_offset(3, 20)
        40
    """
    if page < 1:
        raise ValueError("page must be >= 1")
    if limit < 1:
        raise ValueError("limit must be >= 1")
    return (page - 1) * limit


def total_pages(total: int, limit: int) -> int:
    """
    Number of pages needed to show ``total`` rows.

    Example:
        >>> total_pages(0, 10)
        0
        >>> total_pages(21, 10)
        3
    """
    return math.ceil(total / limit)
