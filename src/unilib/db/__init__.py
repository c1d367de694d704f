"""Database module for local SQLite storage and the book catalog."""

from .models import Base, Book
from .schemas import (
    BookCreate,
    BookUpdate,
    BookResponse,
    BookPage,
    CategoryCount,
    CatalogStats,
    Pagination,
)
from .sqlite import Database, get_db, reset_db

__all__ = [
    "Base",
    "Book",
    "BookCreate",
    "BookUpdate",
    "BookResponse",
    "BookPage",
    "CategoryCount",
    "CatalogStats",
    "Pagination",
    "Database",
    "get_db",
    "reset_db",
]
