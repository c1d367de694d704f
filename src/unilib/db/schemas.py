"""Pydantic schemas for catalog data validation.

Input records are validated before they reach the database layer; response
records are built from ORM objects with ``from_attributes``.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ..utils import total_pages


# ============================================================================
# Shared
# ============================================================================


class Pagination(BaseModel):
    """Paging metadata returned with paged listings."""

    page: int = Field(..., ge=1)
    limit: int = Field(..., ge=1)
    total: int = Field(..., ge=0)
    total_pages: int = Field(..., ge=0)

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        """Create pagination metadata from a row count."""
        return cls(page=page, limit=limit, total=total, total_pages=total_pages(total, limit))


# ============================================================================
# Book Schemas
# ============================================================================


class BookBase(BaseModel):
    """Bibliographic fields common to create/update operations."""

    title: str = Field(..., min_length=1, max_length=500)
    author: str = Field(..., min_length=1, max_length=500)
    isbn: str = Field(..., min_length=1, max_length=20)
    category: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    published_year: Optional[int] = Field(None, ge=0, le=9999)
    publisher: Optional[str] = Field(None, max_length=500)
    location: Optional[str] = Field(None, max_length=100, description="Shelf location")
    cover_image: Optional[str] = Field(None, description="Cover image URL")

    @field_validator("isbn", mode="before")
    @classmethod
    def clean_isbn(cls, v: Optional[str]) -> Optional[str]:
        """Strip whitespace and hyphens from ISBN values."""
        if v is None:
            return None
        return str(v).strip().replace("-", "").replace(" ", "")


class BookCreate(BookBase):
    """Schema for cataloguing a new book."""

    quantity: int = Field(1, ge=0, description="Copies owned; all start available")


class BookUpdate(BaseModel):
    """Schema for updating a book. All fields optional."""

    title: Optional[str] = Field(None, min_length=1, max_length=500)
    author: Optional[str] = Field(None, min_length=1, max_length=500)
    isbn: Optional[str] = Field(None, min_length=1, max_length=20)
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    published_year: Optional[int] = Field(None, ge=0, le=9999)
    publisher: Optional[str] = Field(None, max_length=500)
    location: Optional[str] = Field(None, max_length=100)
    cover_image: Optional[str] = None
    quantity: Optional[int] = Field(None, ge=0, description="New total copy count")

    @field_validator("isbn", mode="before")
    @classmethod
    def clean_isbn(cls, v: Optional[str]) -> Optional[str]:
        """Strip whitespace and hyphens from ISBN values."""
        if v is None:
            return None
        return str(v).strip().replace("-", "").replace(" ", "")


class BookResponse(BookBase):
    """Schema for book responses."""

    id: str
    available: int
    total: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class BookPage(BaseModel):
    """A page of catalog search results."""

    books: list[BookResponse]
    pagination: Pagination


class CategoryCount(BaseModel):
    """A catalog category with the number of titles in it."""

    name: str
    book_count: int


class CatalogStats(BaseModel):
    """Copy counts across the whole catalog."""

    total_books: int
    available_books: int
    borrowed_books: int
