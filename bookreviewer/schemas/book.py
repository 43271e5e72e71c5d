"""
Book Pydantic Schemas

- BookCreate: title and author are required, everything else optional
- BookUpdate: all fields optional, at least one must be sent
- BookResponse: book plus its rating aggregates
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class BookBase(BaseModel):
    """Shared optional book metadata."""

    isbn: str | None = Field(default=None, max_length=20, examples=["9780451524935"])
    cover_url: str | None = Field(default=None, max_length=255)
    description: str | None = Field(default=None, max_length=5000)
    publish_year: int | None = Field(default=None, ge=0, le=2100, examples=[1949])
    publisher: str | None = Field(default=None, max_length=100)


class BookCreate(BookBase):
    title: str = Field(..., min_length=1, max_length=200, examples=["1984"])
    author: str = Field(..., min_length=1, max_length=100, examples=["George Orwell"])


class BookUpdate(BookBase):
    title: str | None = Field(default=None, min_length=1, max_length=200)
    author: str | None = Field(default=None, min_length=1, max_length=100)


class BookMinimal(BaseModel):
    """Minimal book info for embedding in review responses."""

    id: int
    title: str
    author: str
    cover_url: str | None = None

    model_config = ConfigDict(from_attributes=True)


class BookResponse(BookBase):
    id: int
    title: str
    author: str
    total_reviews: int = 0
    average_rating: float = 0.0
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class BookDeleted(BaseModel):
    """Result of a hard book delete."""

    book_id: int
    deleted_reviews: int
