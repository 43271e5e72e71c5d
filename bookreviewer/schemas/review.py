"""
Review Pydantic Schemas

Business Rules:
- Rating must be 1-5 (validated at schema level)
- One review per user per book (checked in the service, enforced by the
  database constraint)
- Only the author or an admin can edit a review
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from bookreviewer.schemas.book import BookMinimal
from bookreviewer.schemas.user import UserPublic

ReviewSort = Literal[
    "newest", "oldest", "rating_high", "rating_low", "hot", "most_liked", "most_viewed"
]


class ReviewCreate(BaseModel):
    book_id: int = Field(..., ge=1)
    title: str = Field(..., min_length=1, max_length=200, examples=["A masterpiece!"])
    content: str = Field(..., min_length=1, max_length=10000)
    rating: int = Field(..., ge=1, le=5, examples=[5])


class ReviewUpdate(BaseModel):
    """All fields optional; an empty body is rejected by the service."""

    title: str | None = Field(default=None, min_length=1, max_length=200)
    content: str | None = Field(default=None, min_length=1, max_length=10000)
    rating: int | None = Field(default=None, ge=1, le=5)


class ReviewStatusUpdate(BaseModel):
    """Admin moderation of a review."""

    status: Literal["pending", "approved", "rejected", "hidden"]
    admin_note: str | None = Field(default=None, max_length=1000)


class FeaturedUpdate(BaseModel):
    is_featured: bool


class UserInteraction(BaseModel):
    is_liked: bool = False
    is_favorited: bool = False


class ReviewResponse(BaseModel):
    """Review with its author and book embedded."""

    id: int
    user_id: int
    book_id: int
    title: str
    content: str
    rating: int
    status: str
    views: int
    likes_count: int
    comments_count: int
    is_featured: bool
    created_at: datetime
    updated_at: datetime
    user: UserPublic
    book: BookMinimal

    model_config = ConfigDict(from_attributes=True)


class ReviewDetail(ReviewResponse):
    """Single review; user_interaction is present for signed-in viewers."""

    user_interaction: UserInteraction | None = None


class ViewResult(BaseModel):
    views: int
    counted: bool


class BookRatingStats(BaseModel):
    """Rating summary for a book's approved reviews."""

    total: int
    average: float
    distribution: dict[int, int]
