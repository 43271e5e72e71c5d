"""
Favorite Pydantic Schemas
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from bookreviewer.schemas.book import BookMinimal
from bookreviewer.schemas.user import UserPublic


class FavoriteToggleResult(BaseModel):
    review_id: int
    title: str | None = None
    is_favorited: bool


class FavoriteStatus(BaseModel):
    review_id: int
    title: str
    favorites_count: int
    is_favorited: bool


class FavoriteBatchResult(BaseModel):
    reviews: list[FavoriteStatus]


class FavoritedReview(BaseModel):
    """A review in someone's favorites list."""

    id: int
    title: str
    rating: int
    likes_count: int
    created_at: datetime
    favorited_at: datetime
    book: BookMinimal
    user: UserPublic

    model_config = ConfigDict(from_attributes=True)


class TopFavoritedReview(BaseModel):
    id: int
    title: str
    rating: int
    favorites_count: int
    book_title: str
    book_author: str
    review_author: str


class TopCollector(BaseModel):
    id: int
    username: str
    avatar_url: str | None = None
    favorites_count: int


class FavoriteStats(BaseModel):
    total_favorites: int
    top_favorited_reviews: list[TopFavoritedReview]
    top_collectors: list[TopCollector]
