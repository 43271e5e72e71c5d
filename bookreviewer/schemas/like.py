"""
Like Pydantic Schemas
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from bookreviewer.schemas.book import BookMinimal
from bookreviewer.schemas.user import UserPublic


class BatchStatusRequest(BaseModel):
    """Review ids to look up. Size limits are checked by the service."""

    review_ids: list[int] = Field(..., examples=[[10, 11, 12]])


class LikeToggleResult(BaseModel):
    review_id: int
    likes_count: int
    is_liked: bool


class LikeStatus(LikeToggleResult):
    title: str


class LikeBatchResult(BaseModel):
    reviews: list[LikeStatus]


class LikedReview(BaseModel):
    """A review in someone's like history."""

    id: int
    title: str
    rating: int
    likes_count: int
    created_at: datetime
    liked_at: datetime
    book: BookMinimal
    user: UserPublic

    model_config = ConfigDict(from_attributes=True)
