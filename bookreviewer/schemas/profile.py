"""
Profile Pydantic Schemas

The public profile is assembled by services.privacy. Blocks a viewer may not
see are returned as null rather than omitted, so clients can tell "hidden"
from "empty".
"""

from datetime import datetime

from pydantic import BaseModel, Field, model_validator


class PrivacySettings(BaseModel):
    """Per-field visibility map. All four flags must be sent together."""

    avatar: bool
    signature: bool
    stats: bool
    history: bool


class ProfileUpdate(BaseModel):
    signature: str | None = Field(default=None, max_length=30)
    privacy_settings: PrivacySettings | None = None

    @model_validator(mode="after")
    def at_least_one_field(self) -> "ProfileUpdate":
        if self.signature is None and self.privacy_settings is None:
            raise ValueError("Provide signature or privacy_settings to update")
        return self


class ProfileUser(BaseModel):
    id: int
    username: str
    role: str
    bio: str | None = None
    avatar_url: str | None = None
    signature: str | None = None
    created_at: datetime


class ProfileStats(BaseModel):
    reviews_count: int
    likes_received: int
    favorites_count: int
    favorites_received: int
    comments_count: int


class HistoryReview(BaseModel):
    id: int
    title: str
    rating: int
    likes_count: int
    created_at: datetime
    book_title: str


class HistoryFavorite(BaseModel):
    id: int
    title: str
    favorited_at: datetime
    book_title: str
    review_author: str


class HistoryComment(BaseModel):
    id: int
    content: str
    created_at: datetime
    review_id: int
    review_title: str


class ProfileHistory(BaseModel):
    reviews: list[HistoryReview]
    favorites: list[HistoryFavorite]
    comments: list[HistoryComment]


class ProfileResponse(BaseModel):
    user: ProfileUser
    privacy_settings: PrivacySettings | None = None
    stats: ProfileStats | None = None
    history: ProfileHistory | None = None
    is_own_profile: bool
