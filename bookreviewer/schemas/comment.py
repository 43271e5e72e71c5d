"""
Comment Pydantic Schemas

Content rules: non-empty after trimming, at most 1000 characters.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from bookreviewer.schemas.user import UserPublic

MAX_COMMENT_LENGTH = 1000


class CommentCreate(BaseModel):
    content: str = Field(..., description="Comment text (1-1000 characters)")

    @field_validator("content")
    @classmethod
    def content_must_be_valid(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Comment content cannot be empty")
        if len(v) > MAX_COMMENT_LENGTH:
            raise ValueError(f"Comment cannot exceed {MAX_COMMENT_LENGTH} characters")
        return v


class CommentUpdate(CommentCreate):
    pass


class CommentStatusUpdate(BaseModel):
    status: Literal["approved", "pending", "rejected"]
    admin_note: str | None = Field(default=None, max_length=1000)


class CommentResponse(BaseModel):
    """A comment; top-level comments carry their approved replies."""

    id: int
    review_id: int
    user_id: int
    parent_id: int | None = None
    content: str
    status: str
    created_at: datetime
    updated_at: datetime
    user: UserPublic
    replies: list["CommentResponse"] = []

    model_config = ConfigDict(from_attributes=True)


class CommentModerationResult(BaseModel):
    comment_id: int
    status: str
    admin_note: str | None = None


class UserCommentItem(BaseModel):
    """A comment in someone's history, with the review it belongs to."""

    id: int
    review_id: int
    parent_id: int | None = None
    content: str
    status: str
    created_at: datetime
    review_title: str
    book_title: str


class TopCommenter(BaseModel):
    id: int
    username: str
    avatar_url: str | None = None
    comments_count: int


class MostCommentedReview(BaseModel):
    id: int
    title: str
    book_title: str
    comments_count: int


class CommentStats(BaseModel):
    total_comments: int
    today_comments: int
    top_commenters: list[TopCommenter]
    most_commented_reviews: list[MostCommentedReview]
