"""
ReviewComment Model

Comments form a two-level tree: top-level comments (parent_id is NULL) and
replies to them. Replies always point at a top-level comment and share its
review_id.

Lifecycle:
- created as approved
- editable by the author within the edit window
- deletable by author or admin only while it has no replies
- moderated by admins (approved | pending | rejected), without touching replies
"""

from datetime import UTC, datetime
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bookreviewer.database import Base

if TYPE_CHECKING:
    from bookreviewer.models.review import Review
    from bookreviewer.models.user import User


class CommentStatus(str, Enum):
    """Moderation status of a comment."""
    APPROVED = "approved"
    PENDING = "pending"
    REJECTED = "rejected"


class ReviewComment(Base):
    """Comment or reply on a review."""

    __tablename__ = "review_comments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    review_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("reviews.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    parent_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("review_comments.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20),
        default=CommentStatus.APPROVED.value,
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
        index=True,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    review: Mapped["Review"] = relationship("Review", back_populates="comments")
    user: Mapped["User"] = relationship("User", back_populates="comments")

    @property
    def is_approved(self) -> bool:
        return self.status == CommentStatus.APPROVED.value

    def __repr__(self) -> str:
        return (
            f"<ReviewComment(id={self.id}, review_id={self.review_id}, "
            f"parent_id={self.parent_id}, status={self.status})>"
        )
