"""
ReviewLike Model

Join row meaning "this user likes this review". Rows are only inserted and
deleted, never updated. A user cannot like their own review (enforced in
services.likes); the unique constraint is the backstop against duplicates.
"""

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bookreviewer.database import Base

if TYPE_CHECKING:
    from bookreviewer.models.review import Review
    from bookreviewer.models.user import User


class ReviewLike(Base):
    """Like of a review by a user."""

    __tablename__ = "review_likes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    review_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("reviews.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    user: Mapped["User"] = relationship("User", back_populates="likes")
    review: Mapped["Review"] = relationship("Review", back_populates="likes")

    __table_args__ = (
        UniqueConstraint("user_id", "review_id", name="uq_like_user_review"),
    )

    def __repr__(self) -> str:
        return f"<ReviewLike(user_id={self.user_id}, review_id={self.review_id})>"
