"""
UserFavorite Model

Join row meaning "this user bookmarked this review". Same shape as
ReviewLike, except that favoriting your own review is allowed.
"""

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bookreviewer.database import Base

if TYPE_CHECKING:
    from bookreviewer.models.review import Review
    from bookreviewer.models.user import User


class UserFavorite(Base):
    """Favorite of a review by a user."""

    __tablename__ = "user_favorites"

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

    user: Mapped["User"] = relationship("User", back_populates="favorites")
    review: Mapped["Review"] = relationship("Review", back_populates="favorites")

    __table_args__ = (
        UniqueConstraint("user_id", "review_id", name="uq_favorite_user_review"),
    )

    def __repr__(self) -> str:
        return f"<UserFavorite(user_id={self.user_id}, review_id={self.review_id})>"
