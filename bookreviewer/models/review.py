"""
Review Model

A user's rating and write-up of one book.

Business Rules:
- One review per user per book (unique constraint). Hiding a review does not
  free the slot: the row still exists, only its status changed.
- Rating must be 1-5
- New reviews start as approved
- Deleting through the owner route hides the review (status -> hidden);
  only admins hard-delete
- views, likes_count and comments_count are derived counters
"""

from datetime import UTC, datetime
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bookreviewer.database import Base

if TYPE_CHECKING:
    from bookreviewer.models.book import Book
    from bookreviewer.models.comment import ReviewComment
    from bookreviewer.models.favorite import UserFavorite
    from bookreviewer.models.like import ReviewLike
    from bookreviewer.models.user import User


class ReviewStatus(str, Enum):
    """Moderation status of a review."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    HIDDEN = "hidden"


class Review(Base):
    """
    Review model.

    Attributes:
        id: Primary key
        user_id: Author of the review
        book_id: Reviewed book
        title, content: Review text
        rating: 1-5 stars
        status: pending | approved | rejected | hidden
        views: Deduplicated view count
        likes_count: Number of ReviewLike rows
        comments_count: Number of ReviewComment rows (replies included)
        is_featured: Editorial highlight set by admins
        admin_note: Last moderation note
    """

    __tablename__ = "reviews"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)

    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    book_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("books.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    rating: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="Rating from 1-5 stars",
    )

    # Moderation fields
    status: Mapped[str] = mapped_column(
        String(20),
        default=ReviewStatus.APPROVED.value,
        nullable=False,
        index=True,
    )
    is_featured: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    admin_note: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Derived counters
    views: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    likes_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    comments_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Timestamps
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

    # Relationships
    book: Mapped["Book"] = relationship("Book", back_populates="reviews")
    user: Mapped["User"] = relationship("User", back_populates="reviews")
    likes: Mapped[list["ReviewLike"]] = relationship(
        "ReviewLike",
        back_populates="review",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    favorites: Mapped[list["UserFavorite"]] = relationship(
        "UserFavorite",
        back_populates="review",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    comments: Mapped[list["ReviewComment"]] = relationship(
        "ReviewComment",
        back_populates="review",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        # One review per user per book
        UniqueConstraint("user_id", "book_id", name="uq_review_user_book"),
        CheckConstraint("rating >= 1 AND rating <= 5", name="ck_review_rating_range"),
    )

    @property
    def is_approved(self) -> bool:
        return self.status == ReviewStatus.APPROVED.value

    def __repr__(self) -> str:
        return (
            f"<Review(id={self.id}, book_id={self.book_id}, "
            f"user_id={self.user_id}, rating={self.rating}, status={self.status})>"
        )
