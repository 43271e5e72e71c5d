"""
User Model

Represents a registered reader. Besides identity and credentials a user holds:
- role (user or admin) and status (active or banned)
- profile fields (avatar, bio, a short signature)
- a privacy map deciding what other people see on the profile page
- denormalized counters kept in sync by services.counters

Users are never hard-deleted in normal flow; banning is a status change.
"""

from datetime import UTC, datetime
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import JSON, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bookreviewer.database import Base

if TYPE_CHECKING:
    from bookreviewer.models.comment import ReviewComment
    from bookreviewer.models.favorite import UserFavorite
    from bookreviewer.models.like import ReviewLike
    from bookreviewer.models.review import Review


class UserRole(str, Enum):
    """Roles recognised by the authorization gate."""
    USER = "user"
    ADMIN = "admin"


class UserStatus(str, Enum):
    """Account status. Banned accounts cannot authenticate."""
    ACTIVE = "active"
    BANNED = "banned"


PRIVACY_FIELDS = ("avatar", "signature", "stats", "history")


def default_privacy_settings() -> dict[str, bool]:
    """Everything public until the owner says otherwise."""
    return {field: True for field in PRIVACY_FIELDS}


class User(Base):
    """
    User model.

    Table: users

    Counters (written only by services.counters):
    - total_reviews: number of review rows authored
    - total_likes_received: likes on all of this user's reviews
    """

    __tablename__ = "users"

    # -------------------------------------------------------------------------
    # Primary Key
    # -------------------------------------------------------------------------
    id: Mapped[int] = mapped_column(primary_key=True)

    # -------------------------------------------------------------------------
    # Authentication Fields
    # -------------------------------------------------------------------------
    email: Mapped[str] = mapped_column(
        String(100),
        unique=True,
        index=True,
        nullable=False,
        comment="User's email address (used for login)"
    )
    username: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        index=True,
        nullable=False,
        comment="Unique display name"
    )
    hashed_password: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Bcrypt hashed password"
    )

    # -------------------------------------------------------------------------
    # Role & Status
    # -------------------------------------------------------------------------
    role: Mapped[str] = mapped_column(
        String(20),
        default=UserRole.USER.value,
        nullable=False,
    )
    status: Mapped[str] = mapped_column(
        String(20),
        default=UserStatus.ACTIVE.value,
        nullable=False,
    )

    # -------------------------------------------------------------------------
    # Profile Fields
    # -------------------------------------------------------------------------
    avatar_url: Mapped[str | None] = mapped_column(String(255), nullable=True)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    signature: Mapped[str | None] = mapped_column(
        String(30),
        nullable=True,
        comment="Short tagline shown on the profile"
    )
    privacy_settings: Mapped[dict] = mapped_column(
        JSON,
        default=default_privacy_settings,
        nullable=False,
        comment="Per-field visibility map: avatar, signature, stats, history"
    )

    # -------------------------------------------------------------------------
    # Denormalized Counters
    # -------------------------------------------------------------------------
    total_reviews: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_likes_received: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # -------------------------------------------------------------------------
    # Timestamps
    # -------------------------------------------------------------------------
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )
    last_login_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # -------------------------------------------------------------------------
    # Relationships
    # -------------------------------------------------------------------------
    reviews: Mapped[list["Review"]] = relationship(
        "Review",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    likes: Mapped[list["ReviewLike"]] = relationship(
        "ReviewLike",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    favorites: Mapped[list["UserFavorite"]] = relationship(
        "UserFavorite",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    comments: Mapped[list["ReviewComment"]] = relationship(
        "ReviewComment",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value

    @property
    def is_banned(self) -> bool:
        return self.status == UserStatus.BANNED.value

    def __repr__(self) -> str:
        """Developer-friendly string representation."""
        return f"User(id={self.id}, email='{self.email}', username='{self.username}')"
