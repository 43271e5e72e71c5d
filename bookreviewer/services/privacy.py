"""
Profile Privacy Resolver

Decides which parts of a user's profile a viewer may see, then assembles the
profile.

Rules:
======
- The owner sees everything, including the privacy map itself.
- Anyone else sees the avatar and signature only when their flag is true.
- The stats block and the history block (10 latest reviews, favorites and
  comments) are each shown or hidden as a whole by the `stats` and `history`
  flags. There is no finer granularity inside a block.
- Hidden blocks come back as null; the privacy map is null for non-owners.

resolve_visibility() is pure and holds all of the rules; build_profile()
only fetches what resolve_visibility() allows.
"""

import logging
from dataclasses import dataclass

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from bookreviewer.exceptions import NotFoundError
from bookreviewer.models.book import Book
from bookreviewer.models.comment import CommentStatus, ReviewComment
from bookreviewer.models.favorite import UserFavorite
from bookreviewer.models.review import Review, ReviewStatus
from bookreviewer.models.user import PRIVACY_FIELDS, User, default_privacy_settings

logger = logging.getLogger(__name__)

HISTORY_SIZE = 10
APPROVED_REVIEW = ReviewStatus.APPROVED.value


@dataclass(frozen=True)
class Visibility:
    avatar: bool
    signature: bool
    stats: bool
    history: bool
    privacy_settings: bool


def normalize_privacy(settings: dict | None) -> dict[str, bool]:
    """Fill in missing flags with the public default."""
    merged = default_privacy_settings()
    if settings:
        merged.update({key: bool(settings[key]) for key in PRIVACY_FIELDS if key in settings})
    return merged


def resolve_visibility(privacy: dict | None, is_owner: bool) -> Visibility:
    """Which profile parts are visible to the viewer."""
    if is_owner:
        return Visibility(True, True, True, True, True)
    flags = normalize_privacy(privacy)
    return Visibility(
        avatar=flags["avatar"],
        signature=flags["signature"],
        stats=flags["stats"],
        history=flags["history"],
        privacy_settings=False,
    )


# =============================================================================
# Profile Blocks
# =============================================================================
def profile_stats(db: Session, user: User) -> dict:
    """
    Counts shown in the stats block.

    Review and like totals are the counters kept by Counter Maintenance, so
    they match /auth/profile. Favorites and comments have no stored counter
    and are counted here over approved content.
    """
    user_id = user.id
    favorites_count = db.execute(
        select(func.count(UserFavorite.id)).where(UserFavorite.user_id == user_id)
    ).scalar() or 0
    favorites_received = db.execute(
        select(func.count(UserFavorite.id))
        .join(Review, Review.id == UserFavorite.review_id)
        .where(Review.user_id == user_id, Review.status == APPROVED_REVIEW)
    ).scalar() or 0
    comments_count = db.execute(
        select(func.count(ReviewComment.id)).where(
            ReviewComment.user_id == user_id,
            ReviewComment.status == CommentStatus.APPROVED.value,
        )
    ).scalar() or 0

    return {
        "reviews_count": user.total_reviews,
        "likes_received": user.total_likes_received,
        "favorites_count": favorites_count,
        "favorites_received": favorites_received,
        "comments_count": comments_count,
    }


def profile_history(db: Session, user_id: int) -> dict:
    """Latest approved reviews, favorites and comments, HISTORY_SIZE each."""
    reviews = db.execute(
        select(
            Review.id,
            Review.title,
            Review.rating,
            Review.likes_count,
            Review.created_at,
            Book.title.label("book_title"),
        )
        .join(Book, Book.id == Review.book_id)
        .where(Review.user_id == user_id, Review.status == APPROVED_REVIEW)
        .order_by(Review.created_at.desc(), Review.id.desc())
        .limit(HISTORY_SIZE)
    ).all()

    review_author = User.__table__.alias("review_author")
    favorites = db.execute(
        select(
            Review.id,
            Review.title,
            UserFavorite.created_at.label("favorited_at"),
            Book.title.label("book_title"),
            review_author.c.username.label("review_author"),
        )
        .join(UserFavorite, UserFavorite.review_id == Review.id)
        .join(Book, Book.id == Review.book_id)
        .join(review_author, review_author.c.id == Review.user_id)
        .where(UserFavorite.user_id == user_id, Review.status == APPROVED_REVIEW)
        .order_by(UserFavorite.created_at.desc(), UserFavorite.id.desc())
        .limit(HISTORY_SIZE)
    ).all()

    comments = db.execute(
        select(
            ReviewComment.id,
            ReviewComment.content,
            ReviewComment.created_at,
            ReviewComment.review_id,
            Review.title.label("review_title"),
        )
        .join(Review, Review.id == ReviewComment.review_id)
        .where(
            ReviewComment.user_id == user_id,
            ReviewComment.status == CommentStatus.APPROVED.value,
            Review.status == APPROVED_REVIEW,
        )
        .order_by(ReviewComment.created_at.desc(), ReviewComment.id.desc())
        .limit(HISTORY_SIZE)
    ).all()

    return {
        "reviews": [dict(row._mapping) for row in reviews],
        "favorites": [dict(row._mapping) for row in favorites],
        "comments": [dict(row._mapping) for row in comments],
    }


# =============================================================================
# Assembly
# =============================================================================
def build_profile(db: Session, user_id: int, viewer: User | None) -> dict:
    """
    Profile of `user_id` as seen by `viewer` (None for anonymous).

    Raises:
        NotFoundError: user does not exist
    """
    target = db.get(User, user_id)
    if target is None:
        raise NotFoundError("User", code="USER_NOT_FOUND")

    is_owner = viewer is not None and viewer.id == target.id
    visible = resolve_visibility(target.privacy_settings, is_owner)

    return {
        "user": {
            "id": target.id,
            "username": target.username,
            "role": target.role,
            "bio": target.bio,
            "avatar_url": target.avatar_url if visible.avatar else None,
            "signature": target.signature if visible.signature else None,
            "created_at": target.created_at,
        },
        "privacy_settings": normalize_privacy(target.privacy_settings)
        if visible.privacy_settings
        else None,
        "stats": profile_stats(db, target) if visible.stats else None,
        "history": profile_history(db, target.id) if visible.history else None,
        "is_own_profile": is_owner,
    }


def update_profile(
    db: Session,
    actor: User,
    signature: str | None = None,
    privacy_settings: dict | None = None,
) -> dict:
    """Update the actor's signature and/or privacy map; returns the owner view."""
    if signature is not None:
        actor.signature = signature.strip() or None
    if privacy_settings is not None:
        actor.privacy_settings = normalize_privacy(privacy_settings)
    db.commit()

    logger.info(f"Profile updated for user {actor.id}")
    return build_profile(db, actor.id, actor)
