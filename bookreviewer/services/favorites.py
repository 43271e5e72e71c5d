"""
Favorite Service

Same toggle shape as likes, with two differences:
- favoriting your own review is allowed
- there is no stored favorites counter; counts are computed live

Also serves the public favorites leaderboard.
"""

import logging

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from bookreviewer.exceptions import ConflictError, NotFoundError
from bookreviewer.models.book import Book
from bookreviewer.models.favorite import UserFavorite
from bookreviewer.models.review import Review, ReviewStatus
from bookreviewer.models.user import User, UserStatus
from bookreviewer.services.likes import validate_batch_ids
from bookreviewer.services.reviews import get_approved_review, get_readable_review

logger = logging.getLogger(__name__)

LEADERBOARD_SIZE = 10


def _find_favorite(db: Session, user_id: int, review_id: int) -> UserFavorite | None:
    return db.execute(
        select(UserFavorite).where(
            UserFavorite.user_id == user_id, UserFavorite.review_id == review_id
        )
    ).scalar_one_or_none()


def favorites_count(db: Session, review_id: int) -> int:
    return db.execute(
        select(func.count(UserFavorite.id)).where(UserFavorite.review_id == review_id)
    ).scalar() or 0


def favorite_review(db: Session, actor: User, review_id: int) -> dict:
    """
    Add a review to the actor's favorites.

    Raises:
        NotFoundError: review missing or not approved
        ConflictError: ALREADY_FAVORITED
    """
    review = get_approved_review(db, review_id)

    if _find_favorite(db, actor.id, review_id) is not None:
        raise ConflictError("Review is already in your favorites", code="ALREADY_FAVORITED")

    db.add(UserFavorite(user_id=actor.id, review_id=review_id))
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Review is already in your favorites", code="ALREADY_FAVORITED")

    logger.info(f"User {actor.id} favorited review {review_id}")
    return {"review_id": review_id, "title": review.title, "is_favorited": True}


def unfavorite_review(db: Session, actor: User, review_id: int) -> dict:
    """
    Remove a review from the actor's favorites.

    Raises:
        NotFoundError: NOT_FAVORITED
    """
    favorite = _find_favorite(db, actor.id, review_id)
    if favorite is None:
        raise NotFoundError(
            "Favorite", code="NOT_FAVORITED", message="Review is not in your favorites"
        )

    db.delete(favorite)
    db.commit()

    logger.info(f"User {actor.id} unfavorited review {review_id}")
    return {"review_id": review_id, "is_favorited": False}


def favorite_status(db: Session, review_id: int, actor: User | None) -> dict:
    review = get_readable_review(db, review_id, actor)
    is_favorited = actor is not None and _find_favorite(db, actor.id, review_id) is not None
    return {
        "review_id": review.id,
        "title": review.title,
        "favorites_count": favorites_count(db, review_id),
        "is_favorited": is_favorited,
    }


def batch_favorite_status(db: Session, review_ids: list[int], actor: User | None) -> list[dict]:
    """Favorite status for a bounded batch of approved reviews."""
    ids = validate_batch_ids(review_ids)

    counts = (
        select(UserFavorite.review_id, func.count(UserFavorite.id).label("favorites_count"))
        .where(UserFavorite.review_id.in_(ids))
        .group_by(UserFavorite.review_id)
        .subquery()
    )
    rows = db.execute(
        select(Review.id, Review.title, func.coalesce(counts.c.favorites_count, 0))
        .outerjoin(counts, counts.c.review_id == Review.id)
        .where(Review.id.in_(ids), Review.status == ReviewStatus.APPROVED.value)
    ).all()

    favorited: set[int] = set()
    if actor is not None:
        favorited = set(
            db.execute(
                select(UserFavorite.review_id).where(
                    UserFavorite.user_id == actor.id, UserFavorite.review_id.in_(ids)
                )
            ).scalars()
        )

    by_id = {row[0]: row for row in rows}
    return [
        {
            "review_id": review_id,
            "title": by_id[review_id][1],
            "favorites_count": by_id[review_id][2],
            "is_favorited": review_id in favorited,
        }
        for review_id in ids
        if review_id in by_id
    ]


def list_user_favorites(db: Session, user_id: int, *, skip: int, limit: int) -> tuple[list[dict], int]:
    """Approved reviews a user has favorited, most recent first."""
    if db.get(User, user_id) is None:
        raise NotFoundError("User", code="USER_NOT_FOUND")

    conditions = (
        UserFavorite.user_id == user_id,
        Review.status == ReviewStatus.APPROVED.value,
    )
    total = db.execute(
        select(func.count(UserFavorite.id))
        .join(Review, Review.id == UserFavorite.review_id)
        .where(*conditions)
    ).scalar() or 0

    rows = db.execute(
        select(Review, UserFavorite.created_at)
        .join(UserFavorite, UserFavorite.review_id == Review.id)
        .options(selectinload(Review.user), selectinload(Review.book))
        .where(*conditions)
        .order_by(UserFavorite.created_at.desc(), UserFavorite.id.desc())
        .offset(skip)
        .limit(limit)
    ).all()

    items = [
        {
            "id": review.id,
            "title": review.title,
            "rating": review.rating,
            "likes_count": review.likes_count,
            "created_at": review.created_at,
            "favorited_at": favorited_at,
            "book": review.book,
            "user": review.user,
        }
        for review, favorited_at in rows
    ]
    return items, total


def favorite_stats(db: Session) -> dict:
    """
    Live leaderboard: total favorites, top favorited approved reviews and
    the most active collectors among active users.
    """
    total = db.execute(select(func.count(UserFavorite.id))).scalar() or 0

    fav_count = func.count(UserFavorite.id).label("favorites_count")
    review_author = User.__table__.alias("review_author")
    top_reviews = db.execute(
        select(
            Review.id,
            Review.title,
            Review.rating,
            fav_count,
            Book.title.label("book_title"),
            Book.author.label("book_author"),
            review_author.c.username.label("review_author"),
        )
        .join(UserFavorite, UserFavorite.review_id == Review.id)
        .join(Book, Book.id == Review.book_id)
        .join(review_author, review_author.c.id == Review.user_id)
        .where(Review.status == ReviewStatus.APPROVED.value)
        .group_by(
            Review.id,
            Review.title,
            Review.rating,
            Book.title,
            Book.author,
            review_author.c.username,
        )
        .order_by(fav_count.desc(), Review.id.asc())
        .limit(LEADERBOARD_SIZE)
    ).all()

    collector_count = func.count(UserFavorite.id).label("favorites_count")
    top_collectors = db.execute(
        select(User.id, User.username, User.avatar_url, collector_count)
        .join(UserFavorite, UserFavorite.user_id == User.id)
        .join(Review, Review.id == UserFavorite.review_id)
        .where(
            User.status == UserStatus.ACTIVE.value,
            Review.status == ReviewStatus.APPROVED.value,
        )
        .group_by(User.id, User.username, User.avatar_url)
        .order_by(collector_count.desc(), User.id.asc())
        .limit(LEADERBOARD_SIZE)
    ).all()

    return {
        "total_favorites": total,
        "top_favorited_reviews": [dict(row._mapping) for row in top_reviews],
        "top_collectors": [dict(row._mapping) for row in top_collectors],
    }
