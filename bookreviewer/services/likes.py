"""
Like Service

Toggle-style likes on reviews.

Rules:
- Only approved reviews can be liked (anything else looks like 404).
- A second like by the same user is 409 ALREADY_LIKED.
- Liking your own review is 400 SELF_LIKE_FORBIDDEN. The duplicate check runs
  first, so a repeated self-like still reports the duplicate.
- Unliking something you never liked is 404 NOT_LIKED and changes nothing.
- Status lookups never fail on a bad credential; anonymous callers simply
  get is_liked = false.

Each like/unlike inserts or deletes the join row and runs Counter Maintenance
in the same transaction.
"""

import logging

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from bookreviewer.config import get_settings
from bookreviewer.exceptions import ConflictError, NotFoundError, ValidationError
from bookreviewer.models.like import ReviewLike
from bookreviewer.models.review import Review, ReviewStatus
from bookreviewer.models.user import User
from bookreviewer.services import counters
from bookreviewer.services.reviews import get_approved_review, get_readable_review, get_review

logger = logging.getLogger(__name__)
settings = get_settings()


def _likes_count(db: Session, review_id: int) -> int:
    return db.execute(select(Review.likes_count).where(Review.id == review_id)).scalar() or 0


def _find_like(db: Session, user_id: int, review_id: int) -> ReviewLike | None:
    return db.execute(
        select(ReviewLike).where(ReviewLike.user_id == user_id, ReviewLike.review_id == review_id)
    ).scalar_one_or_none()


def like_review(db: Session, actor: User, review_id: int) -> dict:
    """
    Like a review.

    Returns:
        {"review_id", "likes_count", "is_liked": True}

    Raises:
        NotFoundError: review missing or not approved
        ConflictError: ALREADY_LIKED
        ValidationError: SELF_LIKE_FORBIDDEN
    """
    review = get_approved_review(db, review_id)

    if _find_like(db, actor.id, review_id) is not None:
        raise ConflictError("You have already liked this review", code="ALREADY_LIKED")

    if review.user_id == actor.id:
        raise ValidationError("You cannot like your own review", code="SELF_LIKE_FORBIDDEN")

    db.add(ReviewLike(user_id=actor.id, review_id=review_id))
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        raise ConflictError("You have already liked this review", code="ALREADY_LIKED")

    counters.on_like_added(db, review)
    db.commit()

    logger.info(f"User {actor.id} liked review {review_id}")
    return {"review_id": review_id, "likes_count": _likes_count(db, review_id), "is_liked": True}


def unlike_review(db: Session, actor: User, review_id: int) -> dict:
    """
    Remove a like.

    Raises:
        NotFoundError: NOT_LIKED if the actor has no like on the review
    """
    like = _find_like(db, actor.id, review_id)
    if like is None:
        raise NotFoundError("Like", code="NOT_LIKED", message="You have not liked this review")

    review = get_review(db, review_id)
    db.delete(like)
    db.flush()
    counters.on_like_removed(db, review)
    db.commit()

    logger.info(f"User {actor.id} unliked review {review_id}")
    return {"review_id": review_id, "likes_count": _likes_count(db, review_id), "is_liked": False}


def like_status(db: Session, review_id: int, actor: User | None) -> dict:
    """Like count of a review and whether the actor likes it."""
    review = get_readable_review(db, review_id, actor)
    is_liked = actor is not None and _find_like(db, actor.id, review_id) is not None
    return {
        "review_id": review.id,
        "title": review.title,
        "likes_count": review.likes_count,
        "is_liked": is_liked,
    }


def validate_batch_ids(review_ids: list[int]) -> list[int]:
    """
    Check a batch status request and drop duplicate ids (order kept).

    Raises:
        ValidationError: INVALID_INPUT when empty or over the batch limit
    """
    if not review_ids:
        raise ValidationError("review_ids must be a non-empty list", code="INVALID_INPUT")
    if len(review_ids) > settings.batch_status_limit:
        raise ValidationError(
            f"At most {settings.batch_status_limit} review ids per request",
            code="INVALID_INPUT",
        )
    return list(dict.fromkeys(review_ids))


def batch_like_status(db: Session, review_ids: list[int], actor: User | None) -> list[dict]:
    """
    Like status for up to `batch_status_limit` approved reviews.

    Ids that do not resolve to an approved review are left out.
    """
    ids = validate_batch_ids(review_ids)

    reviews = db.execute(
        select(Review.id, Review.title, Review.likes_count).where(
            Review.id.in_(ids), Review.status == ReviewStatus.APPROVED.value
        )
    ).all()

    liked: set[int] = set()
    if actor is not None:
        liked = set(
            db.execute(
                select(ReviewLike.review_id).where(
                    ReviewLike.user_id == actor.id, ReviewLike.review_id.in_(ids)
                )
            ).scalars()
        )

    by_id = {row.id: row for row in reviews}
    return [
        {
            "review_id": review_id,
            "title": by_id[review_id].title,
            "likes_count": by_id[review_id].likes_count,
            "is_liked": review_id in liked,
        }
        for review_id in ids
        if review_id in by_id
    ]


def list_user_likes(db: Session, user_id: int, *, skip: int, limit: int) -> tuple[list[dict], int]:
    """
    Approved reviews a user has liked, most recent like first.

    Raises:
        NotFoundError: user does not exist
    """
    if db.get(User, user_id) is None:
        raise NotFoundError("User", code="USER_NOT_FOUND")

    conditions = (
        ReviewLike.user_id == user_id,
        Review.status == ReviewStatus.APPROVED.value,
    )
    total = db.execute(
        select(func.count(ReviewLike.id))
        .join(Review, Review.id == ReviewLike.review_id)
        .where(*conditions)
    ).scalar() or 0

    rows = db.execute(
        select(Review, ReviewLike.created_at)
        .join(ReviewLike, ReviewLike.review_id == Review.id)
        .options(selectinload(Review.user), selectinload(Review.book))
        .where(*conditions)
        .order_by(ReviewLike.created_at.desc(), ReviewLike.id.desc())
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
            "liked_at": liked_at,
            "book": review.book,
            "user": review.user,
        }
        for review, liked_at in rows
    ]
    return items, total
