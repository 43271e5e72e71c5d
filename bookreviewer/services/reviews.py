"""
Review Service

Business logic for reviews. Every write goes through the Authorization Gate,
touches the detail row, calls Counter Maintenance and commits once.

Business Rules:
===============
- One review per (user, book). The check ignores status, so a hidden review
  still holds its slot; the unique constraint backs the pre-check.
- New reviews are approved immediately.
- Owner/admin delete is a soft delete to "hidden" (see services.deletion).
- Admins can hard-delete, moderate and feature reviews.
- Listing non-approved reviews is limited to their author and admins.
"""

import logging
from decimal import Decimal
from types import SimpleNamespace

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from bookreviewer.exceptions import ConflictError, NotFoundError, ValidationError
from bookreviewer.models.book import Book
from bookreviewer.models.comment import ReviewComment
from bookreviewer.models.favorite import UserFavorite
from bookreviewer.models.like import ReviewLike
from bookreviewer.models.review import Review, ReviewStatus
from bookreviewer.models.user import User
from bookreviewer.services import audit, counters
from bookreviewer.services.deletion import HardDelete, SoftDelete, policy_for
from bookreviewer.services.permissions import Action, can_perform, ensure_allowed

logger = logging.getLogger(__name__)


# =============================================================================
# Lookups
# =============================================================================
def get_review(db: Session, review_id: int) -> Review:
    """Load a review (any status) with author and book, or raise 404."""
    stmt = (
        select(Review)
        .options(selectinload(Review.user), selectinload(Review.book))
        .where(Review.id == review_id)
    )
    review = db.execute(stmt).scalar_one_or_none()
    if review is None:
        raise NotFoundError("Review", code="REVIEW_NOT_FOUND")
    return review


def get_approved_review(db: Session, review_id: int) -> Review:
    """Load an approved review, or raise 404 (missing and unapproved look the same)."""
    review = get_review(db, review_id)
    if not review.is_approved:
        raise NotFoundError("Review", code="REVIEW_NOT_FOUND")
    return review


def get_readable_review(db: Session, review_id: int, actor: User | None) -> Review:
    """Load a review the actor is allowed to read, or raise 404."""
    review = get_review(db, review_id)
    if not can_perform(actor, Action.READ, review):
        raise NotFoundError("Review", code="REVIEW_NOT_FOUND")
    return review


# =============================================================================
# Create / Update / Delete
# =============================================================================
def _find_existing_review(db: Session, user_id: int, book_id: int) -> int | None:
    """Id of the user's review of the book in any status, hidden included."""
    return db.execute(
        select(Review.id).where(Review.user_id == user_id, Review.book_id == book_id)
    ).scalar()


def create_review(
    db: Session,
    actor: User,
    book_id: int,
    title: str,
    content: str,
    rating: int,
) -> Review:
    """
    Create a review and update book/user aggregates in the same transaction.

    Raises:
        NotFoundError: book does not exist
        ConflictError: actor already reviewed this book (any status)
    """
    ensure_allowed(actor, Action.CREATE, Review)

    if db.get(Book, book_id) is None:
        raise NotFoundError("Book", code="BOOK_NOT_FOUND")

    if _find_existing_review(db, actor.id, book_id) is not None:
        raise ConflictError("You have already reviewed this book", code="REVIEW_EXISTS")

    review = Review(
        user_id=actor.id,
        book_id=book_id,
        title=title,
        content=content,
        rating=rating,
        status=ReviewStatus.APPROVED.value,
    )
    db.add(review)
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        raise ConflictError("You have already reviewed this book", code="REVIEW_EXISTS")

    counters.on_review_added(db, review)
    db.commit()

    logger.info(f"Review created: {review.id} by user {actor.id} for book {book_id}")
    return get_review(db, review.id)


def update_review(db: Session, actor: User, review_id: int, changes: dict) -> Review:
    """
    Update title/content/rating of a review.

    Raises:
        NotFoundError: review missing
        ForbiddenError: actor is neither author nor admin
        ValidationError: nothing to update
    """
    review = get_review(db, review_id)
    ensure_allowed(actor, Action.UPDATE, review, "You can only edit your own reviews")

    changes = {key: value for key, value in changes.items() if value is not None}
    if not changes:
        raise ValidationError("No fields to update", code="NO_UPDATE_FIELDS")

    rating_changed = "rating" in changes and changes["rating"] != review.rating
    for field, value in changes.items():
        setattr(review, field, value)

    if rating_changed:
        counters.on_review_changed(db, review)
    db.commit()

    logger.info(f"Review updated: {review_id} by user {actor.id}")
    return get_review(db, review_id)


def delete_review(db: Session, actor: User, review_id: int) -> Review:
    """
    Owner/admin delete, applied according to the review deletion policy.

    With the default SoftDelete(status="hidden") the row is kept, only
    leaving the approved set, so the book's average is recomputed.
    """
    review = get_review(db, review_id)
    ensure_allowed(actor, Action.DELETE, review, "You can only delete your own reviews")

    policy = policy_for("review")
    if isinstance(policy, SoftDelete):
        review.status = policy.status
        counters.on_review_changed(db, review)
        db.commit()
    elif isinstance(policy, HardDelete):
        _hard_delete(db, review)
        db.commit()

    logger.info(f"Review {review_id} deleted by user {actor.id}")
    return review


def hard_delete_review(db: Session, actor: User, review_id: int) -> None:
    """Admin-only physical delete of a review and its likes/favorites/comments."""
    review = get_review(db, review_id)
    ensure_allowed(actor, Action.MODERATE, review)

    _hard_delete(db, review)
    audit.record_event(
        db,
        audit.DELETE_REVIEW,
        user_id=actor.id,
        target_type="review",
        target_id=review_id,
        details={"book_id": review.book_id, "author_id": review.user_id},
    )
    db.commit()
    logger.info(f"Review {review_id} hard-deleted by admin {actor.id}")


def _hard_delete(db: Session, review: Review) -> None:
    """Delete the review's dependents and the review, then fix counters. No commit."""
    db.execute(delete(ReviewComment).where(ReviewComment.review_id == review.id))
    db.execute(delete(ReviewLike).where(ReviewLike.review_id == review.id))
    db.execute(delete(UserFavorite).where(UserFavorite.review_id == review.id))
    db.execute(delete(Review).where(Review.id == review.id))
    counters.on_review_removed(db, review)


# =============================================================================
# Moderation
# =============================================================================
def moderate_review(
    db: Session,
    actor: User,
    review_id: int,
    status: str,
    admin_note: str | None = None,
) -> Review:
    """Set a review's moderation status (admin only)."""
    review = get_review(db, review_id)
    ensure_allowed(actor, Action.MODERATE, review)

    previous = review.status
    review.status = status
    if admin_note is not None:
        review.admin_note = admin_note
    if previous != status:
        counters.on_review_changed(db, review)

    audit.record_event(
        db,
        audit.MODERATE_REVIEW,
        user_id=actor.id,
        target_type="review",
        target_id=review_id,
        details={"from": previous, "to": status, "admin_note": admin_note},
    )
    db.commit()
    logger.info(f"Review {review_id} moderated {previous} -> {status} by admin {actor.id}")
    return get_review(db, review_id)


def set_featured(db: Session, actor: User, review_id: int, is_featured: bool) -> Review:
    review = get_review(db, review_id)
    ensure_allowed(actor, Action.MODERATE, review)
    review.is_featured = is_featured
    db.commit()
    return get_review(db, review_id)


# =============================================================================
# Queries
# =============================================================================
SORT_ORDERS = {
    "newest": (Review.created_at.desc(),),
    "oldest": (Review.created_at.asc(),),
    "rating_high": (Review.rating.desc(), Review.created_at.desc()),
    "rating_low": (Review.rating.asc(), Review.created_at.desc()),
    "most_liked": (Review.likes_count.desc(), Review.created_at.desc()),
    "most_viewed": (Review.views.desc(), Review.created_at.desc()),
    "hot": (
        (Review.likes_count * 3 + Review.comments_count * 2 + Review.views).desc(),
        Review.created_at.desc(),
    ),
}


def list_reviews(
    db: Session,
    actor: User | None,
    *,
    skip: int,
    limit: int,
    book_id: int | None = None,
    user_id: int | None = None,
    status: str = ReviewStatus.APPROVED.value,
    sort: str = "hot",
) -> tuple[list[Review], int]:
    """
    Filtered, sorted page of reviews.

    Non-approved statuses are only listed for admins, or for the author's
    own reviews (user_id equal to the actor).

    Returns:
        (reviews, total)
    """
    if status != ReviewStatus.APPROVED.value:
        listing = SimpleNamespace(user_id=user_id, status=status)
        ensure_allowed(actor, Action.READ, listing)

    conditions = [Review.status == status]
    if book_id is not None:
        conditions.append(Review.book_id == book_id)
    if user_id is not None:
        conditions.append(Review.user_id == user_id)

    total = db.execute(select(func.count(Review.id)).where(*conditions)).scalar() or 0

    stmt = (
        select(Review)
        .options(selectinload(Review.user), selectinload(Review.book))
        .where(*conditions)
        .order_by(*SORT_ORDERS.get(sort, SORT_ORDERS["hot"]))
        .offset(skip)
        .limit(limit)
    )
    return list(db.execute(stmt).scalars().all()), total


def user_interaction(db: Session, actor: User, review_id: int) -> dict[str, bool]:
    """Whether the actor has liked / favorited the review."""
    is_liked = db.execute(
        select(ReviewLike.id).where(ReviewLike.user_id == actor.id, ReviewLike.review_id == review_id)
    ).first() is not None
    is_favorited = db.execute(
        select(UserFavorite.id).where(
            UserFavorite.user_id == actor.id, UserFavorite.review_id == review_id
        )
    ).first() is not None
    return {"is_liked": is_liked, "is_favorited": is_favorited}


def book_rating_stats(db: Session, book_id: int) -> dict:
    """Count, average and 1-5 distribution over a book's approved reviews."""
    rows = db.execute(
        select(Review.rating, func.count(Review.id))
        .where(Review.book_id == book_id, Review.status == ReviewStatus.APPROVED.value)
        .group_by(Review.rating)
    ).all()

    distribution = {star: 0 for star in range(1, 6)}
    for rating, count in rows:
        distribution[rating] = count

    total = sum(distribution.values())
    average = counters.compute_average_rating(db, book_id) if total else Decimal("0.00")
    return {"total": total, "average": float(average), "distribution": distribution}
