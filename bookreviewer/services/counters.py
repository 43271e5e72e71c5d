"""
Counter Maintenance Service

The only code allowed to write denormalized counters:

    reviews.likes_count        == COUNT(review_likes  WHERE review_id = r.id)
    reviews.comments_count     == COUNT(review_comments WHERE review_id = r.id)
    books.total_reviews        == COUNT(reviews WHERE book_id = b.id)
    books.average_rating       == AVG(rating) of approved reviews of b, else 0
    users.total_reviews        == COUNT(reviews WHERE user_id = u.id)
    users.total_likes_received == COUNT(likes on reviews authored by u)

TRANSACTION CONTRACT:
=====================
Every hook runs in the caller's session and NEVER commits. The caller adds
or deletes the detail row, flushes, calls the hook, then commits once. If a
counter update fails the whole unit rolls back, so the detail row and its
counters are never out of step.

Increments are issued as single UPDATE ... SET col = col + 1 statements so
concurrent writers do not lose each other's updates.

reconcile_counters() recomputes everything from the detail rows. It is a
repair tool for imported data or manual edits, not part of normal flow.
"""

import logging
from decimal import Decimal

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from bookreviewer.models.book import Book
from bookreviewer.models.comment import ReviewComment
from bookreviewer.models.like import ReviewLike
from bookreviewer.models.review import Review, ReviewStatus
from bookreviewer.models.user import User

logger = logging.getLogger(__name__)


def _bump(db: Session, model, row_id: int, column: str, delta: int) -> None:
    """UPDATE model SET column = column + delta WHERE id = row_id."""
    col = getattr(model, column)
    db.execute(
        update(model)
        .where(model.id == row_id)
        .values({column: col + delta})
        .execution_options(synchronize_session=False)
    )


# =============================================================================
# Ratings
# =============================================================================
def compute_average_rating(db: Session, book_id: int) -> Decimal:
    """
    Average rating over approved reviews of a book, rounded to 2 places.

    Returns Decimal("0.00") when the book has no approved reviews.
    """
    db.flush()
    avg_rating = db.execute(
        select(func.avg(Review.rating)).where(
            Review.book_id == book_id,
            Review.status == ReviewStatus.APPROVED.value,
        )
    ).scalar()
    if avg_rating is None:
        return Decimal("0.00")
    return Decimal(str(round(float(avg_rating), 2))).quantize(Decimal("0.01"))


def refresh_book_rating(db: Session, book_id: int) -> Decimal:
    """Recompute and store books.average_rating. Called on re-rate and status change."""
    average = compute_average_rating(db, book_id)
    db.execute(
        update(Book)
        .where(Book.id == book_id)
        .values(average_rating=average)
        .execution_options(synchronize_session=False)
    )
    return average


# =============================================================================
# Likes
# =============================================================================
def on_like_added(db: Session, review: Review) -> None:
    _bump(db, Review, review.id, "likes_count", 1)
    _bump(db, User, review.user_id, "total_likes_received", 1)


def on_like_removed(db: Session, review: Review) -> None:
    _bump(db, Review, review.id, "likes_count", -1)
    _bump(db, User, review.user_id, "total_likes_received", -1)


# =============================================================================
# Reviews
# =============================================================================
def on_review_added(db: Session, review: Review) -> None:
    """
    A review row was inserted (and flushed).

    Bumps the book and author review counts and recomputes the book's
    average rating.
    """
    _bump(db, Book, review.book_id, "total_reviews", 1)
    _bump(db, User, review.user_id, "total_reviews", 1)
    refresh_book_rating(db, review.book_id)


def on_review_removed(db: Session, review: Review) -> None:
    """
    A review row is being hard-deleted.

    Call AFTER the row (and its likes/comments) are deleted and flushed.
    The likes that went with the review are taken off the author's
    total_likes_received, using the review's last known likes_count.
    """
    _bump(db, Book, review.book_id, "total_reviews", -1)
    _bump(db, User, review.user_id, "total_reviews", -1)
    if review.likes_count:
        _bump(db, User, review.user_id, "total_likes_received", -review.likes_count)
    refresh_book_rating(db, review.book_id)


def on_review_changed(db: Session, review: Review) -> None:
    """Rating or moderation status changed; only the average moves."""
    refresh_book_rating(db, review.book_id)


def on_book_removed(db: Session, reviews: list[tuple[int, int]]) -> None:
    """
    A book is being hard-deleted together with its reviews.

    Args:
        reviews: (author_id, likes_count) for every review of the book
    """
    for author_id, likes_count in reviews:
        _bump(db, User, author_id, "total_reviews", -1)
        if likes_count:
            _bump(db, User, author_id, "total_likes_received", -likes_count)


# =============================================================================
# Comments
# =============================================================================
def on_comment_added(db: Session, review_id: int) -> None:
    _bump(db, Review, review_id, "comments_count", 1)


def on_comment_removed(db: Session, review_id: int, count: int = 1) -> None:
    _bump(db, Review, review_id, "comments_count", -count)


# =============================================================================
# Reconciliation
# =============================================================================
def reconcile_counters(db: Session) -> dict[str, int]:
    """
    Recompute every counter from the detail tables.

    Uses correlated UPDATE statements, so the work happens inside the
    database in three statements. Does not commit.

    Returns:
        Number of rows touched per table
    """
    likes_per_review = (
        select(func.count(ReviewLike.id))
        .where(ReviewLike.review_id == Review.id)
        .scalar_subquery()
    )
    comments_per_review = (
        select(func.count(ReviewComment.id))
        .where(ReviewComment.review_id == Review.id)
        .scalar_subquery()
    )
    reviews_result = db.execute(
        update(Review)
        .values(likes_count=likes_per_review, comments_count=comments_per_review)
        .execution_options(synchronize_session=False)
    )

    reviews_per_user = (
        select(func.count(Review.id))
        .where(Review.user_id == User.id)
        .scalar_subquery()
    )
    likes_per_author = (
        select(func.count(ReviewLike.id))
        .join(Review, Review.id == ReviewLike.review_id)
        .where(Review.user_id == User.id)
        .scalar_subquery()
    )
    users_result = db.execute(
        update(User)
        .values(total_reviews=reviews_per_user, total_likes_received=likes_per_author)
        .execution_options(synchronize_session=False)
    )

    reviews_per_book = (
        select(func.count(Review.id))
        .where(Review.book_id == Book.id)
        .scalar_subquery()
    )
    approved_avg = (
        select(func.coalesce(func.round(func.avg(Review.rating), 2), 0))
        .where(Review.book_id == Book.id, Review.status == ReviewStatus.APPROVED.value)
        .scalar_subquery()
    )
    books_result = db.execute(
        update(Book)
        .values(total_reviews=reviews_per_book, average_rating=approved_avg)
        .execution_options(synchronize_session=False)
    )

    summary = {
        "reviews": reviews_result.rowcount,
        "users": users_result.rowcount,
        "books": books_result.rowcount,
    }
    logger.info(f"Counters reconciled: {summary}")
    return summary
