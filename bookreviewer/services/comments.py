"""
Comment Service

Comments and replies on reviews.

State machine per comment:
    created (approved) -> edited (author only, within the edit window)
                       -> deleted (author or admin, only without replies)
    admin moderation: approved | pending | rejected (replies untouched)

Tree shape:
- Top-level comments have parent_id = NULL.
- Replies attach to a top-level comment. Replying to a reply attaches the
  new reply to that reply's top-level parent, keeping the tree two levels.
- A reply inherits its parent's review_id.

Every insert/delete runs Counter Maintenance (reviews.comments_count counts
replies and top-level comments alike).
"""

import logging
from datetime import UTC, datetime, timedelta

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from bookreviewer.config import get_settings
from bookreviewer.exceptions import ConflictError, ForbiddenError, NotFoundError
from bookreviewer.models.book import Book
from bookreviewer.models.comment import CommentStatus, ReviewComment
from bookreviewer.models.review import Review, ReviewStatus
from bookreviewer.models.user import User
from bookreviewer.services import audit, counters
from bookreviewer.services.deletion import HardDelete, policy_for
from bookreviewer.services.permissions import Action, ensure_allowed
from bookreviewer.services.reviews import get_readable_review, get_review

logger = logging.getLogger(__name__)
settings = get_settings()

STATS_LIST_SIZE = 10
APPROVED = CommentStatus.APPROVED.value


def _as_utc(moment: datetime) -> datetime:
    """SQLite hands back naive datetimes; treat them as UTC."""
    return moment if moment.tzinfo is not None else moment.replace(tzinfo=UTC)


def get_comment(db: Session, comment_id: int) -> ReviewComment:
    comment = db.execute(
        select(ReviewComment)
        .options(selectinload(ReviewComment.user))
        .where(ReviewComment.id == comment_id)
    ).scalar_one_or_none()
    if comment is None:
        raise NotFoundError("Comment", code="COMMENT_NOT_FOUND")
    return comment


def approved_replies(db: Session, parent_ids: list[int]) -> dict[int, list[ReviewComment]]:
    """All approved replies for the given top-level comments, oldest first."""
    grouped: dict[int, list[ReviewComment]] = {parent_id: [] for parent_id in parent_ids}
    if not parent_ids:
        return grouped
    replies = db.execute(
        select(ReviewComment)
        .options(selectinload(ReviewComment.user))
        .where(ReviewComment.parent_id.in_(parent_ids), ReviewComment.status == APPROVED)
        .order_by(ReviewComment.created_at.asc(), ReviewComment.id.asc())
    ).scalars()
    for reply in replies:
        grouped[reply.parent_id].append(reply)
    return grouped


def serialize(comment: ReviewComment, replies: list[ReviewComment] | None = None) -> dict:
    """Comment as a plain dict with its replies attached."""
    return {
        "id": comment.id,
        "review_id": comment.review_id,
        "user_id": comment.user_id,
        "parent_id": comment.parent_id,
        "content": comment.content,
        "status": comment.status,
        "created_at": comment.created_at,
        "updated_at": comment.updated_at,
        "user": comment.user,
        "replies": [serialize(reply) for reply in (replies or [])],
    }


# =============================================================================
# Create
# =============================================================================
def create_comment(db: Session, actor: User, review_id: int, content: str) -> dict:
    """
    Post a top-level comment.

    Raises:
        NotFoundError: review missing
        ForbiddenError: review not approved
    """
    review = get_review(db, review_id)
    if not review.is_approved:
        raise ForbiddenError("Comments are closed for this review", code="REVIEW_NOT_APPROVED")

    comment = ReviewComment(review_id=review_id, user_id=actor.id, content=content)
    db.add(comment)
    db.flush()
    counters.on_comment_added(db, review_id)
    db.commit()

    logger.info(f"Comment {comment.id} added to review {review_id} by user {actor.id}")
    return serialize(get_comment(db, comment.id), [])


def reply_to_comment(db: Session, actor: User, parent_id: int, content: str) -> dict:
    """
    Reply to a comment.

    Raises:
        NotFoundError: parent missing or not approved
        ForbiddenError: the parent's review is not approved
    """
    parent = db.get(ReviewComment, parent_id)
    if parent is None or not parent.is_approved:
        raise NotFoundError("Comment", code="COMMENT_NOT_FOUND")

    review = db.get(Review, parent.review_id)
    if review is None or not review.is_approved:
        raise ForbiddenError("Comments are closed for this review", code="REVIEW_NOT_APPROVED")

    if parent.parent_id is not None:
        # Replies to a reply land under its top-level comment, which must be live too
        top_level = db.get(ReviewComment, parent.parent_id)
        if top_level is None or not top_level.is_approved:
            raise NotFoundError("Comment", code="COMMENT_NOT_FOUND")
        parent = top_level

    top_level_id = parent.id
    reply = ReviewComment(
        review_id=parent.review_id,
        user_id=actor.id,
        parent_id=top_level_id,
        content=content,
    )
    db.add(reply)
    db.flush()
    counters.on_comment_added(db, parent.review_id)
    db.commit()

    logger.info(f"Reply {reply.id} to comment {top_level_id} by user {actor.id}")
    return serialize(get_comment(db, reply.id))


# =============================================================================
# Edit / Delete / Moderate
# =============================================================================
def update_comment(db: Session, actor: User, comment_id: int, content: str) -> dict:
    """
    Replace a comment's text. Author only, within the edit window.

    Admins moderate rather than edit, so the ownership check here is strict.
    """
    comment = get_comment(db, comment_id)
    if comment.user_id != actor.id:
        raise ForbiddenError("You can only edit your own comments", code="ACCESS_DENIED")

    window = timedelta(hours=settings.comment_edit_window_hours)
    if datetime.now(UTC) - _as_utc(comment.created_at) > window:
        raise ForbiddenError(
            f"Comments can only be edited within {settings.comment_edit_window_hours} hours",
            code="EDIT_WINDOW_EXPIRED",
        )

    comment.content = content
    db.commit()
    return serialize(get_comment(db, comment_id))


def delete_comment(db: Session, actor: User, comment_id: int) -> None:
    """
    Delete a comment (author or admin).

    Raises:
        ConflictError: HAS_REPLIES with data {"replies_count": n}
    """
    comment = get_comment(db, comment_id)
    ensure_allowed(actor, Action.DELETE, comment, "You can only delete your own comments")

    policy = policy_for("comment")
    replies_count = db.execute(
        select(func.count(ReviewComment.id)).where(ReviewComment.parent_id == comment_id)
    ).scalar() or 0
    if isinstance(policy, HardDelete) and not policy.cascade and replies_count:
        raise ConflictError(
            "Comments with replies cannot be deleted",
            code="HAS_REPLIES",
            data={"replies_count": replies_count},
        )

    review_id = comment.review_id
    db.delete(comment)
    db.flush()
    counters.on_comment_removed(db, review_id)
    db.commit()

    logger.info(f"Comment {comment_id} deleted by user {actor.id}")


def moderate_comment(
    db: Session,
    actor: User,
    comment_id: int,
    status: str,
    admin_note: str | None = None,
) -> dict:
    """Set a comment's moderation status (admin only). Replies are not touched."""
    comment = get_comment(db, comment_id)
    ensure_allowed(actor, Action.MODERATE, comment)

    previous = comment.status
    comment.status = status
    audit.record_event(
        db,
        audit.MODERATE_COMMENT,
        user_id=actor.id,
        target_type="comment",
        target_id=comment_id,
        details={"from": previous, "to": status, "admin_note": admin_note},
    )
    db.commit()

    logger.info(f"Comment {comment_id} moderated {previous} -> {status} by admin {actor.id}")
    return {"comment_id": comment_id, "status": status, "admin_note": admin_note}


# =============================================================================
# Queries
# =============================================================================
def list_review_comments(
    db: Session,
    review_id: int,
    actor: User | None = None,
    *,
    skip: int,
    limit: int,
    sort: str = "newest",
) -> tuple[list[dict], int]:
    """
    Approved top-level comments of a review, each with all approved replies.

    Comments follow their review: if the actor may not read the review, the
    thread does not exist for them either.

    Raises:
        NotFoundError: review missing or not readable by the actor
    """
    get_readable_review(db, review_id, actor)

    conditions = (
        ReviewComment.review_id == review_id,
        ReviewComment.parent_id.is_(None),
        ReviewComment.status == APPROVED,
    )
    total = db.execute(select(func.count(ReviewComment.id)).where(*conditions)).scalar() or 0

    order = (
        (ReviewComment.created_at.asc(), ReviewComment.id.asc())
        if sort == "oldest"
        else (ReviewComment.created_at.desc(), ReviewComment.id.desc())
    )
    top_level = list(
        db.execute(
            select(ReviewComment)
            .options(selectinload(ReviewComment.user))
            .where(*conditions)
            .order_by(*order)
            .offset(skip)
            .limit(limit)
        ).scalars()
    )

    replies = approved_replies(db, [comment.id for comment in top_level])
    return [serialize(comment, replies[comment.id]) for comment in top_level], total


def comment_detail(db: Session, comment_id: int, actor: User | None) -> dict:
    """A single comment with its approved replies. Unapproved ones only for owner/admin."""
    comment = get_comment(db, comment_id)
    get_readable_review(db, comment.review_id, actor)
    ensure_allowed(actor, Action.READ, comment)
    replies = approved_replies(db, [comment.id]) if comment.parent_id is None else {comment.id: []}
    return serialize(comment, replies[comment.id])


def list_user_comments(
    db: Session,
    user_id: int,
    *,
    skip: int,
    limit: int,
    status: str | None = APPROVED,
) -> tuple[list[dict], int]:
    """
    Comments written by a user, newest first, with review and book titles.

    status=None lists every status (used for the author's own history).
    Comments on reviews that are no longer approved are skipped.
    """
    if db.get(User, user_id) is None:
        raise NotFoundError("User", code="USER_NOT_FOUND")

    conditions = [
        ReviewComment.user_id == user_id,
        Review.status == ReviewStatus.APPROVED.value,
    ]
    if status is not None:
        conditions.append(ReviewComment.status == status)

    total = db.execute(
        select(func.count(ReviewComment.id))
        .join(Review, Review.id == ReviewComment.review_id)
        .where(*conditions)
    ).scalar() or 0

    rows = db.execute(
        select(ReviewComment, Review.title, Book.title)
        .join(Review, Review.id == ReviewComment.review_id)
        .join(Book, Book.id == Review.book_id)
        .where(*conditions)
        .order_by(ReviewComment.created_at.desc(), ReviewComment.id.desc())
        .offset(skip)
        .limit(limit)
    ).all()

    items = [
        {
            "id": comment.id,
            "review_id": comment.review_id,
            "parent_id": comment.parent_id,
            "content": comment.content,
            "status": comment.status,
            "created_at": comment.created_at,
            "review_title": review_title,
            "book_title": book_title,
        }
        for comment, review_title, book_title in rows
    ]
    return items, total


def comment_stats(db: Session) -> dict:
    """Totals, today's count, top commenters and most commented reviews."""
    total = db.execute(
        select(func.count(ReviewComment.id)).where(ReviewComment.status == APPROVED)
    ).scalar() or 0

    start_of_day = datetime.now(UTC).replace(hour=0, minute=0, second=0, microsecond=0)
    today = db.execute(
        select(func.count(ReviewComment.id)).where(
            ReviewComment.status == APPROVED,
            ReviewComment.created_at >= start_of_day,
        )
    ).scalar() or 0

    per_user = func.count(ReviewComment.id).label("comments_count")
    top_commenters = db.execute(
        select(User.id, User.username, User.avatar_url, per_user)
        .join(ReviewComment, ReviewComment.user_id == User.id)
        .where(ReviewComment.status == APPROVED)
        .group_by(User.id, User.username, User.avatar_url)
        .order_by(per_user.desc(), User.id.asc())
        .limit(STATS_LIST_SIZE)
    ).all()

    per_review = func.count(ReviewComment.id).label("comments_count")
    most_commented = db.execute(
        select(Review.id, Review.title, Book.title.label("book_title"), per_review)
        .join(ReviewComment, ReviewComment.review_id == Review.id)
        .join(Book, Book.id == Review.book_id)
        .where(ReviewComment.status == APPROVED, Review.status == ReviewStatus.APPROVED.value)
        .group_by(Review.id, Review.title, Book.title)
        .order_by(per_review.desc(), Review.id.asc())
        .limit(STATS_LIST_SIZE)
    ).all()

    return {
        "total_comments": total,
        "today_comments": today,
        "top_commenters": [dict(row._mapping) for row in top_commenters],
        "most_commented_reviews": [dict(row._mapping) for row in most_commented],
    }
