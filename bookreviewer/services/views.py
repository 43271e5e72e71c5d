"""
View Tracker

Counts review views with a best-effort anti-spam window.

A view is counted when no "view_review" audit row exists for the same viewer
and review inside the trailing window (VIEW_DEDUP_WINDOW_MINUTES, default
30). The viewer is the user when signed in, otherwise the client IP.

This is a heuristic: shared IPs undercount and concurrent first views may
both be counted. The increment itself is a single atomic UPDATE.
"""

import logging
from datetime import UTC, datetime, timedelta

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from bookreviewer.config import get_settings
from bookreviewer.models.review import Review
from bookreviewer.models.system_log import SystemLog
from bookreviewer.models.user import User
from bookreviewer.services import audit
from bookreviewer.services.reviews import get_approved_review

logger = logging.getLogger(__name__)
settings = get_settings()


def _recently_viewed(
    db: Session,
    review_id: int,
    actor: User | None,
    source_ip: str | None,
    since: datetime,
) -> bool:
    stmt = select(SystemLog.id).where(
        SystemLog.action == audit.VIEW_REVIEW,
        SystemLog.target_type == "review",
        SystemLog.target_id == review_id,
        SystemLog.created_at >= since,
    )
    if actor is not None:
        stmt = stmt.where(SystemLog.user_id == actor.id)
    else:
        stmt = stmt.where(SystemLog.user_id.is_(None), SystemLog.ip_address == source_ip)
    return db.execute(stmt.limit(1)).first() is not None


def record_view(
    db: Session,
    review_id: int,
    actor: User | None,
    source_ip: str | None,
    user_agent: str | None = None,
) -> dict:
    """
    Record a view of an approved review.

    Returns:
        {"views": current count, "counted": whether this call incremented it}

    Raises:
        NotFoundError: review missing or not approved
    """
    get_approved_review(db, review_id)

    since = datetime.now(UTC) - timedelta(minutes=settings.view_dedup_window_minutes)
    counted = not _recently_viewed(db, review_id, actor, source_ip, since)

    if counted:
        db.execute(
            update(Review)
            .where(Review.id == review_id)
            .values(views=Review.views + 1)
            .execution_options(synchronize_session=False)
        )
        audit.record_event(
            db,
            audit.VIEW_REVIEW,
            user_id=actor.id if actor is not None else None,
            target_type="review",
            target_id=review_id,
            ip_address=source_ip,
            user_agent=user_agent,
        )
        db.commit()
        logger.debug(f"View counted for review {review_id}")

    views = db.execute(select(Review.views).where(Review.id == review_id)).scalar() or 0
    return {"views": views, "counted": counted}
