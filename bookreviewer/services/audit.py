"""
Audit Service

Writes SystemLog rows. Callers own the transaction: record_event() only adds
the row to the session.
"""

import logging
from typing import Any

from sqlalchemy.orm import Session

from bookreviewer.models.system_log import SystemLog

logger = logging.getLogger(__name__)

VIEW_REVIEW = "view_review"
REGISTER = "user_register"
LOGIN = "user_login"
MODERATE_REVIEW = "moderate_review"
MODERATE_COMMENT = "moderate_comment"
CHANGE_USER_STATUS = "change_user_status"
DELETE_REVIEW = "delete_review"
DELETE_BOOK = "delete_book"


def record_event(
    db: Session,
    action: str,
    *,
    user_id: int | None = None,
    target_type: str | None = None,
    target_id: int | None = None,
    details: dict[str, Any] | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> SystemLog:
    """Add one audit row to the session."""
    entry = SystemLog(
        user_id=user_id,
        action=action,
        target_type=target_type,
        target_id=target_id,
        details=details,
        ip_address=ip_address,
        user_agent=user_agent,
    )
    db.add(entry)
    logger.debug(f"Audit event {action} on {target_type}:{target_id} by user {user_id}")
    return entry
