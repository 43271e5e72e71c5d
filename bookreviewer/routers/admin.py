"""
Admin Router

Moderation tools, admin only:
- PUT    /admin/users/{id}/status        ban / unban a user
- DELETE /admin/reviews/{id}             hard-delete a review and its children
- PUT    /admin/reviews/{id}/featured    feature / unfeature a review
- POST   /admin/counters/reconcile       recompute every counter from detail rows
"""

import logging

from fastapi import APIRouter

from bookreviewer.dependencies import AdminUser, DbSession
from bookreviewer.schemas.common import APIResponse, ok
from bookreviewer.schemas.review import FeaturedUpdate, ReviewResponse
from bookreviewer.schemas.user import UserResponse, UserStatusUpdate
from bookreviewer.services import auth as account_service
from bookreviewer.services import counters
from bookreviewer.services import reviews as review_service

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/admin",
    tags=["Admin"],
    responses={
        401: {"description": "Not authenticated"},
        403: {"description": "Administrator privileges required"},
    },
)


@router.put(
    "/users/{user_id}/status",
    response_model=APIResponse[UserResponse],
    summary="Ban or unban a user",
)
def set_user_status(
    user_id: int,
    payload: UserStatusUpdate,
    current_user: AdminUser,
    db: DbSession,
) -> dict:
    user = account_service.set_user_status(
        db, current_user, user_id, payload.status, payload.reason
    )
    return ok(UserResponse.model_validate(user), f"User status set to {payload.status}")


@router.delete(
    "/reviews/{review_id}",
    response_model=APIResponse[None],
    summary="Permanently delete a review",
    description="Removes the review with its likes, favorites and comments and adjusts all counters.",
)
def hard_delete_review(review_id: int, current_user: AdminUser, db: DbSession) -> dict:
    review_service.hard_delete_review(db, current_user, review_id)
    return ok(message="Review permanently deleted")


@router.put(
    "/reviews/{review_id}/featured",
    response_model=APIResponse[ReviewResponse],
    summary="Feature a review",
)
def set_featured(
    review_id: int,
    payload: FeaturedUpdate,
    current_user: AdminUser,
    db: DbSession,
) -> dict:
    review = review_service.set_featured(db, current_user, review_id, payload.is_featured)
    return ok(ReviewResponse.model_validate(review), "Review updated")


@router.post(
    "/counters/reconcile",
    summary="Reconcile counters",
    description="Recomputes likes, comments, review totals and average ratings.",
)
def reconcile(current_user: AdminUser, db: DbSession) -> dict:
    touched = counters.reconcile_counters(db)
    db.commit()
    logger.info(f"Counters reconciled by admin {current_user.id}: {touched}")
    return ok(touched, "Counters reconciled")
