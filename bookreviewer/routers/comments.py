"""
Comments Router

- GET    /comments/stats          totals and leaderboards
- GET    /comments/my             my comments (any status)
- GET    /comments/user/{id}      a user's approved comments
- POST   /comments/reviews/{id}   comment on a review
- GET    /comments/reviews/{id}   a review's comments with their replies
- GET    /comments/{id}           single comment
- PUT    /comments/{id}           edit (author, within the edit window)
- DELETE /comments/{id}           delete (author or admin, not with replies)
- POST   /comments/{id}/reply     reply
- PUT    /comments/{id}/status    moderate (admin)

Comment threads are two levels deep: a reply to a reply is attached to the
top-level comment.
"""

import logging
from typing import Literal

from fastapi import APIRouter, Query, Request, status

from bookreviewer.config import get_settings
from bookreviewer.dependencies import CurrentUser, DbSession, OptionalUser, Pagination
from bookreviewer.schemas.comment import (
    CommentCreate,
    CommentModerationResult,
    CommentResponse,
    CommentStats,
    CommentStatusUpdate,
    CommentUpdate,
    UserCommentItem,
)
from bookreviewer.schemas.common import APIResponse, Page, PaginationMeta, ok
from bookreviewer.services import comments as comment_service
from bookreviewer.services.rate_limiter import limiter

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter(
    prefix="/comments",
    tags=["Comments"],
    responses={404: {"description": "Comment or review not found"}},
)


def _page(items: list, total: int, pagination) -> dict:
    return {
        "items": items,
        "pagination": PaginationMeta.build(pagination.page, pagination.limit, total),
    }


@router.get(
    "/stats",
    response_model=APIResponse[CommentStats],
    summary="Comment statistics",
)
def stats(db: DbSession) -> dict:
    return ok(comment_service.comment_stats(db))


@router.get(
    "/my",
    response_model=APIResponse[Page[UserCommentItem]],
    summary="My comments",
)
def my_comments(
    current_user: CurrentUser,
    db: DbSession,
    pagination: Pagination,
    comment_status: Literal["all", "approved", "pending", "rejected"] = Query(
        default="all", alias="status"
    ),
) -> dict:
    items, total = comment_service.list_user_comments(
        db,
        current_user.id,
        skip=pagination.skip,
        limit=pagination.limit,
        status=None if comment_status == "all" else comment_status,
    )
    return ok(_page(items, total, pagination))


@router.get(
    "/user/{user_id}",
    response_model=APIResponse[Page[UserCommentItem]],
    summary="A user's comments",
)
def user_comments(user_id: int, db: DbSession, pagination: Pagination) -> dict:
    items, total = comment_service.list_user_comments(
        db, user_id, skip=pagination.skip, limit=pagination.limit
    )
    return ok(_page(items, total, pagination))


@router.post(
    "/reviews/{review_id}",
    response_model=APIResponse[CommentResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Comment on a review",
    responses={403: {"description": "Review is not approved"}},
)
@limiter.limit(settings.rate_limit_write)
def create_comment(
    request: Request,
    review_id: int,
    payload: CommentCreate,
    current_user: CurrentUser,
    db: DbSession,
) -> dict:
    comment = comment_service.create_comment(db, current_user, review_id, payload.content)
    return ok(comment, "Comment posted")


@router.get(
    "/reviews/{review_id}",
    response_model=APIResponse[Page[CommentResponse]],
    summary="Comments of a review",
)
def review_comments(
    review_id: int,
    db: DbSession,
    current_user: OptionalUser,
    pagination: Pagination,
    sort: Literal["newest", "oldest"] = Query(default="newest"),
) -> dict:
    items, total = comment_service.list_review_comments(
        db, review_id, current_user, skip=pagination.skip, limit=pagination.limit, sort=sort
    )
    return ok(_page(items, total, pagination))


@router.get(
    "/{comment_id}",
    response_model=APIResponse[CommentResponse],
    summary="Get a comment",
)
def get_comment(comment_id: int, db: DbSession, current_user: OptionalUser) -> dict:
    return ok(comment_service.comment_detail(db, comment_id, current_user))


@router.put(
    "/{comment_id}",
    response_model=APIResponse[CommentResponse],
    summary="Edit a comment",
    responses={403: {"description": "Not the author, or edit window expired"}},
)
@limiter.limit(settings.rate_limit_write)
def update_comment(
    request: Request,
    comment_id: int,
    payload: CommentUpdate,
    current_user: CurrentUser,
    db: DbSession,
) -> dict:
    comment = comment_service.update_comment(db, current_user, comment_id, payload.content)
    return ok(comment, "Comment updated")


@router.delete(
    "/{comment_id}",
    response_model=APIResponse[None],
    summary="Delete a comment",
    responses={409: {"description": "Comment has replies"}},
)
def delete_comment(comment_id: int, current_user: CurrentUser, db: DbSession) -> dict:
    comment_service.delete_comment(db, current_user, comment_id)
    return ok(message="Comment deleted")


@router.post(
    "/{comment_id}/reply",
    response_model=APIResponse[CommentResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Reply to a comment",
)
@limiter.limit(settings.rate_limit_write)
def reply(
    request: Request,
    comment_id: int,
    payload: CommentCreate,
    current_user: CurrentUser,
    db: DbSession,
) -> dict:
    comment = comment_service.reply_to_comment(db, current_user, comment_id, payload.content)
    return ok(comment, "Reply posted")


@router.put(
    "/{comment_id}/status",
    response_model=APIResponse[CommentModerationResult],
    summary="Moderate a comment",
)
def moderate_comment(
    comment_id: int,
    payload: CommentStatusUpdate,
    current_user: CurrentUser,
    db: DbSession,
) -> dict:
    result = comment_service.moderate_comment(
        db, current_user, comment_id, payload.status, payload.admin_note
    )
    return ok(result, f"Comment {payload.status}")
