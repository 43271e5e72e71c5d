"""
Likes Router

- POST   /likes/reviews/batch    like status for up to 50 reviews
- POST   /likes/reviews/{id}     like
- DELETE /likes/reviews/{id}     unlike
- GET    /likes/reviews/{id}     like status
- GET    /likes/my               reviews I liked
- GET    /likes/user/{id}        reviews a user liked

Likes are only accepted on approved reviews and never on your own.
"""

import logging

from fastapi import APIRouter, Request

from bookreviewer.config import get_settings
from bookreviewer.dependencies import CurrentUser, DbSession, OptionalUser, Pagination
from bookreviewer.schemas.common import APIResponse, Page, PaginationMeta, ok
from bookreviewer.schemas.like import (
    BatchStatusRequest,
    LikeBatchResult,
    LikedReview,
    LikeStatus,
    LikeToggleResult,
)
from bookreviewer.services import likes as like_service
from bookreviewer.services.rate_limiter import limiter

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter(
    prefix="/likes",
    tags=["Likes"],
    responses={404: {"description": "Review not found"}},
)


@router.post(
    "/reviews/batch",
    response_model=APIResponse[LikeBatchResult],
    summary="Batch like status",
)
def batch_status(payload: BatchStatusRequest, db: DbSession, current_user: OptionalUser) -> dict:
    reviews = like_service.batch_like_status(db, payload.review_ids, current_user)
    return ok({"reviews": reviews})


@router.post(
    "/reviews/{review_id}",
    response_model=APIResponse[LikeToggleResult],
    summary="Like a review",
    responses={
        400: {"description": "Cannot like your own review"},
        409: {"description": "Already liked"},
    },
)
@limiter.limit(settings.rate_limit_write)
def like_review(
    request: Request,
    review_id: int,
    current_user: CurrentUser,
    db: DbSession,
) -> dict:
    return ok(like_service.like_review(db, current_user, review_id), "Review liked")


@router.delete(
    "/reviews/{review_id}",
    response_model=APIResponse[LikeToggleResult],
    summary="Unlike a review",
)
@limiter.limit(settings.rate_limit_write)
def unlike_review(
    request: Request,
    review_id: int,
    current_user: CurrentUser,
    db: DbSession,
) -> dict:
    return ok(like_service.unlike_review(db, current_user, review_id), "Like removed")


@router.get(
    "/reviews/{review_id}",
    response_model=APIResponse[LikeStatus],
    summary="Like status of a review",
)
def like_status(review_id: int, db: DbSession, current_user: OptionalUser) -> dict:
    return ok(like_service.like_status(db, review_id, current_user))


def _likes_page(db, user_id: int, pagination) -> dict:
    items, total = like_service.list_user_likes(
        db, user_id, skip=pagination.skip, limit=pagination.limit
    )
    return {
        "items": items,
        "pagination": PaginationMeta.build(pagination.page, pagination.limit, total),
    }


@router.get(
    "/my",
    response_model=APIResponse[Page[LikedReview]],
    summary="Reviews I liked",
)
def my_likes(current_user: CurrentUser, db: DbSession, pagination: Pagination) -> dict:
    return ok(_likes_page(db, current_user.id, pagination))


@router.get(
    "/user/{user_id}",
    response_model=APIResponse[Page[LikedReview]],
    summary="Reviews a user liked",
)
def user_likes(user_id: int, db: DbSession, pagination: Pagination) -> dict:
    return ok(_likes_page(db, user_id, pagination))
