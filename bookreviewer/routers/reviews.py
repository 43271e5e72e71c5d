"""
Reviews Router

Endpoints:
- POST   /reviews               write a review (one per user per book)
- GET    /reviews               list with filters and sorting
- GET    /reviews/{id}          detail, with user_interaction for signed-in viewers
- PUT    /reviews/{id}          edit (author or admin)
- DELETE /reviews/{id}          hide (author or admin)
- PUT    /reviews/{id}/status   moderate (admin)
- POST   /reviews/{id}/view     record a view

Listing:
========
Only approved reviews are listed by default. Other statuses can be requested
by admins, or by an author for their own reviews (?user_id=<self>).

Sorts: newest, oldest, rating_high, rating_low, most_liked, most_viewed and
hot (likes x3 + comments x2 + views).
"""

import logging
from typing import Literal

from fastapi import APIRouter, Query, Request, status

from bookreviewer.config import get_settings
from bookreviewer.dependencies import ClientIP, CurrentUser, DbSession, OptionalUser, Pagination
from bookreviewer.schemas.common import APIResponse, Page, PaginationMeta, ok
from bookreviewer.schemas.review import (
    ReviewCreate,
    ReviewDetail,
    ReviewResponse,
    ReviewSort,
    ReviewStatusUpdate,
    ReviewUpdate,
    UserInteraction,
    ViewResult,
)
from bookreviewer.services import reviews as review_service
from bookreviewer.services import views as view_service
from bookreviewer.services.rate_limiter import limiter

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter(
    prefix="/reviews",
    tags=["Reviews"],
    responses={404: {"description": "Review not found"}},
)


@router.post(
    "",
    response_model=APIResponse[ReviewResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Write a review",
    responses={409: {"description": "You already reviewed this book"}},
)
@limiter.limit(settings.rate_limit_write)
def create_review(
    request: Request,
    payload: ReviewCreate,
    current_user: CurrentUser,
    db: DbSession,
) -> dict:
    """
    Create a review. It is approved immediately and counts towards the
    book's average rating.

    Raises:
        404 BOOK_NOT_FOUND
        409 REVIEW_EXISTS
    """
    review = review_service.create_review(
        db,
        current_user,
        book_id=payload.book_id,
        title=payload.title,
        content=payload.content,
        rating=payload.rating,
    )
    return ok(ReviewResponse.model_validate(review), "Review created")


@router.get(
    "",
    response_model=APIResponse[Page[ReviewResponse]],
    summary="List reviews",
)
def list_reviews(
    db: DbSession,
    pagination: Pagination,
    current_user: OptionalUser,
    book_id: int | None = Query(default=None, ge=1),
    user_id: int | None = Query(default=None, ge=1),
    review_status: Literal["pending", "approved", "rejected", "hidden"] = Query(
        default="approved", alias="status"
    ),
    sort: ReviewSort = Query(default="hot"),
) -> dict:
    reviews, total = review_service.list_reviews(
        db,
        current_user,
        skip=pagination.skip,
        limit=pagination.limit,
        book_id=book_id,
        user_id=user_id,
        status=review_status,
        sort=sort,
    )
    return ok({
        "items": [ReviewResponse.model_validate(review) for review in reviews],
        "pagination": PaginationMeta.build(pagination.page, pagination.limit, total),
    })


@router.get(
    "/{review_id}",
    response_model=APIResponse[ReviewDetail],
    summary="Get a review",
)
def get_review(review_id: int, db: DbSession, current_user: OptionalUser) -> dict:
    """
    Approved reviews are public. Pending, rejected and hidden ones are only
    visible to their author and admins; anyone else gets 404.
    """
    review = review_service.get_readable_review(db, review_id, current_user)
    detail = ReviewDetail.model_validate(review)
    if current_user is not None:
        detail.user_interaction = UserInteraction(
            **review_service.user_interaction(db, current_user, review_id)
        )
    return ok(detail)


@router.put(
    "/{review_id}",
    response_model=APIResponse[ReviewResponse],
    summary="Edit a review",
)
@limiter.limit(settings.rate_limit_write)
def update_review(
    request: Request,
    review_id: int,
    payload: ReviewUpdate,
    current_user: CurrentUser,
    db: DbSession,
) -> dict:
    review = review_service.update_review(db, current_user, review_id, payload.model_dump())
    return ok(ReviewResponse.model_validate(review), "Review updated")


@router.delete(
    "/{review_id}",
    response_model=APIResponse[None],
    summary="Delete a review",
    description="The review is hidden, not removed. Its likes, favorites and comments stay.",
)
def delete_review(review_id: int, current_user: CurrentUser, db: DbSession) -> dict:
    review_service.delete_review(db, current_user, review_id)
    return ok(message="Review deleted")


@router.put(
    "/{review_id}/status",
    response_model=APIResponse[ReviewResponse],
    summary="Moderate a review",
    responses={403: {"description": "Administrator privileges required"}},
)
def moderate_review(
    review_id: int,
    payload: ReviewStatusUpdate,
    current_user: CurrentUser,
    db: DbSession,
) -> dict:
    review = review_service.moderate_review(
        db, current_user, review_id, payload.status, payload.admin_note
    )
    return ok(ReviewResponse.model_validate(review), f"Review {payload.status}")


@router.post(
    "/{review_id}/view",
    response_model=APIResponse[ViewResult],
    summary="Record a view",
    description=(
        "Counts at most one view per viewer (user, or IP for anonymous callers) "
        "per review inside the dedup window."
    ),
)
def record_view(
    request: Request,
    review_id: int,
    db: DbSession,
    current_user: OptionalUser,
    ip: ClientIP,
) -> dict:
    result = view_service.record_view(
        db,
        review_id,
        current_user,
        source_ip=ip,
        user_agent=request.headers.get("user-agent"),
    )
    return ok(result, "View recorded" if result["counted"] else "View already counted")
