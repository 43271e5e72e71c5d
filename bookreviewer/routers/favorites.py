"""
Favorites Router

- POST   /favorites/reviews/batch   favorite status for up to 50 reviews
- POST   /favorites/reviews/{id}    add to favorites
- DELETE /favorites/reviews/{id}    remove from favorites
- GET    /favorites/reviews/{id}    favorite status
- GET    /favorites/my              my favorites
- GET    /favorites/user/{id}       a user's favorites
- GET    /favorites/stats           top favorited reviews and top collectors
"""

import logging

from fastapi import APIRouter, Request

from bookreviewer.config import get_settings
from bookreviewer.dependencies import CurrentUser, DbSession, OptionalUser, Pagination
from bookreviewer.schemas.common import APIResponse, Page, PaginationMeta, ok
from bookreviewer.schemas.favorite import (
    FavoriteBatchResult,
    FavoritedReview,
    FavoriteStats,
    FavoriteStatus,
    FavoriteToggleResult,
)
from bookreviewer.schemas.like import BatchStatusRequest
from bookreviewer.services import favorites as favorite_service
from bookreviewer.services.rate_limiter import limiter

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter(
    prefix="/favorites",
    tags=["Favorites"],
    responses={404: {"description": "Review not found"}},
)


@router.get(
    "/stats",
    response_model=APIResponse[FavoriteStats],
    summary="Favorite leaderboard",
)
def stats(db: DbSession) -> dict:
    return ok(favorite_service.favorite_stats(db))


@router.post(
    "/reviews/batch",
    response_model=APIResponse[FavoriteBatchResult],
    summary="Batch favorite status",
)
def batch_status(payload: BatchStatusRequest, db: DbSession, current_user: OptionalUser) -> dict:
    reviews = favorite_service.batch_favorite_status(db, payload.review_ids, current_user)
    return ok({"reviews": reviews})


@router.post(
    "/reviews/{review_id}",
    response_model=APIResponse[FavoriteToggleResult],
    summary="Favorite a review",
    responses={409: {"description": "Already favorited"}},
)
@limiter.limit(settings.rate_limit_write)
def favorite_review(
    request: Request,
    review_id: int,
    current_user: CurrentUser,
    db: DbSession,
) -> dict:
    return ok(favorite_service.favorite_review(db, current_user, review_id), "Added to favorites")


@router.delete(
    "/reviews/{review_id}",
    response_model=APIResponse[FavoriteToggleResult],
    summary="Unfavorite a review",
)
@limiter.limit(settings.rate_limit_write)
def unfavorite_review(
    request: Request,
    review_id: int,
    current_user: CurrentUser,
    db: DbSession,
) -> dict:
    return ok(
        favorite_service.unfavorite_review(db, current_user, review_id),
        "Removed from favorites",
    )


@router.get(
    "/reviews/{review_id}",
    response_model=APIResponse[FavoriteStatus],
    summary="Favorite status of a review",
)
def favorite_status(review_id: int, db: DbSession, current_user: OptionalUser) -> dict:
    return ok(favorite_service.favorite_status(db, review_id, current_user))


def _favorites_page(db, user_id: int, pagination) -> dict:
    items, total = favorite_service.list_user_favorites(
        db, user_id, skip=pagination.skip, limit=pagination.limit
    )
    return {
        "items": items,
        "pagination": PaginationMeta.build(pagination.page, pagination.limit, total),
    }


@router.get(
    "/my",
    response_model=APIResponse[Page[FavoritedReview]],
    summary="My favorites",
)
def my_favorites(current_user: CurrentUser, db: DbSession, pagination: Pagination) -> dict:
    return ok(_favorites_page(db, current_user.id, pagination))


@router.get(
    "/user/{user_id}",
    response_model=APIResponse[Page[FavoritedReview]],
    summary="A user's favorites",
)
def user_favorites(user_id: int, db: DbSession, pagination: Pagination) -> dict:
    return ok(_favorites_page(db, user_id, pagination))
