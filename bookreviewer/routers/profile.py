"""
Profile Router

- GET /profile            own profile (owner view)
- GET /profile/{user_id}  a user's profile, filtered by their privacy settings
- PUT /profile            update signature and/or privacy settings
"""

from fastapi import APIRouter, Request

from bookreviewer.config import get_settings
from bookreviewer.dependencies import CurrentUser, DbSession, OptionalUser
from bookreviewer.schemas.common import APIResponse, ok
from bookreviewer.schemas.profile import ProfileResponse, ProfileUpdate
from bookreviewer.services import privacy
from bookreviewer.services.rate_limiter import limiter

settings = get_settings()

router = APIRouter(prefix="/profile", tags=["Profile"])


@router.get("", response_model=APIResponse[ProfileResponse], summary="My profile")
def my_profile(current_user: CurrentUser, db: DbSession) -> dict:
    return ok(privacy.build_profile(db, current_user.id, current_user))


@router.get(
    "/{user_id}",
    response_model=APIResponse[ProfileResponse],
    summary="User profile",
    description="Blocks hidden by the user's privacy settings come back as null.",
    responses={404: {"description": "User not found"}},
)
def user_profile(user_id: int, db: DbSession, current_user: OptionalUser) -> dict:
    return ok(privacy.build_profile(db, user_id, current_user))


@router.put("", response_model=APIResponse[ProfileResponse], summary="Update my profile")
@limiter.limit(settings.rate_limit_write)
def update_profile(
    request: Request,
    payload: ProfileUpdate,
    current_user: CurrentUser,
    db: DbSession,
) -> dict:
    profile = privacy.update_profile(
        db,
        current_user,
        signature=payload.signature,
        privacy_settings=payload.privacy_settings.model_dump() if payload.privacy_settings else None,
    )
    return ok(profile, "Profile updated")
