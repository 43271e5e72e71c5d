"""
Authentication Router

Account endpoints:
- POST /auth/register   create an account, returns a token
- POST /auth/login      email/password (JSON) -> token
- POST /auth/token      same, as an OAuth2 form (used by Swagger's Authorize)
- GET  /auth/profile    own account with interaction totals
- PUT  /auth/profile    change username, bio or avatar
- PUT  /auth/password   change password
- GET  /auth/verify     check that the presented token is valid
- POST /auth/logout     client-side logout acknowledgement

Security:
=========
- Passwords are hashed with bcrypt; plain text is never logged or stored
- Register/login attempts go through the injected auth RateLimiter
  (AUTH_RATE_LIMIT per client IP)
"""

import logging

from fastapi import APIRouter, Depends, Request, status
from fastapi.security import OAuth2PasswordRequestForm

from bookreviewer.config import get_settings
from bookreviewer.dependencies import AuthThrottle, ClientIP, CurrentUser, DbSession
from bookreviewer.schemas.common import APIResponse, ok
from bookreviewer.schemas.user import (
    AuthResponse,
    PasswordChange,
    SelfProfileResponse,
    UserLogin,
    UserProfileUpdate,
    UserRegister,
    UserResponse,
)
from bookreviewer.services import auth as account_service
from bookreviewer.services.rate_limiter import limiter
from bookreviewer.services.security import create_user_token

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter(
    prefix="/auth",
    tags=["Authentication"],
    responses={
        400: {"description": "Validation error"},
        401: {"description": "Not authenticated"},
        409: {"description": "Email or username already exists"},
        429: {"description": "Too many attempts"},
    },
)


def _auth_payload(user) -> dict:
    return {
        "token": create_user_token(user),
        "token_type": "bearer",
        "user": UserResponse.model_validate(user),
    }


@router.post(
    "/register",
    response_model=APIResponse[AuthResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user",
    dependencies=[AuthThrottle],
)
def register(payload: UserRegister, db: DbSession, ip: ClientIP) -> dict:
    """
    Create an account and sign it in.

    Raises:
        409 EMAIL_EXISTS / USERNAME_EXISTS
        429 RATE_LIMIT_EXCEEDED
    """
    user = account_service.register_user(
        db, payload.email, payload.username, payload.password, ip_address=ip
    )
    return ok(_auth_payload(user), "Registration successful")


@router.post(
    "/login",
    response_model=APIResponse[AuthResponse],
    summary="Log in with email and password",
    dependencies=[AuthThrottle],
)
def login(payload: UserLogin, db: DbSession, ip: ClientIP) -> dict:
    """
    Exchange credentials for an access token.

    Raises:
        401 INVALID_CREDENTIALS
        403 ACCOUNT_DISABLED
    """
    user = account_service.authenticate_user(db, payload.email, payload.password, ip_address=ip)
    return ok(_auth_payload(user), "Login successful")


@router.post(
    "/token",
    summary="OAuth2 token endpoint",
    description="Form-based login for OpenAPI clients. `username` carries the email.",
    dependencies=[AuthThrottle],
)
def token(
    db: DbSession,
    ip: ClientIP,
    form_data: OAuth2PasswordRequestForm = Depends(),
) -> dict:
    user = account_service.authenticate_user(db, form_data.username, form_data.password, ip_address=ip)
    return {"access_token": create_user_token(user), "token_type": "bearer"}


@router.get(
    "/profile",
    response_model=APIResponse[SelfProfileResponse],
    summary="Get own account",
)
def get_profile(current_user: CurrentUser, db: DbSession) -> dict:
    return ok(account_service.self_profile(db, current_user))


@router.put(
    "/profile",
    response_model=APIResponse[UserResponse],
    summary="Update own account",
)
@limiter.limit(settings.rate_limit_write)
def update_profile(
    request: Request,
    payload: UserProfileUpdate,
    current_user: CurrentUser,
    db: DbSession,
) -> dict:
    """
    Raises:
        400 NO_UPDATE_FIELDS / VALIDATION_ERROR (bio over 500 chars)
        409 USERNAME_EXISTS
    """
    user = account_service.update_account(db, current_user, payload.model_dump())
    return ok(UserResponse.model_validate(user), "Profile updated")


@router.put(
    "/password",
    response_model=APIResponse[None],
    summary="Change password",
)
@limiter.limit(settings.rate_limit_write)
def change_password(
    request: Request,
    payload: PasswordChange,
    current_user: CurrentUser,
    db: DbSession,
) -> dict:
    account_service.change_password(
        db, current_user, payload.current_password, payload.new_password
    )
    return ok(message="Password changed")


@router.get(
    "/verify",
    response_model=APIResponse[UserResponse],
    summary="Verify token",
)
def verify(current_user: CurrentUser) -> dict:
    return ok(UserResponse.model_validate(current_user), "Token is valid")


@router.post(
    "/logout",
    response_model=APIResponse[None],
    summary="Log out",
    description="Tokens are stateless; the client discards its copy.",
)
def logout() -> dict:
    return ok(message="Logged out")
