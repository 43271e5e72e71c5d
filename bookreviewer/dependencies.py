"""
FastAPI Dependencies Module

Reusable pieces injected into route handlers:
- DbSession: per-request database session
- Pagination: page/limit query parameters
- CurrentUser / OptionalUser / AdminUser: actor resolution
- ClientIP: caller address used for view dedup and rate limiting
- AuthThrottle: the injected login/registration rate limiter

Actor resolution
================
All three user dependencies go through the same credential verifier
(services.security.verify_access_token):

- CurrentUser   missing token -> 401 NOT_AUTHENTICATED
                bad token     -> 401 INVALID_TOKEN / TOKEN_EXPIRED
                banned user   -> 403 ACCOUNT_DISABLED
- OptionalUser  any of the above -> None (anonymous)
- AdminUser     CurrentUser, then 403 INSUFFICIENT_PERMISSIONS for non-admins
"""

from typing import Annotated

from fastapi import Depends, Query, Request
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.orm import Session

from bookreviewer.config import get_settings
from bookreviewer.database import get_db
from bookreviewer.exceptions import ForbiddenError, RateLimitError, UnauthenticatedError
from bookreviewer.models.user import User
from bookreviewer.services.rate_limiter import RateLimiter, get_auth_rate_limiter, get_client_ip
from bookreviewer.services.security import TokenExpired, verify_access_token

settings = get_settings()

DbSession = Annotated[Session, Depends(get_db)]


# =============================================================================
# Pagination Parameters
# =============================================================================
class PaginationParams:
    """
    Common pagination parameters for list endpoints.

    Usage in route:
        def list_things(db: DbSession, pagination: Pagination): ...
            .offset(pagination.skip).limit(pagination.limit)
    """

    def __init__(
        self,
        page: int = Query(
            default=1,
            ge=1,
            description="Page number (1-indexed)",
        ),
        limit: int = Query(
            default=20,
            ge=1,
            le=100,
            description="Number of items per page (max 100)",
        ),
    ) -> None:
        self.page = page
        self.limit = limit

    @property
    def skip(self) -> int:
        """Rows to skip: page 1 -> 0, page 2 -> limit, ..."""
        return (self.page - 1) * self.limit


Pagination = Annotated[PaginationParams, Depends()]


# =============================================================================
# Client Address
# =============================================================================
def client_ip(request: Request) -> str:
    return get_client_ip(request)


ClientIP = Annotated[str, Depends(client_ip)]


def enforce_auth_rate_limit(
    request: Request,
    rate_limiter: RateLimiter = Depends(get_auth_rate_limiter),
) -> None:
    """Consume one login/registration attempt for the calling IP."""
    if not rate_limiter.check_and_record(get_client_ip(request)):
        raise RateLimitError(
            "Too many attempts. Please try again later.",
            code="RATE_LIMIT_EXCEEDED",
        )


AuthThrottle = Depends(enforce_auth_rate_limit)


# =============================================================================
# JWT Authentication
# =============================================================================
# auto_error=False so a missing header reaches our own 401 with a stable code
oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl="/api/v1/auth/token",
    auto_error=False,
)


def _resolve_user(token: str, db: Session) -> User:
    """Turn a bearer token into an active user or raise."""
    try:
        user_id = verify_access_token(token)
    except TokenExpired:
        raise UnauthenticatedError("Token has expired", code="TOKEN_EXPIRED")

    if user_id is None:
        raise UnauthenticatedError("Invalid token", code="INVALID_TOKEN")

    user = db.execute(select(User).where(User.id == user_id)).scalar_one_or_none()
    if user is None:
        raise UnauthenticatedError("Invalid token", code="INVALID_TOKEN")

    if user.is_banned:
        raise ForbiddenError("This account has been disabled", code="ACCOUNT_DISABLED")

    return user


def get_current_user(
    token: str | None = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    """
    Resolve the authenticated user from the Authorization header.

    Raises:
        UnauthenticatedError: 401 if the token is missing or invalid
        ForbiddenError: 403 if the account is banned
    """
    if not token:
        raise UnauthenticatedError("Authentication required", code="NOT_AUTHENTICATED")
    return _resolve_user(token, db)


def get_optional_current_user(
    token: str | None = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User | None:
    """
    Current user if a valid token is present, None otherwise.

    Used by public endpoints that personalise their answer (is_liked etc.).
    A bad or expired token is treated exactly like no token.
    """
    if not token:
        return None
    try:
        return _resolve_user(token, db)
    except (UnauthenticatedError, ForbiddenError):
        return None


def get_current_admin(current_user: User = Depends(get_current_user)) -> User:
    """
    Require an admin.

    Raises:
        ForbiddenError: 403 INSUFFICIENT_PERMISSIONS
    """
    if not current_user.is_admin:
        raise ForbiddenError("Administrator privileges required", code="INSUFFICIENT_PERMISSIONS")
    return current_user


CurrentUser = Annotated[User, Depends(get_current_user)]
OptionalUser = Annotated[User | None, Depends(get_optional_current_user)]
AdminUser = Annotated[User, Depends(get_current_admin)]
