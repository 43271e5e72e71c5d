"""
Rate Limiting Service

Two layers, both backed by the `limits` library so they share storage
semantics:

1. `limiter` (slowapi): decorator-based per-IP limits on routes, e.g.
   @limiter.limit(settings.rate_limit_write)
2. `RateLimiter`: an injectable object with one operation,
   check_and_record(key) -> bool, used where the caller chooses the key
   (login and registration attempts).

Storage is selected by RATE_LIMIT_STORAGE_URI:
- memory://                 single process
- redis://host:6379/0       shared between instances

Rate Limit Tiers:
=================
- Default (reads): 100 requests/minute
- Writes: 30 requests/minute
- Login/register: 5 attempts per 15 minutes per client
"""

import logging

from fastapi import Request
from limits import parse
from limits.storage import storage_from_string
from limits.strategies import MovingWindowRateLimiter
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.responses import JSONResponse

from bookreviewer.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()


def get_client_ip(request: Request) -> str:
    """
    Get client IP address for rate limiting and view dedup.

    Honors X-Forwarded-For and X-Real-IP set by a reverse proxy, falling back
    to the direct connection address.
    """
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        # First entry is the original client
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()

    return get_remote_address(request)


def create_limiter() -> Limiter:
    """
    Create and configure the route-level limiter.

    Returns:
        Configured slowapi Limiter instance
    """
    limiter = Limiter(
        key_func=get_client_ip,
        default_limits=[settings.rate_limit_default],
        storage_uri=settings.rate_limit_storage_uri,
        strategy="fixed-window",
        enabled=settings.rate_limit_enabled,
    )

    logger.info(
        f"Rate limiter initialized - enabled: {settings.rate_limit_enabled}, "
        f"default: {settings.rate_limit_default}"
    )

    return limiter


limiter = create_limiter()


# =============================================================================
# Injectable Rate Limiter
# =============================================================================
class RateLimiter:
    """
    Keyed limiter with a single check_and_record(key) operation.

    Each call both checks and consumes one hit for `key`. Returns False when
    the key has used up its allowance for the current moving window.

    Example:
        login_limiter = RateLimiter("5/15 minutes", namespace="auth")
        if not login_limiter.check_and_record(client_ip):
            raise RateLimitError(...)
    """

    def __init__(
        self,
        limit: str,
        namespace: str = "default",
        storage_uri: str = "memory://",
        enabled: bool = True,
    ) -> None:
        self.limit = parse(limit)
        self.namespace = namespace
        self.enabled = enabled
        self._storage = storage_from_string(storage_uri)
        self._strategy = MovingWindowRateLimiter(self._storage)

    def check_and_record(self, key: str) -> bool:
        """Record one hit for key; False if the key is over its limit."""
        if not self.enabled:
            return True
        allowed = self._strategy.hit(self.limit, self.namespace, key)
        if not allowed:
            logger.warning(f"Rate limit exceeded for {self.namespace}:{key}")
        return allowed

    def reset(self) -> None:
        """Forget every recorded hit."""
        self._storage.reset()


_auth_limiter: RateLimiter | None = None


def get_auth_rate_limiter() -> RateLimiter:
    """
    Dependency returning the shared login/registration limiter.

    Tests swap it through app.dependency_overrides.
    """
    global _auth_limiter
    if _auth_limiter is None:
        _auth_limiter = RateLimiter(
            settings.auth_rate_limit,
            namespace="auth",
            storage_uri=settings.rate_limit_storage_uri,
            enabled=settings.rate_limit_enabled,
        )
    return _auth_limiter


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """
    Render slowapi's RateLimitExceeded in the standard envelope.

    Returns 429 with a Retry-After header.
    """
    limit_detail = str(exc.detail)

    response = JSONResponse(
        status_code=429,
        content={
            "success": False,
            "message": "Too many requests. Please slow down.",
            "code": "RATE_LIMIT_EXCEEDED",
        },
    )
    response.headers["Retry-After"] = str(60)
    response.headers["X-RateLimit-Limit"] = limit_detail

    logger.warning(
        f"Rate limit exceeded for {get_client_ip(request)}: {limit_detail}"
    )

    return response
