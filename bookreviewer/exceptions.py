"""
Application Errors

Every failure a service can report is one of the classes below. Each carries:
- status_code: the HTTP status the transport layer will use
- code: a stable machine-readable identifier (e.g. ALREADY_LIKED)
- message: a human-readable explanation
- data: optional structured detail (e.g. {"replies_count": 2})

Services raise these; a single exception handler in main.py renders them into
the standard response envelope:

    {"success": false, "message": "...", "code": "...", "data": {...}}

Taxonomy:
=========
- ValidationError       400  malformed or out-of-range input
- UnauthenticatedError  401  missing or invalid credential
- ForbiddenError        403  authorization gate denied the action
- NotFoundError         404  referenced entity absent
- ConflictError         409  uniqueness violation or blocked state change
- RateLimitError        429  client exceeded a request limit
- InternalError         500  unexpected store or credential failure
"""

from typing import Any


class AppError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code: int = 500
    default_code: str = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str,
        code: str | None = None,
        data: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.code = code or self.default_code
        self.data = data
        super().__init__(message)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"


class ValidationError(AppError):
    """Input failed a business validation rule."""

    status_code = 400
    default_code = "VALIDATION_ERROR"


class UnauthenticatedError(AppError):
    """The request carries no usable credential."""

    status_code = 401
    default_code = "NOT_AUTHENTICATED"


class ForbiddenError(AppError):
    """The actor is known but not allowed to do this."""

    status_code = 403
    default_code = "ACCESS_DENIED"


class NotFoundError(AppError):
    """Referenced entity does not exist (or is not visible)."""

    status_code = 404
    default_code = "NOT_FOUND"

    def __init__(
        self,
        resource: str,
        code: str | None = None,
        message: str | None = None,
        data: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message or f"{resource} not found", code=code, data=data)


class ConflictError(AppError):
    """Uniqueness violation or a state that blocks the change."""

    status_code = 409
    default_code = "CONFLICT"


class RateLimitError(AppError):
    """Client exceeded a configured request limit."""

    status_code = 429
    default_code = "RATE_LIMIT_EXCEEDED"


class InternalError(AppError):
    """Unexpected failure inside the store or a collaborator."""

    status_code = 500
    default_code = "INTERNAL_ERROR"
