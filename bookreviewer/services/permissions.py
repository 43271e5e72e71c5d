"""
Authorization Gate

A pure policy function deciding whether an actor may perform an action on a
resource. It never touches the database and never raises; callers turn a
denial into an error with ensure_allowed().

Rules, evaluated in order:
==========================
1. Updating/deleting a Review or Comment: owner or admin.
2. Book create/update: any authenticated user. Book delete: admin only.
3. Reading an approved resource: anyone, anonymous included.
4. Reading a non-approved resource: owner or admin.

Deny reasons map onto HTTP status codes:
- NOT_AUTHENTICATED         -> 401
- ACCESS_DENIED             -> 403 (not the owner)
- INSUFFICIENT_PERMISSIONS  -> 403 (role too low)

Usage:
    decision = can_perform(current_user, Action.UPDATE, review)
    if not decision.allowed:
        ...

    ensure_allowed(current_user, Action.DELETE, comment)  # raises on deny
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from bookreviewer.exceptions import ForbiddenError, UnauthenticatedError
from bookreviewer.models.book import Book
from bookreviewer.models.user import UserRole

NOT_AUTHENTICATED = "NOT_AUTHENTICATED"
ACCESS_DENIED = "ACCESS_DENIED"
INSUFFICIENT_PERMISSIONS = "INSUFFICIENT_PERMISSIONS"


class Action(str, Enum):
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"
    MODERATE = "moderate"


@dataclass(frozen=True)
class Decision:
    """Outcome of an authorization check. `reason` is set only on deny."""

    allowed: bool
    reason: str | None = None

    def __bool__(self) -> bool:
        return self.allowed


ALLOW = Decision(True)


def _deny(reason: str) -> Decision:
    return Decision(False, reason)


def _is_admin(actor: Any) -> bool:
    return actor is not None and actor.role == UserRole.ADMIN.value


def _owns(actor: Any, resource: Any) -> bool:
    return actor is not None and getattr(resource, "user_id", None) == actor.id


def can_perform(actor: Any, action: Action, resource: Any) -> Decision:
    """
    Decide whether `actor` may perform `action` on `resource`.

    Args:
        actor: The authenticated user, or None for anonymous callers
        action: What the actor wants to do
        resource: A Review, ReviewComment or Book instance (or the Book
            class itself for CREATE, where no instance exists yet)

    Returns:
        Decision(allowed=True) or Decision(allowed=False, reason=<code>)
    """
    # Moderation is an admin concern on every resource type
    if action == Action.MODERATE:
        if actor is None:
            return _deny(NOT_AUTHENTICATED)
        return ALLOW if _is_admin(actor) else _deny(INSUFFICIENT_PERMISSIONS)

    is_book = resource is Book or isinstance(resource, Book)

    # Rule 1: mutating owned content
    if not is_book and action in (Action.UPDATE, Action.DELETE):
        if actor is None:
            return _deny(NOT_AUTHENTICATED)
        if _owns(actor, resource) or _is_admin(actor):
            return ALLOW
        return _deny(ACCESS_DENIED)

    # Rule 2: books
    if is_book and action != Action.READ:
        if actor is None:
            return _deny(NOT_AUTHENTICATED)
        if action == Action.DELETE and not _is_admin(actor):
            return _deny(INSUFFICIENT_PERMISSIONS)
        return ALLOW

    if action == Action.CREATE:
        return ALLOW if actor is not None else _deny(NOT_AUTHENTICATED)

    # Rules 3 and 4: reading
    status = getattr(resource, "status", "approved")
    if status == "approved":
        return ALLOW
    if actor is None:
        return _deny(NOT_AUTHENTICATED)
    if _owns(actor, resource) or _is_admin(actor):
        return ALLOW
    return _deny(ACCESS_DENIED)


_MESSAGES = {
    NOT_AUTHENTICATED: "Authentication required",
    ACCESS_DENIED: "You do not have access to this resource",
    INSUFFICIENT_PERMISSIONS: "Administrator privileges required",
}


def ensure_allowed(
    actor: Any,
    action: Action,
    resource: Any,
    message: str | None = None,
) -> None:
    """
    Raise the matching AppError if the gate denies the action.

    Raises:
        UnauthenticatedError: reason NOT_AUTHENTICATED
        ForbiddenError: reason ACCESS_DENIED or INSUFFICIENT_PERMISSIONS
    """
    decision = can_perform(actor, action, resource)
    if decision.allowed:
        return
    text = message or _MESSAGES[decision.reason]
    if decision.reason == NOT_AUTHENTICATED:
        raise UnauthenticatedError(text, code=decision.reason)
    raise ForbiddenError(text, code=decision.reason)
