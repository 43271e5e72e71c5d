"""
Account Service

Registration, login and self-service account management, plus the admin
ban/unban switch.

Error codes:
- EMAIL_EXISTS / USERNAME_EXISTS (409) on registration or rename clashes
- INVALID_CREDENTIALS (401) on a wrong email or password
- ACCOUNT_DISABLED (403) when a banned user tries to log in
- INVALID_PASSWORD (401) / SAME_PASSWORD (400) on password change
"""

import logging
from datetime import UTC, datetime

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from bookreviewer.exceptions import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    UnauthenticatedError,
    ValidationError,
)
from bookreviewer.models.favorite import UserFavorite
from bookreviewer.models.like import ReviewLike
from bookreviewer.models.user import User, UserRole, UserStatus, default_privacy_settings
from bookreviewer.services import audit
from bookreviewer.services.permissions import Action, ensure_allowed
from bookreviewer.services.security import hash_password, verify_password

logger = logging.getLogger(__name__)


def get_user_by_email(db: Session, email: str) -> User | None:
    return db.execute(
        select(User).where(func.lower(User.email) == email.lower())
    ).scalar_one_or_none()


def get_user_by_username(db: Session, username: str) -> User | None:
    return db.execute(select(User).where(User.username == username)).scalar_one_or_none()


def register_user(
    db: Session,
    email: str,
    username: str,
    password: str,
    ip_address: str | None = None,
) -> User:
    """
    Create a new account with the default role and public privacy settings.

    Raises:
        ConflictError: EMAIL_EXISTS or USERNAME_EXISTS
    """
    if get_user_by_email(db, email) is not None:
        raise ConflictError("Email is already registered", code="EMAIL_EXISTS")
    if get_user_by_username(db, username) is not None:
        raise ConflictError("Username is already taken", code="USERNAME_EXISTS")

    user = User(
        email=email.lower(),
        username=username,
        hashed_password=hash_password(password),
        role=UserRole.USER.value,
        status=UserStatus.ACTIVE.value,
        privacy_settings=default_privacy_settings(),
    )
    db.add(user)
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Email or username is already registered", code="USER_EXISTS")

    audit.record_event(
        db, audit.REGISTER, user_id=user.id, target_type="user", target_id=user.id,
        ip_address=ip_address,
    )
    db.commit()
    db.refresh(user)

    logger.info(f"New user registered: {user.id} ({user.username})")
    return user


def authenticate_user(
    db: Session,
    email: str,
    password: str,
    ip_address: str | None = None,
) -> User:
    """
    Check credentials and stamp last_login_at.

    Raises:
        UnauthenticatedError: INVALID_CREDENTIALS
        ForbiddenError: ACCOUNT_DISABLED for banned accounts
    """
    user = get_user_by_email(db, email)
    if user is None or not verify_password(password, user.hashed_password):
        logger.warning(f"Failed login attempt for {email}")
        raise UnauthenticatedError("Invalid email or password", code="INVALID_CREDENTIALS")

    if user.is_banned:
        logger.warning(f"Login refused for banned user {user.id}")
        raise ForbiddenError("This account has been disabled", code="ACCOUNT_DISABLED")

    user.last_login_at = datetime.now(UTC)
    audit.record_event(
        db, audit.LOGIN, user_id=user.id, target_type="user", target_id=user.id,
        ip_address=ip_address,
    )
    db.commit()
    db.refresh(user)

    logger.info(f"User logged in: {user.id}")
    return user


def self_profile(db: Session, user: User) -> dict:
    """Account data plus favorites and likes given by the user."""
    favorites_count = db.execute(
        select(func.count(UserFavorite.id)).where(UserFavorite.user_id == user.id)
    ).scalar() or 0
    likes_given = db.execute(
        select(func.count(ReviewLike.id)).where(ReviewLike.user_id == user.id)
    ).scalar() or 0

    return {
        "id": user.id,
        "email": user.email,
        "username": user.username,
        "role": user.role,
        "status": user.status,
        "avatar_url": user.avatar_url,
        "bio": user.bio,
        "signature": user.signature,
        "total_reviews": user.total_reviews,
        "total_likes_received": user.total_likes_received,
        "created_at": user.created_at,
        "last_login_at": user.last_login_at,
        "favorites_count": favorites_count,
        "likes_given_count": likes_given,
    }


def update_account(db: Session, user: User, changes: dict) -> User:
    """
    Update username, bio or avatar_url.

    Raises:
        ValidationError: nothing to update
        ConflictError: USERNAME_EXISTS
    """
    changes = {key: value for key, value in changes.items() if value is not None}
    if not changes:
        raise ValidationError("No fields to update", code="NO_UPDATE_FIELDS")

    new_username = changes.get("username")
    if new_username and new_username != user.username:
        if get_user_by_username(db, new_username) is not None:
            raise ConflictError("Username is already taken", code="USERNAME_EXISTS")

    for field, value in changes.items():
        setattr(user, field, value)
    db.commit()
    db.refresh(user)
    return user


def change_password(db: Session, user: User, current_password: str, new_password: str) -> None:
    """
    Replace the user's password.

    Raises:
        UnauthenticatedError: INVALID_PASSWORD when current_password is wrong
        ValidationError: SAME_PASSWORD when the new password equals the old one
    """
    if not verify_password(current_password, user.hashed_password):
        raise UnauthenticatedError("Current password is incorrect", code="INVALID_PASSWORD")
    if current_password == new_password:
        raise ValidationError(
            "New password must differ from the current one", code="SAME_PASSWORD"
        )

    user.hashed_password = hash_password(new_password)
    db.commit()
    logger.info(f"Password changed for user {user.id}")


def set_user_status(
    db: Session,
    actor: User,
    user_id: int,
    status: str,
    reason: str | None = None,
) -> User:
    """
    Ban or unban a user (admin only). Admins cannot change their own status.
    """
    target = db.get(User, user_id)
    if target is None:
        raise NotFoundError("User", code="USER_NOT_FOUND")
    ensure_allowed(actor, Action.MODERATE, target)
    if target.id == actor.id:
        raise ValidationError("You cannot change your own status", code="INVALID_INPUT")

    previous = target.status
    target.status = status
    audit.record_event(
        db,
        audit.CHANGE_USER_STATUS,
        user_id=actor.id,
        target_type="user",
        target_id=user_id,
        details={"from": previous, "to": status, "reason": reason},
    )
    db.commit()
    db.refresh(target)

    logger.info(f"User {user_id} status {previous} -> {status} by admin {actor.id}")
    return target
