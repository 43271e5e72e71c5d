"""
User Pydantic Schemas

Schemas for registration, login, the self profile and admin status changes.

Validation rules:
- username: 2-20 characters, letters, digits and underscores
- password: at least 8 characters with at least one letter and one digit
- bio: at most 500 characters
"""

import re
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

USERNAME_PATTERN = re.compile(r"^\w{2,20}$")


def _check_password_strength(v: str) -> str:
    if not re.search(r"[A-Za-z]", v):
        raise ValueError("Password must contain at least one letter")
    if not re.search(r"\d", v):
        raise ValueError("Password must contain at least one number")
    return v


def _check_username(v: str) -> str:
    v = v.strip()
    if not USERNAME_PATTERN.match(v):
        raise ValueError(
            "Username must be 2-20 characters of letters, numbers or underscores"
        )
    return v


# =============================================================================
# Request Schemas
# =============================================================================


class UserRegister(BaseModel):
    """Schema for user registration."""

    email: EmailStr = Field(..., description="Email address", examples=["reader@example.com"])
    username: str = Field(..., description="Display name (2-20 characters)", examples=["bookworm"])
    password: str = Field(
        ...,
        min_length=8,
        max_length=128,
        description="Password (min 8 chars, must include a letter and a number)",
        examples=["SecurePass123"],
    )

    @field_validator("username")
    @classmethod
    def username_must_be_valid(cls, v: str) -> str:
        return _check_username(v)

    @field_validator("password")
    @classmethod
    def password_must_be_strong(cls, v: str) -> str:
        return _check_password_strength(v)


class UserLogin(BaseModel):
    """Schema for email/password login."""

    email: EmailStr
    password: str = Field(..., min_length=1)


class UserProfileUpdate(BaseModel):
    """Self-service profile update. Only the fields sent are changed."""

    username: str | None = Field(default=None, description="New display name")
    bio: str | None = Field(default=None, max_length=500, description="Biography (max 500 chars)")
    avatar_url: str | None = Field(default=None, max_length=255, description="Avatar URL")

    @field_validator("username")
    @classmethod
    def username_must_be_valid(cls, v: str | None) -> str | None:
        return _check_username(v) if v is not None else v


class PasswordChange(BaseModel):
    """Schema for changing password."""

    current_password: str = Field(..., min_length=1, description="Current password")
    new_password: str = Field(
        ...,
        min_length=8,
        max_length=128,
        description="New password (min 8 chars, a letter and a number)",
    )

    @field_validator("new_password")
    @classmethod
    def password_must_be_strong(cls, v: str) -> str:
        return _check_password_strength(v)


class UserStatusUpdate(BaseModel):
    """Admin ban/unban request."""

    status: Literal["active", "banned"]
    reason: str | None = Field(default=None, max_length=500)


# =============================================================================
# Response Schemas
# =============================================================================


class UserPublic(BaseModel):
    """Minimal user info embedded in reviews and comments."""

    id: int
    username: str
    avatar_url: str | None = None

    model_config = ConfigDict(from_attributes=True)


class UserResponse(BaseModel):
    """Account data returned to the account owner."""

    id: int
    email: EmailStr
    username: str
    role: str
    status: str
    avatar_url: str | None = None
    bio: str | None = None
    signature: str | None = None
    total_reviews: int = 0
    total_likes_received: int = 0
    created_at: datetime
    last_login_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class SelfProfileResponse(UserResponse):
    """GET /auth/profile: account data plus interaction totals."""

    favorites_count: int = 0
    likes_given_count: int = 0


class AuthResponse(BaseModel):
    """Issued credential plus the account it belongs to."""

    token: str
    token_type: str = "bearer"
    user: UserResponse
