"""
Security Service

The credential issuer and the credential verifier.

Security Features:
==================
1. Password hashing with bcrypt (passlib)
2. JWT access tokens signed with the configured SECRET_KEY
3. One verification entry point (verify_access_token) used by every
   authentication dependency

Usage:
    from bookreviewer.services.security import hash_password, verify_password

    hashed = hash_password("SecurePass123")
    is_valid = verify_password("SecurePass123", hashed)
"""

import logging
from datetime import UTC, datetime, timedelta

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from bookreviewer.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()

# -------------------------------------------------------------------------
# Password Hashing Configuration
# -------------------------------------------------------------------------
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    """
    Hash a plain text password using bcrypt.

    Example:
        >>> hashed = hash_password("SecurePass123")
        >>> hashed.startswith("$2b$")
        True
    """
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a plain password against a hashed password.

    Uses constant-time comparison to prevent timing attacks.
    """
    return pwd_context.verify(plain_password, hashed_password)


# -------------------------------------------------------------------------
# JWT Token Configuration
# -------------------------------------------------------------------------
ALGORITHM = "HS256"


class TokenExpired(Exception):
    """The token was well formed but its exp claim is in the past."""


def create_access_token(
    data: dict,
    expires_delta: timedelta | None = None,
) -> str:
    """
    Create a JWT access token.

    Args:
        data: Payload data; "sub" must hold the user id as a string
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token string

    Example:
        >>> token = create_access_token({"sub": "42"})
        >>> token.count(".") == 2
        True
    """
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.now(UTC) + expires_delta
    else:
        expire = datetime.now(UTC) + timedelta(minutes=settings.access_token_expire_minutes)

    to_encode.update({"exp": expire, "type": "access"})

    return jwt.encode(to_encode, settings.secret_key, algorithm=ALGORITHM)


def create_user_token(user) -> str:
    """Issue an access token for a user row."""
    return create_access_token({"sub": str(user.id), "role": user.role})


def decode_token(token: str) -> dict | None:
    """
    Decode and validate a JWT token.

    Returns:
        Decoded payload if valid, None if malformed or badly signed

    Raises:
        TokenExpired: If the signature is valid but the token has expired
    """
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
    except ExpiredSignatureError as e:
        raise TokenExpired(str(e)) from e
    except JWTError as e:
        logger.warning(f"JWT decode error: {e}")
        return None


def verify_access_token(token: str) -> int | None:
    """
    Verify an access token and return the user id it was issued for.

    This is the single "credential -> actor id" capability; callers decide
    whether a failure means 401 or anonymous.

    Returns:
        User id, or None if the token is invalid or of the wrong type

    Raises:
        TokenExpired: If the token has expired
    """
    payload = decode_token(token)
    if payload is None:
        return None

    if payload.get("type") != "access":
        logger.warning("Token type mismatch: expected access")
        return None

    subject = payload.get("sub")
    try:
        return int(subject)
    except (TypeError, ValueError):
        return None
