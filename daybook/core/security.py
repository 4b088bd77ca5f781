"""Security utilities for password hashing, JWT handling and shared secrets."""
from __future__ import annotations

import hmac
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import bcrypt
from jose import JWTError, jwt

from daybook.config import settings


ALGORITHM = "HS256"


class InvalidTokenError(Exception):
    """Raised when a JWT cannot be decoded or is invalid."""


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Validate a plaintext password against a hashed value."""

    return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))


def get_password_hash(password: str) -> str:
    """Hash a password using the configured hashing algorithm."""

    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def _create_token(subject: str | Any, expires_delta: timedelta, token_type: str) -> str:
    expire = datetime.now(timezone.utc) + expires_delta
    payload: Dict[str, Any] = {"exp": expire, "sub": str(subject), "type": token_type}
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=ALGORITHM)


def create_access_token(subject: str | Any, expires_minutes: int | None = None) -> str:
    """Create a signed JWT access token for the supplied subject."""

    minutes = expires_minutes or settings.ACCESS_TOKEN_EXPIRE_MINUTES
    return _create_token(subject, timedelta(minutes=minutes), token_type="access")


def create_refresh_token(subject: str | Any, expires_days: int | None = None) -> str:
    """Create a signed JWT refresh token for the supplied subject."""

    days = expires_days or settings.REFRESH_TOKEN_EXPIRE_DAYS
    return _create_token(subject, timedelta(days=days), token_type="refresh")


def decode_token(token: str) -> Dict[str, Any]:
    """Decode a JWT and return its payload, raising ``InvalidTokenError`` if invalid."""

    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError as exc:
        raise InvalidTokenError(str(exc)) from exc


def verify_bearer_secret(authorization: str | None, expected_secret: str | None) -> bool:
    """Check an ``Authorization: Bearer <secret>`` header in constant time.

    An unset ``expected_secret`` never matches, so an unconfigured deployment
    rejects every caller.
    """

    if not expected_secret or not authorization:
        return False
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() != "bearer" or not credentials:
        return False
    return hmac.compare_digest(credentials.strip().encode("utf-8"), expected_secret.encode("utf-8"))
