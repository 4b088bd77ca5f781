"""Shared API dependencies."""
from __future__ import annotations

import uuid
from datetime import datetime, timezone

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from pydantic import ValidationError
from sqlalchemy.orm import Session

from daybook.config import settings
from daybook.core.security import InvalidTokenError, decode_token, verify_bearer_secret
from daybook.db.models.user import User
from daybook.db.session import SessionLocal
from daybook.schemas import TokenPayload
from daybook.services.delivery import DeliveryChannel, WebPushChannel
from daybook.utils.exceptions import (
    AuthenticationError,
    ConfigurationError,
    handle_authentication_error,
    handle_configuration_error,
)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_V1_STR}/auth/login")


def get_db() -> Session:
    """Yield a database session for request lifetime."""

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_user(
    token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)
) -> User:
    """Resolve the authenticated user from the Authorization header."""

    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    if not token:
        raise credentials_exception

    try:
        payload = decode_token(token)
        if payload.get("type") != "access":
            raise InvalidTokenError("Token must be an access token")
        token_data = TokenPayload.model_validate(payload)
    except (InvalidTokenError, ValidationError, ValueError, KeyError) as exc:
        raise credentials_exception from exc

    user = db.get(User, uuid.UUID(str(token_data.sub)))
    if not user or not user.is_active:
        raise credentials_exception
    return user


def get_current_admin(current_user: User = Depends(get_current_user)) -> User:
    """Require the authenticated user to be an administrator."""

    if not current_user.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    return current_user


def require_cron_secret(authorization: str | None = Header(default=None)) -> None:
    """Reject scheduler calls that do not carry the shared cron secret."""

    if not verify_bearer_secret(authorization, settings.CRON_SECRET):
        raise handle_authentication_error(AuthenticationError("Unauthorized"))


def get_delivery_channel() -> DeliveryChannel:
    """Return the Web Push channel or fail with 503 when VAPID keys are missing."""

    try:
        return WebPushChannel.from_settings()
    except ConfigurationError as exc:
        raise handle_configuration_error(exc) from exc


def get_current_time() -> datetime:
    return datetime.now(timezone.utc)
