"""Authentication service layer."""
from __future__ import annotations

import uuid

from fastapi import HTTPException, status
from loguru import logger
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from daybook.core.security import (
    InvalidTokenError,
    create_access_token,
    create_refresh_token,
    decode_token,
    get_password_hash,
    verify_password,
)
from daybook.db.models.user import User
from daybook.schemas import Token, UserCreate


class EmailAlreadyExistsError(ValueError):
    """Raised when attempting to register with an email that already exists."""


class InvalidCredentialsError(ValueError):
    """Raised when authentication credentials are invalid."""


class AuthService:
    """User registration, credential checks and token issuance."""

    def __init__(self, db: Session):
        self.db = db

    def register_user(self, payload: UserCreate) -> User:
        """Create a new journal user with default reminder preferences."""

        email = payload.email.lower()
        if self.db.scalar(select(User).where(func.lower(User.email) == email)):
            raise EmailAlreadyExistsError("A user with this email already exists.")

        user = User(
            email=email,
            hashed_password=get_password_hash(payload.password),
            full_name=payload.full_name,
            timezone=payload.timezone,
            reminder_time=payload.reminder_time,
            push_opt_in=payload.push_opt_in,
        )

        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise EmailAlreadyExistsError("A user with this email already exists.") from exc
        self.db.refresh(user)
        logger.info("User registered", user_id=str(user.id))
        return user

    def authenticate_user(self, email: str, password: str) -> User:
        """Validate credentials and return the associated active user."""

        user = self.db.scalar(select(User).where(func.lower(User.email) == email.lower()))
        if not user or not user.is_active or not verify_password(password, user.hashed_password):
            raise InvalidCredentialsError("Incorrect email or password")
        return user

    def refresh(self, refresh_token: str) -> Token:
        """Exchange a refresh token for a new token pair."""

        try:
            payload = decode_token(refresh_token)
            if payload.get("type") != "refresh":
                raise InvalidTokenError("Token must be a refresh token")
            user_id = uuid.UUID(str(payload["sub"]))
        except (InvalidTokenError, KeyError, ValueError) as exc:
            raise InvalidCredentialsError("Invalid refresh token") from exc

        user = self.db.get(User, user_id)
        if not user or not user.is_active:
            raise InvalidCredentialsError("Invalid refresh token")
        return self.create_tokens(user)

    def create_tokens(self, user: User) -> Token:
        """Generate access and refresh tokens for a user."""

        subject = str(user.id)
        return Token(
            access_token=create_access_token(subject),
            refresh_token=create_refresh_token(subject),
        )


def handle_email_exists(error: EmailAlreadyExistsError) -> None:
    """Raise an HTTP 400 error for duplicate email attempts."""

    raise HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail=str(error),
    ) from error


def handle_invalid_credentials(error: InvalidCredentialsError) -> None:
    """Raise an HTTP 401 error for invalid login attempts."""

    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=str(error),
        headers={"WWW-Authenticate": "Bearer"},
    ) from error
