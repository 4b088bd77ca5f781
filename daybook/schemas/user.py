"""Pydantic models for user API interactions."""
from __future__ import annotations

import uuid
from datetime import datetime, time
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator


REMINDER_STEP_MINUTES = 5


def validate_timezone_name(value: str) -> str:
    """Return ``value`` if it names a known IANA zone."""

    try:
        ZoneInfo(value)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Unknown timezone: {value}") from exc
    return value


def validate_reminder_time(value: time) -> time:
    """Reminder times are whole minutes on a five minute grid."""

    if value.minute % REMINDER_STEP_MINUTES != 0:
        raise ValueError("Reminder time must be in 5-minute increments (HH:MM).")
    return value.replace(second=0, microsecond=0)


class UserBase(BaseModel):
    """Shared properties of user representations."""

    email: EmailStr
    full_name: Optional[str] = None
    timezone: str = Field(default="UTC", max_length=64)
    reminder_time: time = time(9, 0)
    push_opt_in: bool = False

    @field_validator("timezone")
    @classmethod
    def check_timezone(cls, value: str) -> str:
        return validate_timezone_name(value)

    @field_validator("reminder_time")
    @classmethod
    def check_reminder_time(cls, value: time) -> time:
        return validate_reminder_time(value)


class UserCreate(UserBase):
    """Schema for user registration input."""

    password: str = Field(min_length=8, max_length=128)


class UserLogin(BaseModel):
    """Schema for user login request."""

    email: EmailStr
    password: str


class UserRead(BaseModel):
    """Schema returned after user registration or retrieval."""

    id: uuid.UUID
    email: EmailStr
    full_name: Optional[str] = None
    timezone: str
    reminder_time: time
    push_opt_in: bool
    is_active: bool
    is_admin: bool
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class UserUpdate(BaseModel):
    """Schema for partial updates to the current user profile."""

    full_name: Optional[str] = Field(default=None, max_length=255)
    timezone: Optional[str] = Field(default=None, max_length=64)
    reminder_time: Optional[time] = None
    push_opt_in: Optional[bool] = None

    model_config = ConfigDict(extra="forbid")

    @field_validator("timezone")
    @classmethod
    def check_timezone(cls, value: Optional[str]) -> Optional[str]:
        return None if value is None else validate_timezone_name(value)

    @field_validator("reminder_time")
    @classmethod
    def check_reminder_time(cls, value: Optional[time]) -> Optional[time]:
        return None if value is None else validate_reminder_time(value)

    @model_validator(mode="after")
    def ensure_payload_not_empty(self) -> "UserUpdate":
        if not any(value is not None for value in self.model_dump().values()):
            raise ValueError("At least one field must be provided")
        return self
