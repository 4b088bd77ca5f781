"""Schemas for push subscriptions and reminder dispatch."""
from __future__ import annotations

import uuid
from datetime import datetime, time
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

USER_AGENT_MAX_LENGTH = 512


class PushSubscriptionSave(BaseModel):
    """Body posted by the browser after subscribing."""

    endpoint: str = Field(min_length=1)
    p256dh: str = Field(min_length=1)
    auth: str = Field(min_length=1)
    ua: Optional[str] = None

    @field_validator("ua")
    @classmethod
    def truncate_user_agent(cls, value: Optional[str]) -> Optional[str]:
        return value[:USER_AGENT_MAX_LENGTH] if value else value


class PushUnsubscribe(BaseModel):
    """Body identifying one of the caller's devices."""

    endpoint: str = Field(min_length=1)


class PushSubscriptionRead(BaseModel):
    """A stored subscription as seen by its owner."""

    id: uuid.UUID
    endpoint: str
    user_agent: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class SubscriberProfile(BaseModel):
    """Reminder preferences of a subscription's owner."""

    timezone: str
    reminder_time: time
    push_opt_in: bool

    model_config = ConfigDict(from_attributes=True)


class AdminPushSubscriptionRead(PushSubscriptionRead):
    """Subscription row for the admin console."""

    user_id: uuid.UUID
    profile: SubscriberProfile


class VapidPublicKey(BaseModel):
    publicKey: str


class DispatchSummary(BaseModel):
    """Aggregate outcome of a reminder dispatch run."""

    attempted: int = 0
    sent: int = 0
    failed: int = 0
    pruned: int = 0
    due_users: int = 0
