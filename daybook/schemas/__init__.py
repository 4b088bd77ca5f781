"""Pydantic schemas package."""

from daybook.schemas.auth import RefreshRequest, Token, TokenPayload
from daybook.schemas.push import (
    AdminPushSubscriptionRead,
    DispatchSummary,
    PushSubscriptionRead,
    PushSubscriptionSave,
    PushUnsubscribe,
    SubscriberProfile,
    VapidPublicKey,
)
from daybook.schemas.user import UserBase, UserCreate, UserLogin, UserRead, UserUpdate

__all__ = [
    "RefreshRequest",
    "Token",
    "TokenPayload",
    "AdminPushSubscriptionRead",
    "DispatchSummary",
    "PushSubscriptionRead",
    "PushSubscriptionSave",
    "PushUnsubscribe",
    "SubscriberProfile",
    "VapidPublicKey",
    "UserBase",
    "UserCreate",
    "UserLogin",
    "UserRead",
    "UserUpdate",
]
