"""Browser-side push subscription agent, expressed against an injected platform."""

from daybook.client.agent import (
    EnsureResult,
    FailureReason,
    PushSubscriptionAgent,
    SubscriptionData,
    SubscriptionResult,
    SupportStatus,
)
from daybook.client.api import ApiError, DaybookApiClient
from daybook.client.platform import Permission, PlatformError, PushPlatform
from daybook.client.scheduler import AgentScheduler

__all__ = [
    "AgentScheduler",
    "ApiError",
    "DaybookApiClient",
    "EnsureResult",
    "FailureReason",
    "Permission",
    "PlatformError",
    "PushPlatform",
    "PushSubscriptionAgent",
    "SubscriptionData",
    "SubscriptionResult",
    "SupportStatus",
]
