"""Capabilities the agent needs from the browser.

The notification permission, service worker registration and push manager
are process-wide browser state. They are modelled here as an interface so the
renewal logic can run against a real bridge or a fake in tests.
"""
from __future__ import annotations

import base64
from enum import Enum
from typing import Any, Mapping, Optional, Protocol


class Permission(str, Enum):
    DEFAULT = "default"
    GRANTED = "granted"
    DENIED = "denied"


class PlatformError(Exception):
    """A browser API rejected a call (registration, subscribe, unsubscribe...)."""


class PushSubscriptionHandle(Protocol):
    def to_json(self) -> Mapping[str, Any]:
        """Serialize as ``{"endpoint": ..., "keys": {"p256dh": ..., "auth": ...}}``."""

    async def unsubscribe(self) -> bool:
        ...


class ServiceWorkerRegistration(Protocol):
    async def update(self) -> None:
        """Ask the browser to check the worker script for a new version."""

    async def ready(self) -> None:
        """Suspend until the worker is active."""

    async def get_subscription(self) -> Optional[PushSubscriptionHandle]:
        ...

    async def subscribe(self, application_server_key: bytes) -> PushSubscriptionHandle:
        """Create a user-visible-only subscription bound to the server key."""


class PushPlatform(Protocol):
    user_agent: str

    def supports_push(self) -> bool:
        ...

    def permission(self) -> Permission:
        ...

    async def request_permission(self) -> Permission:
        ...

    async def register_service_worker(self, script_url: str, scope: str) -> ServiceWorkerRegistration:
        ...

    async def get_registration(self) -> Optional[ServiceWorkerRegistration]:
        ...


def url_base64_to_bytes(value: str) -> bytes:
    """Decode a URL-safe base64 VAPID key that may lack padding."""

    padding = "=" * (-len(value) % 4)
    return base64.urlsafe_b64decode(value + padding)
