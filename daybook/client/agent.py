"""Keeps one valid push subscription registered for this browser profile."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional, Protocol

from loguru import logger

from daybook.client.api import ApiError
from daybook.client.platform import (
    Permission,
    PlatformError,
    PushPlatform,
    PushSubscriptionHandle,
    ServiceWorkerRegistration,
    url_base64_to_bytes,
)

SERVICE_WORKER_URL = "/sw.js"
SERVICE_WORKER_SCOPE = "/"


class FailureReason(str, Enum):
    PUSH_UNSUPPORTED = "PushUnsupported"
    PERMISSION_DENIED = "PermissionDenied"
    SERVICE_WORKER_REGISTRATION_FAILED = "ServiceWorkerRegistrationFailed"
    SUBSCRIBE_REJECTED = "SubscribeRejected"
    SERVER_PERSIST_FAILED = "ServerPersistFailed"


class SubscriptionServer(Protocol):
    async def is_push_opted_in(self) -> bool:
        ...

    async def save_subscription(
        self, endpoint: str, p256dh: str, auth: str, user_agent: str | None = None
    ) -> None:
        ...


@dataclass(frozen=True)
class SubscriptionData:
    endpoint: str
    p256dh: str
    auth: str

    @classmethod
    def from_json(cls, raw: Mapping[str, Any]) -> Optional["SubscriptionData"]:
        """Return the serialized subscription, or None if endpoint or keys are missing."""

        keys = raw.get("keys") or {}
        endpoint, p256dh, auth = raw.get("endpoint"), keys.get("p256dh"), keys.get("auth")
        if not (endpoint and p256dh and auth):
            return None
        return cls(endpoint=endpoint, p256dh=p256dh, auth=auth)


@dataclass(frozen=True)
class SubscriptionResult:
    success: bool
    subscription: Optional[SubscriptionData] = None
    reissued: bool = False
    reason: Optional[FailureReason] = None
    detail: Optional[str] = None

    @classmethod
    def failed(cls, reason: FailureReason, detail: str | None = None) -> "SubscriptionResult":
        return cls(success=False, reason=reason, detail=detail)


@dataclass(frozen=True)
class EnsureResult:
    active: bool
    renewed: bool = False
    skipped: bool = False
    reason: Optional[FailureReason] = None
    detail: Optional[str] = None


@dataclass(frozen=True)
class SupportStatus:
    supported: bool
    permission: Permission
    subscribed: bool


class PushSubscriptionAgent:
    """Registers the service worker, renews the subscription and syncs it to the server.

    Every failure is reported through the returned result and logged, never
    raised: reminders are optional and must not interrupt journaling.
    """

    def __init__(
        self,
        platform: PushPlatform,
        server: SubscriptionServer,
        vapid_public_key: str | None,
        worker_url: str = SERVICE_WORKER_URL,
        scope: str = SERVICE_WORKER_SCOPE,
    ):
        self.platform = platform
        self.server = server
        self.vapid_public_key = vapid_public_key
        self.worker_url = worker_url
        self.scope = scope
        self._permission_prompted = False
        self._synced: Optional[SubscriptionData] = None

    async def ensure_service_worker_registered(self) -> Optional[ServiceWorkerRegistration]:
        if not self.platform.supports_push():
            return None
        try:
            registration = await self.platform.register_service_worker(self.worker_url, self.scope)
            await registration.update()
        except PlatformError as exc:
            logger.warning("Service worker registration failed", error=str(exc))
            return None
        return registration

    async def get_current_subscription(self) -> Optional[PushSubscriptionHandle]:
        if not self.platform.supports_push():
            return None
        try:
            registration = await self.platform.get_registration()
            if registration is None:
                return None
            return await registration.get_subscription()
        except PlatformError as exc:
            logger.warning("Failed to read push subscription", error=str(exc))
            return None

    async def subscribe_or_renew(self) -> SubscriptionResult:
        """Return a valid subscription, reusing the existing one when it serializes."""

        if not self.platform.supports_push():
            return SubscriptionResult.failed(FailureReason.PUSH_UNSUPPORTED)
        if not self.vapid_public_key:
            return SubscriptionResult.failed(
                FailureReason.SUBSCRIBE_REJECTED, "Missing VAPID public key"
            )

        try:
            permission = self.platform.permission()
            if permission is Permission.DEFAULT and not self._permission_prompted:
                # Prompt at most once per session; a dismissal is treated as a denial.
                self._permission_prompted = True
                permission = await self.platform.request_permission()
        except PlatformError as exc:
            return SubscriptionResult.failed(FailureReason.PERMISSION_DENIED, str(exc))
        if permission is not Permission.GRANTED:
            return SubscriptionResult.failed(FailureReason.PERMISSION_DENIED)

        registration = await self.ensure_service_worker_registered()
        if registration is None:
            return SubscriptionResult.failed(FailureReason.SERVICE_WORKER_REGISTRATION_FAILED)
        try:
            await registration.ready()
        except PlatformError as exc:
            return SubscriptionResult.failed(
                FailureReason.SERVICE_WORKER_REGISTRATION_FAILED, str(exc)
            )

        try:
            existing = await registration.get_subscription()
        except PlatformError as exc:
            logger.warning("Failed to read push subscription", error=str(exc))
            existing = None

        if existing is not None:
            data = self._serialize(existing)
            if data is not None:
                return SubscriptionResult(success=True, subscription=data)
            logger.warning("Existing push subscription is corrupt, resubscribing")
            try:
                await existing.unsubscribe()
            except PlatformError as exc:
                logger.warning("Unsubscribing corrupt subscription failed", error=str(exc))

        try:
            created = await registration.subscribe(url_base64_to_bytes(self.vapid_public_key))
        except (PlatformError, ValueError) as exc:
            return SubscriptionResult.failed(FailureReason.SUBSCRIBE_REJECTED, str(exc))

        data = self._serialize(created)
        if data is None:
            return SubscriptionResult.failed(
                FailureReason.SUBSCRIBE_REJECTED, "New subscription is missing endpoint or keys"
            )
        return SubscriptionResult(success=True, subscription=data, reissued=True)

    async def ensure_active(self) -> EnsureResult:
        """Periodic entry point: skip unless opted in, renew, then sync to the server."""

        if not await self.server.is_push_opted_in():
            return EnsureResult(active=False, skipped=True)

        result = await self.subscribe_or_renew()
        if not result.success:
            self._log_failure(result.reason, result.detail)
            return EnsureResult(active=False, reason=result.reason, detail=result.detail)

        data = result.subscription
        if result.reissued or data != self._synced:
            try:
                await self.server.save_subscription(
                    data.endpoint, data.p256dh, data.auth, user_agent=self.platform.user_agent
                )
            except ApiError as exc:
                # The browser subscription stays; the next check retries the save.
                self._synced = None
                self._log_failure(FailureReason.SERVER_PERSIST_FAILED, exc.message)
                return EnsureResult(
                    active=False,
                    reason=FailureReason.SERVER_PERSIST_FAILED,
                    detail=exc.message,
                )
            self._synced = data
            if result.reissued:
                logger.info("Push subscription renewed")
        return EnsureResult(active=True, renewed=result.reissued)

    async def unsubscribe(self) -> bool:
        subscription = await self.get_current_subscription()
        if subscription is None:
            return True
        try:
            await subscription.unsubscribe()
        except PlatformError as exc:
            logger.warning("Failed to unsubscribe", error=str(exc))
            return False
        self._synced = None
        return True

    async def check_support(self) -> SupportStatus:
        supported = self.platform.supports_push()
        permission = self.platform.permission() if supported else Permission.DENIED
        subscription = await self.get_current_subscription()
        return SupportStatus(supported=supported, permission=permission, subscribed=subscription is not None)

    @staticmethod
    def _serialize(handle: PushSubscriptionHandle) -> Optional[SubscriptionData]:
        try:
            return SubscriptionData.from_json(handle.to_json())
        except (PlatformError, AttributeError, TypeError) as exc:
            logger.warning("Push subscription could not be serialized", error=str(exc))
            return None

    @staticmethod
    def _log_failure(reason: Optional[FailureReason], detail: str | None) -> None:
        if reason in (FailureReason.PERMISSION_DENIED, FailureReason.PUSH_UNSUPPORTED):
            logger.debug("Push subscription inactive", reason=reason.value)
        else:
            logger.warning("Push subscription check failed", reason=reason and reason.value, detail=detail)
