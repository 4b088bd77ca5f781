"""Delivery channel over the Web Push protocol."""
from __future__ import annotations

import json
from typing import Any, Mapping, Protocol

import requests
from loguru import logger
from pywebpush import WebPushException, webpush

from daybook.config import settings
from daybook.utils.exceptions import (
    ConfigurationError,
    GoneDeliveryError,
    TransientDeliveryError,
)


# 404/410 mean the subscription expired or was revoked. 400 is what push
# services return for endpoints they can no longer parse or address.
PERMANENT_FAILURE_STATUSES = frozenset({400, 404, 410})


def build_reminder_payload(
    title: str | None = None, body: str | None = None, url: str | None = None
) -> dict[str, Any]:
    """Return the ``{title, body, data: {url}}`` message the service worker renders."""

    return {
        "title": title or settings.REMINDER_TITLE,
        "body": body or settings.REMINDER_BODY,
        "data": {"url": url or settings.REMINDER_URL},
    }


class DeliveryChannel(Protocol):
    def send(self, subscription_info: Mapping[str, Any], payload: Mapping[str, Any]) -> None:
        """Deliver ``payload`` or raise a ``DeliveryError`` subclass."""


class WebPushChannel:
    """Encrypts and transmits payloads with pywebpush, one attempt per call."""

    def __init__(
        self,
        private_key: str,
        subject: str,
        timeout: float = 10.0,
        ttl: int = 0,
    ):
        self.private_key = private_key
        self.subject = subject
        self.timeout = timeout
        self.ttl = ttl

    @classmethod
    def from_settings(cls) -> "WebPushChannel":
        """Build a channel from configuration, failing fast without VAPID keys."""

        if not settings.VAPID_PUBLIC_KEY or not settings.VAPID_PRIVATE_KEY:
            raise ConfigurationError("VAPID keys are not configured")
        return cls(
            private_key=settings.VAPID_PRIVATE_KEY,
            subject=settings.VAPID_SUBJECT,
            timeout=settings.PUSH_SEND_TIMEOUT_SECONDS,
            ttl=settings.PUSH_TTL_SECONDS,
        )

    def send(self, subscription_info: Mapping[str, Any], payload: Mapping[str, Any]) -> None:
        endpoint = subscription_info.get("endpoint")
        try:
            webpush(
                subscription_info=dict(subscription_info),
                data=json.dumps(payload),
                vapid_private_key=self.private_key,
                # pywebpush fills in aud/exp on the dict it is given
                vapid_claims={"sub": self.subject},
                ttl=self.ttl,
                timeout=self.timeout,
            )
        except WebPushException as exc:
            status_code = exc.response.status_code if exc.response is not None else None
            if status_code in PERMANENT_FAILURE_STATUSES:
                raise GoneDeliveryError(
                    f"Push endpoint rejected permanently ({status_code})",
                    status_code=status_code,
                    details={"endpoint": endpoint},
                ) from exc
            raise TransientDeliveryError(
                f"Push service error: {exc}",
                status_code=status_code,
                details={"endpoint": endpoint},
            ) from exc
        except requests.RequestException as exc:
            raise TransientDeliveryError(
                f"Push transport error: {exc}", details={"endpoint": endpoint}
            ) from exc
        logger.debug("Push delivered", endpoint=endpoint)
