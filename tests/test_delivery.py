"""Tests for the Web Push delivery channel."""
from __future__ import annotations

import json
from unittest.mock import MagicMock, patch

import pytest
import requests
from pywebpush import WebPushException

from daybook.config import settings
from daybook.services.delivery import WebPushChannel, build_reminder_payload
from daybook.utils.exceptions import ConfigurationError, GoneDeliveryError, TransientDeliveryError

SUBSCRIPTION = {"endpoint": "https://push.example.com/abc", "keys": {"p256dh": "k", "auth": "a"}}


def push_error(status_code: int) -> WebPushException:
    return WebPushException("Push failed", response=MagicMock(status_code=status_code))


@pytest.fixture()
def channel() -> WebPushChannel:
    return WebPushChannel(private_key="private", subject="mailto:ops@example.com", timeout=3.0, ttl=60)


def test_send_passes_payload_and_limits(channel):
    payload = build_reminder_payload()
    with patch("daybook.services.delivery.webpush") as webpush:
        channel.send(SUBSCRIPTION, payload)

    kwargs = webpush.call_args.kwargs
    assert kwargs["subscription_info"] == SUBSCRIPTION
    assert json.loads(kwargs["data"]) == payload
    assert kwargs["vapid_private_key"] == "private"
    assert kwargs["vapid_claims"] == {"sub": "mailto:ops@example.com"}
    assert kwargs["timeout"] == 3.0
    assert kwargs["ttl"] == 60


@pytest.mark.parametrize("status_code", [400, 404, 410])
def test_gone_statuses_are_permanent(channel, status_code):
    with patch("daybook.services.delivery.webpush", side_effect=push_error(status_code)):
        with pytest.raises(GoneDeliveryError) as excinfo:
            channel.send(SUBSCRIPTION, {})
    assert excinfo.value.status_code == status_code


@pytest.mark.parametrize("status_code", [413, 429, 500, 503])
def test_other_statuses_are_transient(channel, status_code):
    with patch("daybook.services.delivery.webpush", side_effect=push_error(status_code)):
        with pytest.raises(TransientDeliveryError):
            channel.send(SUBSCRIPTION, {})


def test_missing_response_is_transient(channel):
    with patch("daybook.services.delivery.webpush", side_effect=WebPushException("no response")):
        with pytest.raises(TransientDeliveryError):
            channel.send(SUBSCRIPTION, {})


@pytest.mark.parametrize("error", [requests.Timeout("slow"), requests.ConnectionError("refused")])
def test_network_errors_are_transient(channel, error):
    with patch("daybook.services.delivery.webpush", side_effect=error):
        with pytest.raises(TransientDeliveryError):
            channel.send(SUBSCRIPTION, {})


def test_from_settings_requires_vapid_keys(monkeypatch):
    monkeypatch.setattr(settings, "VAPID_PRIVATE_KEY", None)
    with pytest.raises(ConfigurationError):
        WebPushChannel.from_settings()


def test_from_settings_uses_configured_limits(monkeypatch):
    monkeypatch.setattr(settings, "PUSH_SEND_TIMEOUT_SECONDS", 4.5)
    channel = WebPushChannel.from_settings()
    assert channel.timeout == 4.5
    assert channel.private_key == settings.VAPID_PRIVATE_KEY


def test_payload_overrides():
    assert build_reminder_payload(title="Hi", url="/insights") == {
        "title": "Hi",
        "body": settings.REMINDER_BODY,
        "data": {"url": "/insights"},
    }
