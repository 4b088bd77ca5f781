"""Push and notification-click handling, mirroring ``static/sw.js``."""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Protocol, Sequence, Union

from loguru import logger

DEFAULT_TITLE = "Daily reminder"
DEFAULT_BODY = "Tap to log today's answers."
DEFAULT_URL = "/journal"
REMINDER_TAG = "daily-reminder"


@dataclass
class NotificationPayload:
    title: str = DEFAULT_TITLE
    body: str = DEFAULT_BODY
    data: Dict[str, Any] = field(default_factory=dict)

    @property
    def url(self) -> str:
        return self.data.get("url") or DEFAULT_URL


class NotificationDisplay(Protocol):
    async def show_notification(self, title: str, options: Dict[str, Any]) -> None:
        ...


class WindowClient(Protocol):
    async def navigate(self, url: str) -> None:
        ...

    async def focus(self) -> None:
        ...


class Clients(Protocol):
    async def match_all(self) -> Sequence[WindowClient]:
        ...

    async def open_window(self, url: str) -> None:
        ...


def parse_push_payload(raw: Union[bytes, str, None]) -> Optional[NotificationPayload]:
    """Parse ``{title, body, data}`` JSON, falling back to plain text for the body.

    Returns None for a push without data.
    """

    if raw is None:
        return None
    text = raw.decode("utf-8", errors="replace") if isinstance(raw, bytes) else raw
    payload = NotificationPayload()
    try:
        parsed = json.loads(text)
    except ValueError:
        parsed = None

    if not isinstance(parsed, dict):
        payload.body = text or DEFAULT_BODY
        return payload

    payload.title = str(parsed.get("title") or DEFAULT_TITLE)
    payload.body = str(parsed.get("body") or DEFAULT_BODY)
    data = parsed.get("data")
    payload.data = data if isinstance(data, dict) else {}
    return payload


async def handle_push(
    raw: Union[bytes, str, None], display: NotificationDisplay
) -> Optional[NotificationPayload]:
    """Show the reminder for a push event; never raises."""

    try:
        payload = parse_push_payload(raw)
        if payload is None:
            return None
        await display.show_notification(
            payload.title,
            {
                "body": payload.body,
                "data": payload.data,
                "tag": REMINDER_TAG,
                "renotify": True,
                "icon": "/favicon.ico",
            },
        )
        return payload
    except Exception:
        logger.exception("Failed to handle push event")
        return None


async def handle_notification_click(
    data: Optional[Dict[str, Any]], clients: Clients
) -> str:
    """Route a click to an open window if there is one, else open a new window.

    The caller closes the notification before invoking this. Returns the URL
    navigated to.
    """

    url = (data or {}).get("url") or DEFAULT_URL
    try:
        windows = await clients.match_all()
        if windows:
            window = windows[0]
            await window.navigate(url)
            await window.focus()
        else:
            await clients.open_window(url)
    except Exception:
        logger.exception("Failed to handle notification click", url=url)
    return url
