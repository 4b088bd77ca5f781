"""Tests for push and notification-click handling."""
import json

import pytest

from daybook.client.service_worker import (
    DEFAULT_BODY,
    DEFAULT_TITLE,
    DEFAULT_URL,
    REMINDER_TAG,
    handle_notification_click,
    handle_push,
    parse_push_payload,
)


class RecordingDisplay:
    def __init__(self, error: Exception | None = None):
        self.shown = []
        self.error = error

    async def show_notification(self, title, options):
        if self.error is not None:
            raise self.error
        self.shown.append((title, options))


class FakeWindow:
    def __init__(self):
        self.navigated = []
        self.focused = False

    async def navigate(self, url):
        self.navigated.append(url)

    async def focus(self):
        self.focused = True


class FakeClients:
    def __init__(self, windows=()):
        self.windows = list(windows)
        self.opened = []

    async def match_all(self):
        return self.windows

    async def open_window(self, url):
        self.opened.append(url)


def test_parse_json_payload():
    raw = json.dumps({"title": "Hi", "body": "Log it", "data": {"url": "/journal/today"}}).encode()
    payload = parse_push_payload(raw)

    assert payload.title == "Hi"
    assert payload.body == "Log it"
    assert payload.url == "/journal/today"


@pytest.mark.parametrize("raw", ["Remember to journal", b"Remember to journal", '"Remember to journal"'])
def test_parse_text_payload_uses_default_title(raw):
    payload = parse_push_payload(raw)

    assert payload.title == DEFAULT_TITLE
    assert payload.body.strip('"') == "Remember to journal"
    assert payload.url == DEFAULT_URL


def test_parse_partial_json_fills_defaults():
    payload = parse_push_payload('{"data": "not-a-dict"}')

    assert payload.title == DEFAULT_TITLE
    assert payload.body == DEFAULT_BODY
    assert payload.data == {}


def test_parse_no_data():
    assert parse_push_payload(None) is None


@pytest.mark.asyncio
async def test_handle_push_shows_tagged_notification():
    display = RecordingDisplay()
    payload = await handle_push(b'{"title": "T", "body": "B"}', display)

    assert payload.title == "T"
    title, options = display.shown[0]
    assert title == "T"
    assert options["body"] == "B"
    assert options["tag"] == REMINDER_TAG
    assert options["renotify"] is True


@pytest.mark.asyncio
async def test_handle_push_without_data_shows_nothing():
    display = RecordingDisplay()

    assert await handle_push(None, display) is None
    assert display.shown == []


@pytest.mark.asyncio
async def test_handle_push_swallows_display_errors():
    display = RecordingDisplay(error=RuntimeError("no permission"))

    assert await handle_push("hello", display) is None


@pytest.mark.asyncio
async def test_click_focuses_existing_window():
    window = FakeWindow()
    clients = FakeClients([window, FakeWindow()])

    url = await handle_notification_click({"url": "/journal/today"}, clients)

    assert url == "/journal/today"
    assert window.navigated == ["/journal/today"]
    assert window.focused is True
    assert clients.opened == []


@pytest.mark.asyncio
async def test_click_opens_window_when_none_open():
    clients = FakeClients()

    url = await handle_notification_click(None, clients)

    assert url == DEFAULT_URL
    assert clients.opened == [DEFAULT_URL]
