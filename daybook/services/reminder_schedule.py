"""Due-time rules for daily reminders."""
from __future__ import annotations

from datetime import datetime, time, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

MINUTES_PER_DAY = 24 * 60


class InvalidTimezoneError(ValueError):
    """Raised when a stored timezone name cannot be resolved."""


def resolve_timezone(name: str | None) -> ZoneInfo:
    """Return the zone for ``name``, treating an empty value as UTC."""

    try:
        return ZoneInfo(name or "UTC")
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise InvalidTimezoneError(f"Unknown timezone: {name}") from exc


def local_time(now_utc: datetime, timezone_name: str | None) -> datetime:
    """Convert an instant to the wall clock of ``timezone_name``.

    Naive instants are taken to be UTC.
    """

    if now_utc.tzinfo is None:
        now_utc = now_utc.replace(tzinfo=timezone.utc)
    return now_utc.astimezone(resolve_timezone(timezone_name))


def minutes_since_reminder(local_now: datetime, reminder_time: time) -> int:
    """Minutes elapsed since the most recent occurrence of ``reminder_time``."""

    local_minutes = local_now.hour * 60 + local_now.minute
    reminder_minutes = reminder_time.hour * 60 + reminder_time.minute
    return (local_minutes - reminder_minutes) % MINUTES_PER_DAY


def is_due(
    now_utc: datetime,
    timezone_name: str | None,
    reminder_time: time | None,
    window_minutes: int,
) -> bool:
    """Return True when the local reminder fell within the last ``window_minutes``.

    The window is half-open: a reminder at 08:00 with a 5 minute window is due
    for local times 08:00 through 08:04 and not at 08:05. A dispatcher that
    runs once per window therefore matches each reminder exactly once. The
    difference wraps at midnight, so 23:58 is due at 00:01 with that window.

    Matching is on the local wall clock. A reminder inside a spring-forward
    gap is skipped that day, and one inside a repeated fall-back hour
    matches twice.
    """

    if reminder_time is None:
        return False
    if window_minutes < 1:
        raise ValueError("window_minutes must be positive")
    elapsed = minutes_since_reminder(local_time(now_utc, timezone_name), reminder_time)
    return elapsed < window_minutes


def window_start(now_utc: datetime, window_minutes: int) -> datetime:
    """Floor an instant to the start of its dispatch window.

    Windows are aligned to the hour, so a run that starts late still matches
    the reminders of the window it was scheduled for.
    """

    if window_minutes < 1:
        raise ValueError("window_minutes must be positive")
    if now_utc.tzinfo is None:
        now_utc = now_utc.replace(tzinfo=timezone.utc)
    minute = now_utc.minute - now_utc.minute % window_minutes
    return now_utc.replace(minute=minute, second=0, microsecond=0)
