"""Celery tasks for daily journaling reminders."""
from __future__ import annotations

from datetime import datetime, timezone

from loguru import logger

from daybook.celery_app import celery_app
from daybook.db.session import SessionLocal
from daybook.services.delivery import WebPushChannel
from daybook.services.reminder_dispatcher import ReminderDispatcher
from daybook.utils.exceptions import ConfigurationError


@celery_app.task(name="daybook.tasks.reminders.dispatch_due_reminders")
def dispatch_due_reminders(at: str | None = None) -> dict[str, int]:
    """Send reminders to every user whose local reminder time is due.

    ``at`` is an optional ISO-8601 instant, used to replay a missed window.
    """

    now = datetime.fromisoformat(at) if at else datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    try:
        channel = WebPushChannel.from_settings()
    except ConfigurationError as exc:
        logger.warning("Skipping reminder dispatch", reason=exc.message)
        return {"attempted": 0, "sent": 0, "failed": 0, "pruned": 0, "due_users": 0}

    db = SessionLocal()
    try:
        summary = ReminderDispatcher(db, channel).dispatch(now)
        return summary.model_dump()
    finally:
        db.close()
