"""Celery application instance and configuration."""
from __future__ import annotations

from celery import Celery
from celery.schedules import crontab

from daybook.config import settings


def _resolve_broker_url() -> str:
    if settings.CELERY_BROKER_URL is not None:
        return str(settings.CELERY_BROKER_URL)
    return str(settings.REDIS_URL)


def _resolve_result_backend() -> str:
    if settings.CELERY_RESULT_BACKEND is not None:
        return str(settings.CELERY_RESULT_BACKEND)
    return str(settings.REDIS_URL)


celery_app = Celery(
    "daybook",
    broker=_resolve_broker_url(),
    backend=_resolve_result_backend(),
    include=["daybook.tasks.reminders"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    # A run must finish well inside its own window so runs never overlap.
    task_time_limit=settings.REMINDER_WINDOW_MINUTES * 60,
    task_soft_time_limit=settings.REMINDER_WINDOW_MINUTES * 60 - 30,
    worker_prefetch_multiplier=1,
    worker_max_tasks_per_child=1000,
)

celery_app.conf.beat_schedule = {
    "dispatch-due-reminders": {
        "task": "daybook.tasks.reminders.dispatch_due_reminders",
        # Aligned to the window so each reminder falls in exactly one run.
        "schedule": crontab(minute=f"*/{settings.REMINDER_WINDOW_MINUTES}"),
        "options": {"expires": settings.REMINDER_WINDOW_MINUTES * 60},
    },
}

__all__ = ["celery_app"]
