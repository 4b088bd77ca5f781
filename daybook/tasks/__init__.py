"""Celery tasks package."""

from daybook.tasks import reminders

__all__ = ["reminders"]
