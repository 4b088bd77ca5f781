"""Tests for Celery background tasks."""
from __future__ import annotations

from datetime import time
from unittest.mock import patch

import pytest
from sqlalchemy.orm import sessionmaker

from daybook.db.models import ReminderLog
from daybook.tasks.reminders import dispatch_due_reminders
from daybook.utils.exceptions import ConfigurationError


@pytest.fixture()
def task_session_factory(db_session):
    factory = sessionmaker(autocommit=False, autoflush=False, bind=db_session.bind)
    sessions: list = []

    def create_session():
        session = factory()
        sessions.append(session)
        return session

    try:
        yield create_session
    finally:
        for session in sessions:
            session.close()


def test_dispatch_due_reminders(db_session, task_session_factory, fake_channel, make_user, make_subscription):
    user = make_user(timezone_name="Europe/Amsterdam", reminder_time=time(21, 0))
    subscription = make_subscription(user)

    with patch("daybook.tasks.reminders.SessionLocal", side_effect=task_session_factory), patch(
        "daybook.tasks.reminders.WebPushChannel.from_settings", return_value=fake_channel
    ):
        result = dispatch_due_reminders.run("2024-01-15T20:03:00+00:00")

    assert result == {"attempted": 1, "sent": 1, "failed": 0, "pruned": 0, "due_users": 1}
    assert fake_channel.endpoints == [subscription.endpoint]
    assert db_session.query(ReminderLog).filter_by(user_id=user.id).count() == 1


def test_naive_instant_is_utc(task_session_factory, fake_channel, make_user, make_subscription):
    make_subscription(make_user(timezone_name="UTC", reminder_time=time(6, 0)))

    with patch("daybook.tasks.reminders.SessionLocal", side_effect=task_session_factory), patch(
        "daybook.tasks.reminders.WebPushChannel.from_settings", return_value=fake_channel
    ):
        result = dispatch_due_reminders.run("2024-01-15T06:01:00")

    assert result["sent"] == 1


def test_dispatch_skipped_without_vapid_keys(task_session_factory):
    with patch("daybook.tasks.reminders.SessionLocal", side_effect=task_session_factory) as session_local, patch(
        "daybook.tasks.reminders.WebPushChannel.from_settings",
        side_effect=ConfigurationError("VAPID keys are not configured"),
    ):
        result = dispatch_due_reminders.run()

    assert result["attempted"] == 0
    session_local.assert_not_called()


def test_beat_schedule_runs_every_window():
    from daybook.celery_app import celery_app

    entry = celery_app.conf.beat_schedule["dispatch-due-reminders"]
    assert entry["task"] == dispatch_due_reminders.name
    assert entry["schedule"].minute == set(range(0, 60, 5))
