"""Reminder dispatcher: selects due users and fans out push messages."""
from __future__ import annotations

import uuid
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping, Sequence

from loguru import logger
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from daybook.config import settings
from daybook.db.models.push_subscription import PushSubscription
from daybook.db.models.reminder_log import ReminderLog
from daybook.db.models.user import User
from daybook.schemas.push import DispatchSummary
from daybook.services.delivery import DeliveryChannel, build_reminder_payload
from daybook.services.reminder_schedule import InvalidTimezoneError, is_due, window_start
from daybook.services.subscriptions import SubscriptionStore
from daybook.utils.exceptions import DeliveryError, DispatchError, GoneDeliveryError

SENT = "sent"
FAILED = "failed"
GONE = "gone"


@dataclass(frozen=True)
class DeliveryJob:
    """Detached copy of a subscription, safe to hand to a worker thread."""

    subscription_id: uuid.UUID
    user_id: uuid.UUID
    subscription_info: Mapping[str, Any]

    @classmethod
    def from_subscription(cls, subscription: PushSubscription) -> "DeliveryJob":
        return cls(
            subscription_id=subscription.id,
            user_id=subscription.user_id,
            subscription_info=subscription.subscription_info(),
        )


@dataclass(frozen=True)
class DeliveryOutcome:
    job: DeliveryJob
    status: str
    error: str | None = None


class ReminderDispatcher:
    """Runs one reminder pass: at most one send attempt per due subscription."""

    def __init__(
        self,
        db: Session,
        channel: DeliveryChannel,
        window_minutes: int | None = None,
        concurrency: int | None = None,
        payload: Mapping[str, Any] | None = None,
    ):
        self.db = db
        self.channel = channel
        self.store = SubscriptionStore(db)
        self.window_minutes = window_minutes or settings.REMINDER_WINDOW_MINUTES
        self.concurrency = concurrency or settings.PUSH_SEND_CONCURRENCY
        self.payload = dict(payload or build_reminder_payload())

    def select_due_users(self, now: datetime) -> list[User]:
        """Return opted-in users whose local reminder time falls in this window."""

        try:
            users = self.db.scalars(
                select(User)
                .where(User.push_opt_in.is_(True))
                .where(User.is_active.is_(True))
            ).all()
        except SQLAlchemyError as exc:
            raise DispatchError("Failed to read reminder preferences") from exc

        due: list[User] = []
        for user in users:
            try:
                if is_due(now, user.timezone, user.reminder_time, self.window_minutes):
                    due.append(user)
            except InvalidTimezoneError:
                logger.warning(
                    "Skipping user with invalid timezone",
                    user_id=str(user.id),
                    timezone=user.timezone,
                )
        return due

    def dispatch(self, now: datetime | None = None) -> DispatchSummary:
        """Send reminders to every subscription of every user due in the window of ``now``."""

        now = window_start(now or datetime.now(timezone.utc), self.window_minutes)
        due_users = self.select_due_users(now)
        if not due_users:
            logger.info("No reminders due", at=now.isoformat())
            return DispatchSummary()

        try:
            subscriptions = self.store.list_for_users([user.id for user in due_users])
        except SQLAlchemyError as exc:
            raise DispatchError("Failed to read push subscriptions") from exc

        summary, outcomes = self._deliver_and_reconcile(subscriptions)
        summary.due_users = len(due_users)
        self._record_log(due_users, outcomes)

        logger.info(
            "Reminder dispatch finished",
            at=now.isoformat(),
            due_users=summary.due_users,
            attempted=summary.attempted,
            sent=summary.sent,
            failed=summary.failed,
            pruned=summary.pruned,
        )
        return summary

    def dispatch_to_user(self, user: User) -> DispatchSummary:
        """Send the payload to all of one user's devices regardless of due time."""

        summary, _ = self._deliver_and_reconcile(self.store.list_for_user(user.id))
        summary.due_users = 1
        return summary

    def _deliver_and_reconcile(
        self, subscriptions: Sequence[PushSubscription]
    ) -> tuple[DispatchSummary, list[DeliveryOutcome]]:
        jobs = [DeliveryJob.from_subscription(sub) for sub in subscriptions]
        outcomes = self._deliver_all(jobs)

        summary = DispatchSummary(attempted=len(outcomes))
        for outcome in outcomes:
            if outcome.status == SENT:
                summary.sent += 1
            elif outcome.status == GONE and self._prune(outcome.job):
                summary.pruned += 1
            else:
                summary.failed += 1
        return summary, outcomes

    def _deliver_all(self, jobs: Sequence[DeliveryJob]) -> list[DeliveryOutcome]:
        if not jobs:
            return []
        workers = min(self.concurrency, len(jobs))
        if workers == 1:
            return [self._send_one(job) for job in jobs]
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="push-send") as pool:
            return list(pool.map(self._send_one, jobs))

    def _send_one(self, job: DeliveryJob) -> DeliveryOutcome:
        try:
            self.channel.send(job.subscription_info, self.payload)
        except GoneDeliveryError as exc:
            logger.info(
                "Push endpoint gone",
                subscription_id=str(job.subscription_id),
                status_code=exc.status_code,
            )
            return DeliveryOutcome(job, GONE, exc.message)
        except DeliveryError as exc:
            logger.warning(
                "Push delivery failed",
                subscription_id=str(job.subscription_id),
                status_code=exc.status_code,
                error=exc.message,
            )
            return DeliveryOutcome(job, FAILED, exc.message)
        except Exception as exc:  # one bad send must not abort the batch
            logger.exception(
                "Unexpected push delivery error", subscription_id=str(job.subscription_id)
            )
            return DeliveryOutcome(job, FAILED, str(exc))
        return DeliveryOutcome(job, SENT)

    def _prune(self, job: DeliveryJob) -> bool:
        try:
            removed = self.store.prune(job.subscription_id)
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Failed to prune subscription", subscription_id=str(job.subscription_id))
            return False
        if removed:
            logger.info(
                "Pruned dead push subscription",
                subscription_id=str(job.subscription_id),
                user_id=str(job.user_id),
            )
        # Already deleted elsewhere still counts as pruned.
        return True

    def _record_log(self, users: Iterable[User], outcomes: Sequence[DeliveryOutcome]) -> None:
        by_user: dict[uuid.UUID, list[DeliveryOutcome]] = {}
        for outcome in outcomes:
            by_user.setdefault(outcome.job.user_id, []).append(outcome)

        for user in users:
            user_outcomes = by_user.get(user.id, [])
            if not user_outcomes:
                status = "no_subscriptions"
            elif any(outcome.status == SENT for outcome in user_outcomes):
                status = SENT
            else:
                status = FAILED
            errors = [outcome.error for outcome in user_outcomes if outcome.error]
            self.db.add(
                ReminderLog(
                    user_id=user.id,
                    status=status,
                    subscriptions_attempted=len(user_outcomes),
                    subscriptions_pruned=sum(1 for o in user_outcomes if o.status == GONE),
                    detail="; ".join(errors) or None,
                )
            )
        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Failed to write reminder log")
