"""Scheduler-facing endpoint that triggers a reminder dispatch run."""
from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from daybook.api import deps
from daybook.schemas import DispatchSummary
from daybook.services.delivery import DeliveryChannel
from daybook.services.reminder_dispatcher import ReminderDispatcher
from daybook.utils.exceptions import DispatchError, handle_dispatch_error

router = APIRouter(prefix="/cron", tags=["cron"])


@router.post(
    "/reminders",
    response_model=DispatchSummary,
    dependencies=[Depends(deps.require_cron_secret)],
)
def dispatch_reminders(
    db: Session = Depends(deps.get_db),
    channel: DeliveryChannel = Depends(deps.get_delivery_channel),
    now: datetime = Depends(deps.get_current_time),
) -> DispatchSummary:
    """Send reminders to users whose local reminder time is due now.

    Individual send failures are reported in the summary; only a failure to
    read preferences or subscriptions turns into a 500.
    """

    try:
        return ReminderDispatcher(db, channel).dispatch(now)
    except DispatchError as exc:
        raise handle_dispatch_error(exc) from exc
