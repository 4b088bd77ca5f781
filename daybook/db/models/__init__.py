"""Database models package."""
from daybook.db.models.user import User
from daybook.db.models.push_subscription import PushSubscription
from daybook.db.models.reminder_log import ReminderLog

__all__ = [
    "User",
    "PushSubscription",
    "ReminderLog",
]
