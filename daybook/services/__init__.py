"""Service layer package."""

from daybook.services.auth import AuthService
from daybook.services.delivery import DeliveryChannel, WebPushChannel
from daybook.services.reminder_dispatcher import ReminderDispatcher
from daybook.services.subscriptions import SubscriptionStore
from daybook.services.users import UserService

__all__ = [
    "AuthService",
    "DeliveryChannel",
    "ReminderDispatcher",
    "SubscriptionStore",
    "UserService",
    "WebPushChannel",
]
