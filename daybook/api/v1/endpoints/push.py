"""Endpoints the browser uses to register and manage push subscriptions."""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from daybook.api import deps
from daybook.config import settings
from daybook.db.models.user import User
from daybook.schemas import (
    DispatchSummary,
    PushSubscriptionRead,
    PushSubscriptionSave,
    PushUnsubscribe,
    VapidPublicKey,
)
from daybook.services.delivery import DeliveryChannel, build_reminder_payload
from daybook.services.reminder_dispatcher import ReminderDispatcher
from daybook.services.subscriptions import SubscriptionNotFoundError, SubscriptionStore
from daybook.utils.exceptions import (
    ConfigurationError,
    SubscriptionError,
    handle_configuration_error,
    handle_database_error,
    handle_subscription_error,
)

router = APIRouter(prefix="/push", tags=["push"])


@router.get("/vapid-public-key", response_model=VapidPublicKey)
def get_vapid_public_key() -> VapidPublicKey:
    if not settings.VAPID_PUBLIC_KEY:
        raise handle_configuration_error(ConfigurationError("Missing VAPID public key"))
    return VapidPublicKey(publicKey=settings.VAPID_PUBLIC_KEY)


@router.post("")
def save_subscription(
    payload: PushSubscriptionSave,
    db: Session = Depends(deps.get_db),
    current_user: User = Depends(deps.get_current_user),
) -> dict[str, bool]:
    """Upsert the caller's subscription for this device."""

    store = SubscriptionStore(db)
    try:
        store.upsert(
            current_user.id,
            endpoint=payload.endpoint,
            p256dh=payload.p256dh,
            auth=payload.auth,
            user_agent=payload.ua,
        )
    except SubscriptionError as exc:
        raise handle_subscription_error(exc) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise handle_database_error(exc) from exc
    return {"success": True}


@router.get("", response_model=list[PushSubscriptionRead])
def list_subscriptions(
    db: Session = Depends(deps.get_db),
    current_user: User = Depends(deps.get_current_user),
):
    return SubscriptionStore(db).list_for_user(current_user.id)


@router.delete("")
def delete_subscription(
    payload: PushUnsubscribe,
    db: Session = Depends(deps.get_db),
    current_user: User = Depends(deps.get_current_user),
) -> dict[str, bool]:
    """Forget one of the caller's devices."""

    try:
        SubscriptionStore(db).delete_for_user(current_user.id, payload.endpoint)
    except SubscriptionNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return {"success": True}


@router.post("/test", response_model=DispatchSummary)
def send_test_notification(
    db: Session = Depends(deps.get_db),
    current_user: User = Depends(deps.get_current_user),
    channel: DeliveryChannel = Depends(deps.get_delivery_channel),
) -> DispatchSummary:
    """Push a test reminder to every device of the caller."""

    dispatcher = ReminderDispatcher(
        db,
        channel,
        payload=build_reminder_payload(
            title="Success!", body="This is a test notification from your journal."
        ),
    )
    try:
        return dispatcher.dispatch_to_user(current_user)
    except SQLAlchemyError as exc:
        db.rollback()
        raise handle_database_error(exc) from exc
