"""Admin console endpoints for push subscriptions."""
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from loguru import logger
from sqlalchemy.orm import Session

from daybook.api import deps
from daybook.db.models.user import User
from daybook.schemas import AdminPushSubscriptionRead, SubscriberProfile
from daybook.services.subscriptions import SubscriptionNotFoundError, SubscriptionStore

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/push-subscriptions", response_model=list[AdminPushSubscriptionRead])
def list_push_subscriptions(
    db: Session = Depends(deps.get_db),
    _: User = Depends(deps.get_current_admin),
) -> list[AdminPushSubscriptionRead]:
    """Return the 500 most recent subscriptions with their owner's preferences."""

    return [
        AdminPushSubscriptionRead(
            id=sub.id,
            user_id=sub.user_id,
            endpoint=sub.endpoint,
            user_agent=sub.user_agent,
            created_at=sub.created_at,
            updated_at=sub.updated_at,
            profile=SubscriberProfile.model_validate(sub.user),
        )
        for sub in SubscriptionStore(db).list_recent()
    ]


@router.delete("/push-subscriptions/{subscription_id}")
def delete_push_subscription(
    subscription_id: uuid.UUID,
    db: Session = Depends(deps.get_db),
    admin: User = Depends(deps.get_current_admin),
) -> dict[str, bool]:
    try:
        SubscriptionStore(db).delete(subscription_id)
    except SubscriptionNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    logger.info(
        "Admin deleted push subscription",
        admin_id=str(admin.id),
        subscription_id=str(subscription_id),
    )
    return {"success": True}
