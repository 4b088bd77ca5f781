"""Subscription store: durable push endpoints keyed by user and endpoint."""
from __future__ import annotations

import uuid
from typing import Sequence

from loguru import logger
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from daybook.db.models.push_subscription import PushSubscription
from daybook.utils.exceptions import SubscriptionError


ADMIN_LIST_LIMIT = 500


class SubscriptionNotFoundError(ValueError):
    """Raised when a subscription lookup fails."""


class SubscriptionStore:
    """Encapsulates persistence of Web Push subscriptions."""

    def __init__(self, db: Session):
        self.db = db

    def get_by_endpoint(self, user_id: uuid.UUID, endpoint: str) -> PushSubscription | None:
        stmt = select(PushSubscription).where(
            PushSubscription.user_id == user_id,
            PushSubscription.endpoint == endpoint,
        )
        return self.db.scalars(stmt).first()

    def upsert(
        self,
        user_id: uuid.UUID,
        endpoint: str,
        p256dh: str,
        auth: str,
        user_agent: str | None = None,
    ) -> PushSubscription:
        """Create or refresh the row for ``(user_id, endpoint)``.

        Renewal rotates the keys and user agent and keeps ``created_at``.
        """

        if not endpoint or not p256dh or not auth:
            raise SubscriptionError("Subscription endpoint and keys are required")

        existing = self.get_by_endpoint(user_id, endpoint)
        if existing is None:
            subscription = PushSubscription(
                user_id=user_id,
                endpoint=endpoint,
                p256dh=p256dh,
                auth=auth,
                user_agent=user_agent,
            )
            self.db.add(subscription)
            try:
                self.db.commit()
            except IntegrityError:
                # A concurrent save for the same device won the insert.
                self.db.rollback()
                existing = self.get_by_endpoint(user_id, endpoint)
                if existing is None:
                    raise
            else:
                self.db.refresh(subscription)
                logger.info("Push subscription created", user_id=str(user_id))
                return subscription

        existing.p256dh = p256dh
        existing.auth = auth
        existing.user_agent = user_agent
        self.db.commit()
        self.db.refresh(existing)
        logger.info("Push subscription refreshed", user_id=str(user_id))
        return existing

    def list_for_user(self, user_id: uuid.UUID) -> Sequence[PushSubscription]:
        stmt = (
            select(PushSubscription)
            .where(PushSubscription.user_id == user_id)
            .order_by(PushSubscription.created_at)
        )
        return self.db.scalars(stmt).all()

    def list_for_users(self, user_ids: Sequence[uuid.UUID]) -> Sequence[PushSubscription]:
        if not user_ids:
            return []
        stmt = select(PushSubscription).where(PushSubscription.user_id.in_(list(user_ids)))
        return self.db.scalars(stmt).all()

    def list_recent(self, limit: int = ADMIN_LIST_LIMIT) -> Sequence[PushSubscription]:
        """Return subscriptions newest first with their owners loaded."""

        stmt = (
            select(PushSubscription)
            .options(joinedload(PushSubscription.user))
            .order_by(PushSubscription.created_at.desc())
            .limit(limit)
        )
        return self.db.scalars(stmt).all()

    def delete(self, subscription_id: uuid.UUID) -> None:
        """Delete a subscription by id or raise ``SubscriptionNotFoundError``."""

        subscription = self.db.get(PushSubscription, subscription_id)
        if subscription is None:
            raise SubscriptionNotFoundError("Subscription not found")
        self.db.delete(subscription)
        self.db.commit()

    def delete_for_user(self, user_id: uuid.UUID, endpoint: str) -> None:
        subscription = self.get_by_endpoint(user_id, endpoint)
        if subscription is None:
            raise SubscriptionNotFoundError("Subscription not found")
        self.db.delete(subscription)
        self.db.commit()

    def prune(self, subscription_id: uuid.UUID) -> bool:
        """Remove a dead subscription; returns False if it was already gone."""

        subscription = self.db.get(PushSubscription, subscription_id)
        if subscription is None:
            return False
        self.db.delete(subscription)
        self.db.commit()
        return True
