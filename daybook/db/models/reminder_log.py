"""Reminder delivery log model."""
import uuid

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func

from daybook.db.base import Base


class ReminderLog(Base):
    """One row per due user per dispatcher run."""

    __tablename__ = "reminder_log"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    sent_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    status = Column(String(32), nullable=False)  # sent | failed | no_subscriptions

    subscriptions_attempted = Column(Integer, default=0)
    subscriptions_pruned = Column(Integer, default=0)
    detail = Column(Text)
