"""User database model."""
from datetime import time
import uuid

from sqlalchemy import Boolean, Column, DateTime, String, Time
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from daybook.db.base import Base


DEFAULT_TIMEZONE = "UTC"
DEFAULT_REMINDER_TIME = time(9, 0)


class User(Base):
    """Represents an application user and their reminder preferences."""

    __tablename__ = "users"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(String(255), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)
    full_name = Column(String(255))

    # Notification preferences
    timezone = Column(String(64), nullable=False, default=DEFAULT_TIMEZONE)
    reminder_time = Column(Time, nullable=False, default=DEFAULT_REMINDER_TIME)
    push_opt_in = Column(Boolean, nullable=False, default=False, index=True)

    # Metadata
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    is_active = Column(Boolean, default=True)
    is_admin = Column(Boolean, default=False)

    push_subscriptions = relationship(
        "PushSubscription",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def set_reminder(self, reminder_time: time | None, timezone: str | None = None) -> None:
        """Update the local reminder time and optionally the timezone."""

        if reminder_time is not None:
            self.reminder_time = reminder_time.replace(second=0, microsecond=0)
        if timezone is not None:
            self.timezone = timezone
