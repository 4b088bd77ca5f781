"""Pytest fixtures for API and service tests."""

import os
import threading
import uuid
from collections.abc import Generator
from datetime import datetime, time, timezone
from typing import Any, Mapping

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("CRON_SECRET", "test-cron-secret")
os.environ.setdefault(
    "VAPID_PUBLIC_KEY",
    "BEl62iUYgUivxIkv69yViEuiBIa-Ib9-SkvMeAtA3LFgDzkrxZJjSgSnfckjBJuBkr3qBUYIHBQFLXYp5Nksh8U",
)
os.environ.setdefault("VAPID_PRIVATE_KEY", "test-private-key")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from daybook.api import deps
from daybook.core.security import create_access_token
from daybook.db.base import Base
from daybook.db.models import PushSubscription, ReminderLog, User
from daybook.main import create_app


class FakeChannel:
    """Delivery channel that records sends and raises scripted errors per endpoint."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, dict]] = []
        self.failures: dict[str, Exception] = {}
        self._lock = threading.Lock()

    def send(self, subscription_info: Mapping[str, Any], payload: Mapping[str, Any]) -> None:
        endpoint = subscription_info["endpoint"]
        error = self.failures.get(endpoint)
        if error is not None:
            raise error
        with self._lock:
            self.sent.append((endpoint, dict(payload)))

    @property
    def endpoints(self) -> list[str]:
        return sorted(endpoint for endpoint, _ in self.sent)


class Clock:
    def __init__(self) -> None:
        # 08:02 in America/New_York (EST, UTC-5)
        self.now = datetime(2024, 1, 15, 13, 2, tzinfo=timezone.utc)


@pytest.fixture(scope="session")
def db_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db_session(db_engine) -> Generator[Session, None, None]:
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.rollback()
        db.query(ReminderLog).delete()
        db.query(PushSubscription).delete()
        db.query(User).delete()
        db.commit()
        db.close()


@pytest.fixture()
def fake_channel() -> FakeChannel:
    return FakeChannel()


@pytest.fixture()
def clock() -> Clock:
    return Clock()


@pytest.fixture()
def client(
    db_session: Session, fake_channel: FakeChannel, clock: Clock
) -> Generator[TestClient, None, None]:
    app = create_app()

    def override_get_db() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[deps.get_db] = override_get_db
    app.dependency_overrides[deps.get_delivery_channel] = lambda: fake_channel
    app.dependency_overrides[deps.get_current_time] = lambda: clock.now
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def make_user(db_session: Session):
    def factory(
        email: str | None = None,
        *,
        timezone_name: str = "UTC",
        reminder_time: time = time(9, 0),
        push_opt_in: bool = True,
        is_admin: bool = False,
    ) -> User:
        user = User(
            email=email or f"user-{uuid.uuid4().hex[:8]}@example.com",
            hashed_password="not-a-real-hash",
            timezone=timezone_name,
            reminder_time=reminder_time,
            push_opt_in=push_opt_in,
            is_admin=is_admin,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return factory


@pytest.fixture()
def make_subscription(db_session: Session):
    def factory(user: User, endpoint: str | None = None, **fields: Any) -> PushSubscription:
        subscription = PushSubscription(
            user_id=user.id,
            endpoint=endpoint or f"https://push.example.com/{uuid.uuid4().hex}",
            p256dh=fields.pop("p256dh", "p256dh-key"),
            auth=fields.pop("auth", "auth-secret"),
            **fields,
        )
        db_session.add(subscription)
        db_session.commit()
        db_session.refresh(subscription)
        return subscription

    return factory


@pytest.fixture()
def headers_for():
    def build(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(str(user.id))}"}

    return build
