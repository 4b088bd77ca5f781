"""Tests for the browser-facing push subscription endpoints."""
from __future__ import annotations

from unittest.mock import patch

from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from daybook.config import settings
from daybook.db.models import PushSubscription

SUBSCRIPTION = {
    "endpoint": "https://fcm.googleapis.com/fcm/send/abc",
    "p256dh": "BNcRdreALRFXTkOOUHK1EtK2wtaz5Ry4YfYCA_0QTpQtUbVlUls0VJXg7A8u-Ts1XbjhazAkj7I99e8QcYP7DkM",
    "auth": "tBHItJI5svbpez7KI4CCXg",
    "ua": "Mozilla/5.0 (X11; Linux x86_64) Firefox/121.0",
}


def test_save_requires_authentication(client: TestClient) -> None:
    response = client.post("/api/v1/push", json=SUBSCRIPTION)
    assert response.status_code == 401


def test_save_twice_upserts(client: TestClient, db_session, make_user, headers_for) -> None:
    user = make_user()
    headers = headers_for(user)

    first = client.post("/api/v1/push", json=SUBSCRIPTION, headers=headers)
    rotated = {**SUBSCRIPTION, "p256dh": "rotated-key", "auth": "rotated-auth"}
    second = client.post("/api/v1/push", json=rotated, headers=headers)

    assert first.status_code == 200
    assert second.json() == {"success": True}
    rows = db_session.query(PushSubscription).filter_by(user_id=user.id).all()
    assert len(rows) == 1
    assert (rows[0].p256dh, rows[0].auth) == ("rotated-key", "rotated-auth")
    assert rows[0].user_agent == SUBSCRIPTION["ua"]


def test_save_truncates_long_user_agent(client: TestClient, db_session, make_user, headers_for) -> None:
    user = make_user()
    payload = {**SUBSCRIPTION, "ua": "x" * 600}

    response = client.post("/api/v1/push", json=payload, headers=headers_for(user))

    assert response.status_code == 200
    row = db_session.query(PushSubscription).filter_by(user_id=user.id).one()
    assert row.user_agent == "x" * 512


def test_save_rejects_missing_keys(client: TestClient, make_user, headers_for) -> None:
    payload = {"endpoint": SUBSCRIPTION["endpoint"], "p256dh": SUBSCRIPTION["p256dh"]}

    response = client.post("/api/v1/push", json=payload, headers=headers_for(make_user()))

    assert response.status_code == 422
    assert response.json()["message"] == "Validation failed"


def test_list_and_delete_own_subscription(client: TestClient, make_user, headers_for) -> None:
    headers = headers_for(make_user())
    client.post("/api/v1/push", json=SUBSCRIPTION, headers=headers)

    listed = client.get("/api/v1/push", headers=headers)
    assert [row["endpoint"] for row in listed.json()] == [SUBSCRIPTION["endpoint"]]

    deleted = client.request(
        "DELETE", "/api/v1/push", json={"endpoint": SUBSCRIPTION["endpoint"]}, headers=headers
    )
    assert deleted.status_code == 200
    assert client.get("/api/v1/push", headers=headers).json() == []


def test_cannot_delete_another_users_subscription(client: TestClient, make_user, make_subscription, headers_for) -> None:
    owner = make_user()
    subscription = make_subscription(owner)

    response = client.request(
        "DELETE",
        "/api/v1/push",
        json={"endpoint": subscription.endpoint},
        headers=headers_for(make_user()),
    )

    assert response.status_code == 404


def test_vapid_public_key(client: TestClient, monkeypatch) -> None:
    response = client.get("/api/v1/push/vapid-public-key")
    assert response.status_code == 200
    assert response.json() == {"publicKey": settings.VAPID_PUBLIC_KEY}

    monkeypatch.setattr(settings, "VAPID_PUBLIC_KEY", None)
    assert client.get("/api/v1/push/vapid-public-key").status_code == 503


def test_send_test_notification_to_own_devices(client: TestClient, fake_channel, make_user, make_subscription, headers_for) -> None:
    user = make_user(push_opt_in=False)
    subscription = make_subscription(user)
    make_subscription(make_user())

    response = client.post("/api/v1/push/test", headers=headers_for(user))

    assert response.status_code == 200
    assert response.json()["sent"] == 1
    assert fake_channel.endpoints == [subscription.endpoint]
    assert fake_channel.sent[0][1]["title"] == "Success!"


def test_send_test_notification_database_failure(client: TestClient, fake_channel, make_user, headers_for) -> None:
    user = make_user()
    failure = OperationalError("SELECT", {}, Exception("database is locked"))

    with patch("daybook.services.subscriptions.SubscriptionStore.list_for_user", side_effect=failure):
        response = client.post("/api/v1/push/test", headers=headers_for(user))

    assert response.status_code == 500
    assert response.json()["detail"] == "Database operation failed. Please try again later."
    assert fake_channel.sent == []


def test_service_worker_is_served_from_root(client: TestClient) -> None:
    response = client.get("/sw.js")

    assert response.status_code == 200
    assert response.headers["service-worker-allowed"] == "/"
    assert "notificationclick" in response.text
