"""Tests for in-app notification and push subscription endpoints."""
import pytest
from httpx import AsyncClient
from sqlalchemy import select

from escala.models.notification import Notification, NotificationType, PushSubscription
from escala.services.notifications import notify_user, notify_users, get_event_leader_user_ids

from tests.conftest import auth_headers_for


SUBSCRIPTION = {
    "endpoint": "https://push.example/sub/1",
    "expirationTime": None,
    "keys": {"p256dh": "BNc-key", "auth": "auth-secret"},
}


@pytest.mark.asyncio
async def test_list_notifications_only_own(client: AsyncClient, db_session, volunteer_user, admin_user):
    await notify_user(db_session, volunteer_user.id, "Primeira")
    await notify_user(db_session, volunteer_user.id, "Segunda", NotificationType.WARNING)
    await notify_user(db_session, admin_user.id, "Outro usuário")

    resp = await client.get("/api/v1/notifications", headers=auth_headers_for(volunteer_user))
    assert resp.status_code == 200
    data = resp.json()
    assert data["totalItems"] == 2
    assert {n["message"] for n in data["items"]} == {"Primeira", "Segunda"}
    assert all(n["is_read"] is False for n in data["items"])


@pytest.mark.asyncio
async def test_mark_one_and_all_read(client: AsyncClient, db_session, volunteer_user):
    first = await notify_user(db_session, volunteer_user.id, "Primeira")
    await notify_user(db_session, volunteer_user.id, "Segunda")
    headers = auth_headers_for(volunteer_user)

    resp = await client.patch(f"/api/v1/notifications/{first.id}/read", headers=headers)
    assert resp.status_code == 200
    assert resp.json()["is_read"] is True

    resp = await client.get("/api/v1/notifications?unread=true", headers=headers)
    assert resp.json()["totalItems"] == 1

    resp = await client.post("/api/v1/notifications/read-all", headers=headers)
    assert resp.status_code == 200

    resp = await client.get("/api/v1/notifications?unread=true", headers=headers)
    assert resp.json()["totalItems"] == 0


@pytest.mark.asyncio
async def test_mark_read_other_users_notification_not_found(client: AsyncClient, db_session, volunteer_user, admin_user):
    note = await notify_user(db_session, admin_user.id, "Privada")
    resp = await client.patch(
        f"/api/v1/notifications/{note.id}/read", headers=auth_headers_for(volunteer_user)
    )
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_delete_single_and_all(client: AsyncClient, db_session, volunteer_user):
    first = await notify_user(db_session, volunteer_user.id, "Primeira")
    await notify_user(db_session, volunteer_user.id, "Segunda")
    await notify_user(db_session, volunteer_user.id, "Terceira")
    headers = auth_headers_for(volunteer_user)

    resp = await client.post("/api/v1/notifications/delete", headers=headers, json={"notificationId": first.id})
    assert resp.status_code == 200
    remaining = (await db_session.execute(select(Notification.message))).scalars().all()
    assert sorted(remaining) == ["Segunda", "Terceira"]

    resp = await client.post("/api/v1/notifications/delete", headers=headers, json={"deleteAll": True})
    assert resp.status_code == 200
    remaining = (await db_session.execute(select(Notification))).scalars().all()
    assert remaining == []


@pytest.mark.asyncio
async def test_delete_requires_target(client: AsyncClient, volunteer_user):
    resp = await client.post(
        "/api/v1/notifications/delete", headers=auth_headers_for(volunteer_user), json={}
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_notify_users_deduplicates(db_session, admin_user, leader_user):
    count = await notify_users(db_session, [admin_user.id, leader_user.id, admin_user.id], "Resumo")
    assert count == 2


@pytest.mark.asyncio
async def test_event_leaders_follow_event_departments(db_session, live_event, leader_user, other_leader):
    assert await get_event_leader_user_ids(db_session, live_event.id) == {leader_user.id}


@pytest.mark.asyncio
async def test_push_subscription_upsert(client: AsyncClient, db_session, volunteer_user):
    headers = auth_headers_for(volunteer_user)

    resp = await client.post("/api/v1/push-subscriptions", headers=headers, json={"subscription": SUBSCRIPTION})
    assert resp.status_code == 200
    assert resp.json() == {"success": True}

    rotated = {**SUBSCRIPTION, "keys": {"p256dh": "new-key", "auth": "new-auth"}}
    resp = await client.post("/api/v1/push-subscriptions", headers=headers, json={"subscription": rotated})
    assert resp.status_code == 200

    subs = (await db_session.execute(select(PushSubscription))).scalars().all()
    assert len(subs) == 1
    await db_session.refresh(subs[0])
    assert subs[0].subscription_data["keys"]["p256dh"] == "new-key"


@pytest.mark.asyncio
async def test_push_subscription_requires_auth(client: AsyncClient):
    resp = await client.post("/api/v1/push-subscriptions", json={"subscription": SUBSCRIPTION})
    assert resp.status_code == 401
