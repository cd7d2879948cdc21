"""Tests for the active-event resolver and its endpoint."""
import pytest
from datetime import datetime, date, time, timezone
from httpx import AsyncClient

from escala.models.event import EventStatus
from escala.services.active_event import resolve_active_event

from tests.conftest import auth_headers_for, make_event, schedule


def _utc(hour: int, minute: int = 0, second: int = 0) -> datetime:
    return datetime(2026, 3, 15, hour, minute, second, tzinfo=timezone.utc)


@pytest.mark.asyncio
@pytest.mark.parametrize("now,expected", [
    (_utc(12, 0, 0), True),     # 09:00:00 local
    (_utc(12, 59, 59), True),   # 09:59:59 local
    (_utc(13, 0, 0), False),    # 10:00:00 local
    (_utc(15, 0, 0), False),
    (_utc(11, 59, 59), False),
])
async def test_resolver_window_boundaries(db_session, tz, live_event, now, expected):
    event = await resolve_active_event(db_session, now, tz)
    if expected:
        assert event is not None and event.id == live_event.id
    else:
        assert event is None


@pytest.mark.asyncio
async def test_resolver_ignores_unconfirmed_and_other_days(db_session, tz):
    await make_event(db_session, "Pending", status=EventStatus.PENDING)
    await make_event(db_session, "Cancelled", status=EventStatus.CANCELLED)
    await make_event(db_session, "Yesterday", day=date(2026, 3, 14))

    assert await resolve_active_event(db_session, _utc(12, 30), tz) is None


@pytest.mark.asyncio
async def test_resolver_uses_local_date_not_utc(db_session, tz):
    # 22:00-23:30 local on the 15th is already the 16th in UTC
    late = await make_event(db_session, "Vigília", start=time(22, 0), end=time(23, 30))

    event = await resolve_active_event(db_session, datetime(2026, 3, 16, 1, 15, tzinfo=timezone.utc), tz)
    assert event is not None and event.id == late.id


@pytest.mark.asyncio
async def test_resolver_overlap_prefers_earliest_start(db_session, tz):
    later = await make_event(db_session, "Ensaio", start=time(9, 15), end=time(11, 0))
    earlier = await make_event(db_session, "Culto", start=time(9, 0), end=time(10, 0))

    event = await resolve_active_event(db_session, _utc(12, 30), tz)
    assert event.id == earlier.id
    assert event.id != later.id


@pytest.mark.asyncio
async def test_active_event_endpoint_returns_enriched_event(
    client: AsyncClient, volunteer_user, leader_user, department, live_event, scheduled, volunteer
):
    resp = await client.get("/api/v1/events/active", headers=auth_headers_for(volunteer_user))
    assert resp.status_code == 200, resp.text
    active = resp.json()["activeEvent"]

    assert active["id"] == live_event.id
    assert active["status"] == "Confirmado"
    assert active["start_time"] == "09:00:00"
    assert active["event_departments"] == [{
        "department_id": department.id,
        "departments": {"id": department.id, "name": "Louvor", "leader": "Leader One"},
    }]
    assert active["event_volunteers"] == [{
        "volunteer_id": volunteer.id,
        "department_id": department.id,
        "present": None,
        "volunteers": {"id": volunteer.id, "name": "Maria Souza", "initials": "MS"},
    }]


@pytest.mark.asyncio
async def test_active_event_endpoint_null_outside_windows(client: AsyncClient, clock, volunteer_user, live_event):
    clock.now = _utc(18, 0)
    resp = await client.post("/api/v1/events/active", headers=auth_headers_for(volunteer_user))
    assert resp.status_code == 200
    assert resp.json() == {"activeEvent": None}


@pytest.mark.asyncio
async def test_active_event_department_without_leader(client: AsyncClient, db_session, volunteer_user, other_department):
    await make_event(db_session, "Culto", departments=(other_department,))

    resp = await client.get("/api/v1/events/active", headers=auth_headers_for(volunteer_user))
    dept = resp.json()["activeEvent"]["event_departments"][0]["departments"]
    assert dept["leader"] == "N/A"


@pytest.mark.asyncio
async def test_active_event_requires_auth(client: AsyncClient, live_event):
    resp = await client.get("/api/v1/events/active")
    assert resp.status_code == 401
