"""
Active-event resolver.

Finds the confirmed event whose local window contains "now". Pure read.
"""
from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from escala.models.department import Department, DepartmentLeader
from escala.models.event import Event, EventStatus, EventDepartment, EventVolunteer
from escala.services.event_window import local_date_and_time


async def resolve_active_event(
    db: AsyncSession,
    now: datetime,
    tz: ZoneInfo,
) -> Optional[Event]:
    """Return the live confirmed event at ``now``, or None.

    Overlapping confirmed events resolve to the earliest start time, then the
    lowest id. The result has its departments (with leaders) and volunteer
    participation rows loaded.
    """
    today, current_time = local_date_and_time(now, tz)

    query = (
        select(Event)
        .options(
            selectinload(Event.event_departments)
            .selectinload(EventDepartment.department)
            .selectinload(Department.leaders)
            .selectinload(DepartmentLeader.user),
            selectinload(Event.event_volunteers)
            .selectinload(EventVolunteer.volunteer),
        )
        .where(
            Event.date == today,
            Event.start_time <= current_time,
            Event.end_time > current_time,
            Event.status == EventStatus.CONFIRMED,
        )
        .order_by(Event.start_time.asc(), Event.id.asc())
        .limit(1)
        .execution_options(populate_existing=True)
    )
    result = await db.execute(query)
    return result.scalars().first()


def department_leader_names(department: Department) -> str:
    """Comma-joined names of a department's leaders, or "N/A"."""
    names = [dl.user.name for dl in department.leaders if dl.user is not None and dl.user.name]
    return ", ".join(names) or "N/A"
