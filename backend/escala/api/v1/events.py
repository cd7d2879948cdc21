"""
Event endpoints.

- GET|POST /api/v1/events/active           - the confirmed event live right now
- GET      /api/v1/events/{id}/attendance  - participation rows for an event
- POST     /api/v1/events/{id}/volunteers  - schedule a volunteer in a department
- GET      /api/v1/events/{id}/qr          - the caller's QR payloads for an event
"""
import logging
from datetime import datetime
from zoneinfo import ZoneInfo

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from escala.db.base import get_db
from escala.core.deps import get_current_user, get_now, get_event_tz
from escala.models.department import Department
from escala.models.event import Event, EventDepartment, EventVolunteer
from escala.models.user import User, UserRole
from escala.models.volunteer import Volunteer
from escala.schemas.attendance import AttendanceMark, ParticipationResponse, ScheduleVolunteer
from escala.schemas.event import (
    ActiveEventResponse, EventWindowResponse, EventDepartmentInfo, DepartmentInfo,
    EventVolunteerInfo, VolunteerInfo,
)
from escala.services import participation
from escala.services.active_event import resolve_active_event, department_leader_names

logger = logging.getLogger(__name__)

router = APIRouter()


def event_to_window_response(event: Event) -> EventWindowResponse:
    """Convert an Event with loaded departments/volunteers to the dashboard shape."""
    departments = []
    for ed in event.event_departments:
        dept = ed.department
        departments.append(EventDepartmentInfo(
            department_id=ed.department_id,
            departments=DepartmentInfo(
                id=dept.id,
                name=dept.name,
                leader=department_leader_names(dept),
            ) if dept else None,
        ))

    volunteers = [
        EventVolunteerInfo(
            volunteer_id=ev.volunteer_id,
            department_id=ev.department_id,
            present=ev.present,
            volunteers=VolunteerInfo(
                id=ev.volunteer.id,
                name=ev.volunteer.name,
                initials=ev.volunteer.initials,
            ) if ev.volunteer else None,
        )
        for ev in event.event_volunteers
    ]

    return EventWindowResponse(
        id=event.id,
        name=event.name,
        date=event.date,
        start_time=event.start_time,
        end_time=event.end_time,
        status=event.status.value,
        local=event.local,
        observations=event.observations,
        color=event.color,
        event_departments=departments,
        event_volunteers=volunteers,
    )


async def get_event_or_404(db: AsyncSession, event_id: int) -> Event:
    result = await db.execute(select(Event).where(Event.id == event_id))
    event = result.scalar_one_or_none()
    if event is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
    return event


def ensure_department_scope(user: User, department_id: int) -> None:
    """Admins act on any department; leaders only on their own."""
    if user.is_admin:
        return
    if user.role == UserRole.LEADER and user.department_id == department_id:
        return
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="Not authorized for this department"
    )


@router.api_route("/active", methods=["GET", "POST"], response_model=ActiveEventResponse)
async def get_active_event(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    now: datetime = Depends(get_now),
    tz: ZoneInfo = Depends(get_event_tz),
):
    """Return the event live right now, or ``{"activeEvent": null}``."""
    event = await resolve_active_event(db, now, tz)
    if event is None:
        return ActiveEventResponse(activeEvent=None)
    return ActiveEventResponse(activeEvent=event_to_window_response(event))


@router.get("/{event_id}/attendance", response_model=list[ParticipationResponse])
async def list_event_attendance(
    event_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Participation rows for an event. Leaders only see their own department."""
    await get_event_or_404(db, event_id)

    if current_user.is_admin:
        department_id = None
    elif current_user.role == UserRole.LEADER and current_user.department_id is not None:
        department_id = current_user.department_id
    else:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Leader or admin role required")

    rows = await participation.list_for_event(db, event_id, department_id)
    return [
        ParticipationResponse(
            event_id=r.event_id,
            volunteer_id=r.volunteer_id,
            department_id=r.department_id,
            present=r.present,
            volunteer_name=r.volunteer.name if r.volunteer else None,
        )
        for r in rows
    ]


@router.post(
    "/{event_id}/volunteers",
    response_model=ParticipationResponse,
    status_code=status.HTTP_201_CREATED,
)
async def schedule_volunteer(
    event_id: int,
    data: ScheduleVolunteer,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Schedule a volunteer into a department for an event."""
    await get_event_or_404(db, event_id)
    ensure_department_scope(current_user, data.department_id)

    volunteer = (await db.execute(
        select(Volunteer).where(Volunteer.id == data.volunteer_id)
    )).scalar_one_or_none()
    if volunteer is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Volunteer not found")

    department = (await db.execute(
        select(Department).where(Department.id == data.department_id)
    )).scalar_one_or_none()
    if department is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Department not found")

    triple = participation.Triple(event_id, data.volunteer_id, data.department_id)
    if await participation.find_by_triple(db, triple) is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Volunteer is already scheduled for this event in this department"
        )

    link = (await db.execute(
        select(EventDepartment).where(
            EventDepartment.event_id == event_id,
            EventDepartment.department_id == data.department_id,
        )
    )).scalar_one_or_none()
    if link is None:
        db.add(EventDepartment(event_id=event_id, department_id=data.department_id))

    record = EventVolunteer(
        event_id=event_id,
        volunteer_id=data.volunteer_id,
        department_id=data.department_id,
        present=None,
    )
    db.add(record)
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Volunteer is already scheduled for this event in this department"
        )

    logger.info(f"Scheduled volunteer {data.volunteer_id} in department {data.department_id} for event {event_id}")
    return ParticipationResponse(
        event_id=record.event_id,
        volunteer_id=record.volunteer_id,
        department_id=record.department_id,
        present=record.present,
        volunteer_name=volunteer.name,
    )


@router.get("/{event_id}/qr", response_model=list[AttendanceMark])
async def get_qr_payloads(
    event_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """QR payloads for the caller's own participation records in an event."""
    await get_event_or_404(db, event_id)
    if current_user.volunteer is None:
        return []

    result = await db.execute(
        select(EventVolunteer)
        .where(
            EventVolunteer.event_id == event_id,
            EventVolunteer.volunteer_id == current_user.volunteer.id,
        )
        .order_by(EventVolunteer.department_id)
    )
    return [
        AttendanceMark(volunteerId=r.volunteer_id, eventId=r.event_id, departmentId=r.department_id)
        for r in result.scalars().all()
    ]
