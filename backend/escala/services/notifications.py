"""
In-app notification writes.

Notifications are the second phase of every attendance transition: callers
commit the transition first and then write notifications here, so a failed
insert never touches the attendance state.
"""
import logging
from typing import Iterable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from escala.models.department import DepartmentLeader
from escala.models.event import EventDepartment, EventVolunteer
from escala.models.notification import Notification, NotificationType
from escala.models.user import User, UserRole
from escala.models.volunteer import Volunteer

logger = logging.getLogger(__name__)


async def notify_user(
    db: AsyncSession,
    user_id: int,
    message: str,
    type: NotificationType = NotificationType.INFO,
    related_event_id: Optional[int] = None,
) -> Notification:
    notification = Notification(
        user_id=user_id,
        message=message,
        type=type,
        related_event_id=related_event_id,
    )
    db.add(notification)
    await db.flush()
    return notification


async def notify_users(
    db: AsyncSession,
    user_ids: Iterable[int],
    message: str,
    type: NotificationType = NotificationType.INFO,
    related_event_id: Optional[int] = None,
) -> int:
    """Insert one notification per user. Returns the number inserted."""
    rows = [
        Notification(user_id=uid, message=message, type=type, related_event_id=related_event_id)
        for uid in sorted(set(user_ids))
    ]
    db.add_all(rows)
    await db.flush()
    return len(rows)


async def get_admin_user_ids(db: AsyncSession) -> set[int]:
    result = await db.execute(
        select(User.id).where(User.role == UserRole.ADMIN, User.is_active.is_(True))
    )
    return set(result.scalars().all())


async def get_scheduled_user_ids(db: AsyncSession, event_id: int) -> set[int]:
    """Users owning a volunteer profile scheduled for ``event_id`` in any department."""
    result = await db.execute(
        select(Volunteer.user_id)
        .join(EventVolunteer, EventVolunteer.volunteer_id == Volunteer.id)
        .where(EventVolunteer.event_id == event_id, Volunteer.user_id.is_not(None))
    )
    return set(result.scalars().all())


async def get_event_leader_user_ids(db: AsyncSession, event_id: int) -> set[int]:
    """Users leading any department attached to ``event_id``."""
    result = await db.execute(
        select(DepartmentLeader.user_id)
        .join(EventDepartment, EventDepartment.department_id == DepartmentLeader.department_id)
        .where(EventDepartment.event_id == event_id)
    )
    return set(result.scalars().all())
