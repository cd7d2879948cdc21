"""
Attendance confirmation for a scanned volunteer QR code.

The procedure runs in two phases. Phase one validates the caller and the
participation record, then commits the guarded ``present = True`` transition.
Phase two writes the in-app notification and attempts push delivery; it
logs failures and never raises.
"""
import logging
from typing import Any, Optional

from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from escala.core.errors import (
    Unauthorized, InvalidPayload, PermissionDenied, NotScheduled, AlreadyConfirmed,
)
from escala.models.event import Event
from escala.models.notification import NotificationType
from escala.models.user import User
from escala.models.volunteer import Volunteer
from escala.schemas.attendance import AttendanceMark
from escala.services import participation
from escala.services.notifications import notify_user
from escala.services.participation import Triple
from escala.services.push import PushSender, deliver_to_user

logger = logging.getLogger(__name__)

CONFIRMED_MESSAGE = "Presença marcada com sucesso."
PUSH_TITLE = "Presença Confirmada!"
PUSH_URL = "/#/dashboard"


def authorize_scanner(caller: Optional[User]) -> int:
    """Return the department the caller may confirm attendance for."""
    if caller is None:
        raise Unauthorized()
    if caller.department_id is None:
        raise Unauthorized("Não foi possível encontrar um departamento para o líder autenticado.")
    return caller.department_id


def parse_qr_payload(payload: Any) -> AttendanceMark:
    try:
        return AttendanceMark.model_validate(payload)
    except ValidationError as e:
        raise InvalidPayload() from e


async def confirm_scanned_payload(
    db: AsyncSession,
    caller: Optional[User],
    payload: Any,
    push_sender: Optional[PushSender] = None,
) -> AttendanceMark:
    """Confirm attendance from a raw scanned body.

    The caller is checked before the payload, so an anonymous scan reports
    Unauthorized even when its body is also malformed.
    """
    authorize_scanner(caller)
    data = parse_qr_payload(payload)
    await confirm_attendance(
        db,
        caller,
        volunteer_id=data.volunteerId,
        event_id=data.eventId,
        department_id=data.departmentId,
        push_sender=push_sender,
    )
    return data


async def confirm_attendance(
    db: AsyncSession,
    caller: Optional[User],
    volunteer_id: int,
    event_id: int,
    department_id: int,
    push_sender: Optional[PushSender] = None,
) -> None:
    """Mark a scheduled volunteer present.

    Raises Unauthorized, PermissionDenied, NotScheduled or AlreadyConfirmed
    before any write. A record previously marked absent may still be
    confirmed (late arrival).
    """
    if authorize_scanner(caller) != department_id:
        raise PermissionDenied()

    triple = Triple(event_id=event_id, volunteer_id=volunteer_id, department_id=department_id)
    record = await participation.find_by_triple(db, triple)
    if record is None:
        raise NotScheduled()
    if record.present is True:
        raise AlreadyConfirmed()

    changed = await participation.set_present(db, triple, True, expected_prior=(None, False))
    if not changed:
        # Another scan won the race between our read and the update
        raise AlreadyConfirmed()
    await db.commit()
    logger.info(
        f"Attendance confirmed: event={event_id} volunteer={volunteer_id} "
        f"department={department_id} by user={caller.id}"
    )

    await _notify_volunteer(db, volunteer_id, event_id, push_sender)


async def _notify_volunteer(
    db: AsyncSession,
    volunteer_id: int,
    event_id: int,
    push_sender: Optional[PushSender],
) -> None:
    try:
        result = await db.execute(
            select(Volunteer.user_id).where(Volunteer.id == volunteer_id)
        )
        user_id = result.scalar_one_or_none()
        if user_id is None:
            logger.error(f"Could not fetch volunteer user_id for notification (volunteer={volunteer_id}).")
            return

        result = await db.execute(select(Event.name).where(Event.id == event_id))
        event_name = result.scalar_one_or_none()
        if not event_name:
            logger.error(f"Could not fetch event name for notification (event={event_id}).")
            return

        message = f'Sua presença foi confirmada no evento: "{event_name}".'
        await notify_user(db, user_id, message, NotificationType.INFO, related_event_id=event_id)
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Failed to record notification after marking attendance: {e}")
        return

    payload = {"title": PUSH_TITLE, "body": message, "url": PUSH_URL}
    await deliver_to_user(db, push_sender, user_id, payload)
