"""
Automatic absence sweep, run on a schedule.

Finds confirmed events that have ended but still have unconfirmed volunteers,
marks those volunteers absent in one batched update, and sends one summary
notification per event to its department leaders and every admin.
"""
import logging
from collections import Counter
from dataclasses import dataclass
from datetime import datetime
from zoneinfo import ZoneInfo

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from escala.models.event import Event, EventStatus
from escala.models.notification import NotificationType
from escala.services import participation
from escala.services.event_window import has_ended
from escala.services.notifications import (
    notify_users, get_admin_user_ids, get_event_leader_user_ids,
)

logger = logging.getLogger(__name__)

UNKNOWN_EVENT_NAME = "Evento Desconhecido"


@dataclass
class SweepReport:
    processed_events: int = 0
    marked_absent: int = 0
    notifications_sent: int = 0

    @property
    def message(self) -> str:
        return (
            f"Processed {self.processed_events} event(s). "
            f"Marked {self.marked_absent} volunteer(s) as absent. "
            f"Sent {self.notifications_sent} summary notifications."
        )


def summary_message(event_name: str, count: int) -> str:
    return (
        f'A frequência para "{event_name}" foi processada. '
        f"{count} voluntário(s) receberam falta."
    )


async def find_ended_event_ids(db: AsyncSession, now: datetime, tz: ZoneInfo) -> list[int]:
    """Confirmed events with unset attendance whose local end time is before ``now``."""
    unset_event_ids = await participation.find_unset_event_ids(db)
    if not unset_event_ids:
        return []

    result = await db.execute(
        select(Event).where(
            Event.id.in_(unset_event_ids),
            Event.status == EventStatus.CONFIRMED,
        )
    )
    return sorted(e.id for e in result.scalars().all() if has_ended(e, now, tz))


async def sweep_absences(db: AsyncSession, now: datetime, tz: ZoneInfo) -> SweepReport:
    """Run one sweep. Safe to call repeatedly; already-marked rows are never reselected."""
    report = SweepReport()

    ended_event_ids = await find_ended_event_ids(db, now, tz)
    report.processed_events = len(ended_event_ids)
    if not ended_event_ids:
        logger.info("No ended events with unprocessed attendance found.")
        return report

    marked = await participation.mark_absent(db, ended_event_ids)
    await db.commit()
    report.marked_absent = len(marked)
    logger.info(f"Marked {len(marked)} volunteer(s) absent across {len(ended_event_ids)} event(s)")

    if marked:
        report.notifications_sent = await _notify_summaries(
            db, Counter(t.event_id for t in marked)
        )

    logger.info(report.message)
    return report


async def _notify_summaries(db: AsyncSession, absent_by_event: Counter) -> int:
    """Insert the per-event summaries. Failures are logged and leave the marks in place."""
    try:
        result = await db.execute(
            select(Event.id, Event.name).where(Event.id.in_(list(absent_by_event)))
        )
        names = {event_id: name for event_id, name in result.all()}
        admin_ids = await get_admin_user_ids(db)

        sent = 0
        for event_id, count in sorted(absent_by_event.items()):
            recipients = admin_ids | await get_event_leader_user_ids(db, event_id)
            if not recipients:
                continue
            message = summary_message(names.get(event_id, UNKNOWN_EVENT_NAME), count)
            sent += await notify_users(
                db, recipients, message, NotificationType.INFO, related_event_id=event_id
            )
        await db.commit()
        return sent
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Failed to insert attendance summary notifications: {e}")
        return 0
