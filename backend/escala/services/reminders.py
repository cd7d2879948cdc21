"""
Event reminders, run on a schedule.

Volunteers scheduled for an upcoming event get an in-app notification and a
push message when the event is about 24 hours away, and again when it is
about 2 hours away. Each reminder is claimed on the event row with a guarded
update before anything is sent, so repeated or overlapping runs deliver it
at most once.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Sequence
from zoneinfo import ZoneInfo

from sqlalchemy import select, update, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from escala.models.event import Event, EventStatus
from escala.models.notification import NotificationType
from escala.services.event_window import event_start_at, local_now
from escala.services.notifications import notify_users, get_scheduled_user_ids
from escala.services.push import PushSender, deliver_to_user

logger = logging.getLogger(__name__)

PUSH_TITLE = "Nova Notificação"
PUSH_URL = "/#/events"


@dataclass(frozen=True)
class ReminderWindow:
    """Send a reminder when the event starts between ``earliest`` and ``latest`` from now."""
    kind: str
    earliest: timedelta
    latest: timedelta
    flag: str
    template: str

    def message(self, event: Event) -> str:
        return self.template.format(name=event.name, time=event.start_time.strftime("%H:%M"))


REMINDER_24H = ReminderWindow(
    kind="24h",
    earliest=timedelta(hours=23),
    latest=timedelta(hours=25),
    flag="notification_24h_sent",
    template='Lembrete (24h): Você está escalado para "{name}" amanhã às {time}.',
)
REMINDER_2H = ReminderWindow(
    kind="2h",
    earliest=timedelta(hours=1),
    latest=timedelta(hours=3),
    flag="notification_2h_sent",
    template='Lembrete (2h): Você está escalado para "{name}" hoje às {time}.',
)
REMINDER_WINDOWS = (REMINDER_24H, REMINDER_2H)


@dataclass
class ReminderReport:
    reminded_events: int = 0
    notifications_sent: int = 0
    pushes_delivered: int = 0

    @property
    def message(self) -> str:
        return (
            f"Reminded {self.reminded_events} event(s). "
            f"Sent {self.notifications_sent} notification(s) and "
            f"{self.pushes_delivered} push message(s)."
        )


def due_reminder(
    event: Event,
    now: datetime,
    tz: ZoneInfo,
    windows: Sequence[ReminderWindow] = REMINDER_WINDOWS,
) -> Optional[ReminderWindow]:
    """The first unsent window whose range contains the time left until the event starts."""
    if event.status == EventStatus.CANCELLED:
        return None
    until_start = event_start_at(event, tz) - local_now(now, tz)
    for window in windows:
        if window.earliest <= until_start <= window.latest and not getattr(event, window.flag):
            return window
    return None


async def find_upcoming_events(db: AsyncSession, now: datetime, tz: ZoneInfo) -> list[Event]:
    """Non-cancelled events in the next two local days with a reminder still unsent."""
    today = local_now(now, tz).date()
    result = await db.execute(
        select(Event)
        .where(
            Event.date >= today,
            Event.date <= today + timedelta(days=2),
            Event.status != EventStatus.CANCELLED,
            or_(Event.notification_24h_sent.is_(False), Event.notification_2h_sent.is_(False)),
        )
        .order_by(Event.date, Event.start_time, Event.id)
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def claim_reminder(db: AsyncSession, event_id: int, window: ReminderWindow) -> bool:
    """Flip the window's flag from false to true. False means another run already claimed it."""
    flag = getattr(Event, window.flag)
    result = await db.execute(
        update(Event)
        .where(Event.id == event_id, flag.is_(False))
        .values({window.flag: True})
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def send_event_reminders(
    db: AsyncSession,
    now: datetime,
    tz: ZoneInfo,
    sender: Optional[PushSender],
    windows: Sequence[ReminderWindow] = REMINDER_WINDOWS,
) -> ReminderReport:
    """Run one reminder pass. Safe to call repeatedly."""
    report = ReminderReport()

    for event in await find_upcoming_events(db, now, tz):
        window = due_reminder(event, now, tz, windows)
        if window is None:
            continue
        if not await claim_reminder(db, event.id, window):
            continue
        await db.commit()
        report.reminded_events += 1
        logger.info(f"Sending {window.kind} reminder for event {event.id} ({event.name})")

        message = window.message(event)
        try:
            user_ids = await get_scheduled_user_ids(db, event.id)
            if not user_ids:
                continue
            report.notifications_sent += await notify_users(
                db, user_ids, message, NotificationType.INFO, related_event_id=event.id
            )
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(f"Failed to insert {window.kind} reminders for event {event.id}: {e}")
            continue

        payload = {"title": PUSH_TITLE, "body": message, "url": PUSH_URL}
        for user_id in sorted(user_ids):
            report.pushes_delivered += await deliver_to_user(db, sender, user_id, payload)

    logger.info(report.message)
    return report
