"""
Event time-window helpers.

Events store their date and start/end times as local wall-clock values.
Every comparison against "now" goes through these helpers with the
deployment's zone passed in explicitly.
"""
from datetime import datetime, date, time
from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from escala.models.event import Event


@lru_cache()
def get_event_timezone(name: str) -> ZoneInfo:
    """Return the ZoneInfo for an IANA zone name, raising ValueError if unknown."""
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ValueError(f"Unknown time zone: {name}") from e


def local_now(now: datetime, tz: ZoneInfo) -> datetime:
    """Convert an aware instant to local wall-clock time in ``tz``."""
    if now.tzinfo is None:
        raise ValueError("now must be timezone-aware")
    return now.astimezone(tz)


def local_date_and_time(now: datetime, tz: ZoneInfo) -> tuple[date, time]:
    """Split ``now`` into the local date and local time-of-day (whole seconds)."""
    local = local_now(now, tz)
    return local.date(), local.time().replace(microsecond=0, tzinfo=None)


def event_start_at(event: Event, tz: ZoneInfo) -> datetime:
    return datetime.combine(event.date, event.start_time, tzinfo=tz)


def event_end_at(event: Event, tz: ZoneInfo) -> datetime:
    return datetime.combine(event.date, event.end_time, tzinfo=tz)


def has_ended(event: Event, now: datetime, tz: ZoneInfo) -> bool:
    """True once ``now`` is strictly past the event's local end time."""
    return event_end_at(event, tz) < local_now(now, tz)
