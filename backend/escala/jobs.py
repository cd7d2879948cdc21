"""
Scheduled jobs.

Usage:
    python -m escala.jobs sweep [--now ISO8601]
    python -m escala.jobs remind [--now ISO8601]

Arguments:
    --now: Instant to run at, with offset (default: current time)
"""
import argparse
import asyncio
import sys
from datetime import datetime, timezone
from typing import Optional

from escala.core.config import settings
from escala.core.logging import setup_logging
from escala.db.base import session_scope, dispose_engine
from escala.services.absence_sweeper import sweep_absences, SweepReport
from escala.services.event_window import get_event_timezone
from escala.services.push import get_push_sender
from escala.services.reminders import send_event_reminders, ReminderReport


def parse_instant(value: str) -> datetime:
    instant = datetime.fromisoformat(value)
    if instant.tzinfo is None:
        raise argparse.ArgumentTypeError("--now must include a UTC offset")
    return instant


async def run_sweep(now: Optional[datetime] = None) -> SweepReport:
    """Run one absence sweep with a session of its own."""
    tz = get_event_timezone(settings.EVENT_TIMEZONE)
    async with session_scope() as session:
        return await sweep_absences(session, now or datetime.now(timezone.utc), tz)


async def run_reminders(now: Optional[datetime] = None) -> ReminderReport:
    """Run one reminder pass with a session of its own."""
    tz = get_event_timezone(settings.EVENT_TIMEZONE)
    async with session_scope() as session:
        return await send_event_reminders(
            session, now or datetime.now(timezone.utc), tz, get_push_sender()
        )


JOBS = {
    "sweep": run_sweep,
    "remind": run_reminders,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Escala scheduled jobs")
    subparsers = parser.add_subparsers(dest="command", required=True)
    sweep = subparsers.add_parser("sweep", help="Mark unconfirmed volunteers of ended events absent")
    sweep.add_argument("--now", type=parse_instant, default=None, help="Instant to sweep at (ISO 8601 with offset)")
    remind = subparsers.add_parser("remind", help="Send 24h and 2h reminders for upcoming events")
    remind.add_argument("--now", type=parse_instant, default=None, help="Instant to run at (ISO 8601 with offset)")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    setup_logging()
    job = JOBS[args.command]

    async def _run():
        try:
            return await job(args.now)
        finally:
            await dispose_engine()

    report = asyncio.run(_run())
    print(report.message)
    return 0


if __name__ == "__main__":
    sys.exit(main())
