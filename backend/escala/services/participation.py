"""
Participation store: queries and guarded updates over ``event_volunteers``.

Every write is a single conditional UPDATE keyed by the record's identity
plus the prior ``present`` value it expects, so concurrent callers cannot
overwrite each other's transition.
"""
from typing import NamedTuple, Optional, Sequence
from sqlalchemy import select, update, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from escala.models.event import EventVolunteer


class Triple(NamedTuple):
    """Identity of a participation record."""
    event_id: int
    volunteer_id: int
    department_id: int


def _triple_clause(triple: Triple):
    return (
        EventVolunteer.event_id == triple.event_id,
        EventVolunteer.volunteer_id == triple.volunteer_id,
        EventVolunteer.department_id == triple.department_id,
    )


def _present_in(values: Sequence[Optional[bool]]):
    """Build a WHERE clause matching ``present`` against a set of tri-state values."""
    clauses = []
    if None in values:
        clauses.append(EventVolunteer.present.is_(None))
    if True in values:
        clauses.append(EventVolunteer.present.is_(True))
    if False in values:
        clauses.append(EventVolunteer.present.is_(False))
    if not clauses:
        raise ValueError("expected_prior must name at least one value")
    return or_(*clauses)


async def find_by_triple(db: AsyncSession, triple: Triple) -> Optional[EventVolunteer]:
    result = await db.execute(
        select(EventVolunteer)
        .where(*_triple_clause(triple))
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def find_unset_event_ids(db: AsyncSession) -> list[int]:
    """Distinct event ids that still have at least one unconfirmed record.

    There is no date filter here; future events are included and filtered
    out by the caller.
    """
    result = await db.execute(
        select(EventVolunteer.event_id)
        .where(EventVolunteer.present.is_(None))
        .distinct()
    )
    return list(result.scalars().all())


async def set_present(
    db: AsyncSession,
    triple: Triple,
    value: bool,
    expected_prior: Sequence[Optional[bool]],
) -> bool:
    """Compare-and-set ``present`` for one record.

    Returns True when the row matched ``expected_prior`` and was updated,
    False when no row matched (missing record or the value already moved).
    """
    stmt = (
        update(EventVolunteer)
        .where(*_triple_clause(triple), _present_in(expected_prior))
        .values(present=value)
        .execution_options(synchronize_session=False)
    )
    result = await db.execute(stmt)
    return result.rowcount == 1


async def mark_absent(db: AsyncSession, event_ids: Sequence[int]) -> list[Triple]:
    """Batch-transition every unset record of ``event_ids`` to absent.

    Returns the identities of the rows that changed.
    """
    if not event_ids:
        return []
    stmt = (
        update(EventVolunteer)
        .where(
            EventVolunteer.event_id.in_(list(event_ids)),
            EventVolunteer.present.is_(None),
        )
        .values(present=False)
        .returning(
            EventVolunteer.event_id,
            EventVolunteer.volunteer_id,
            EventVolunteer.department_id,
        )
        .execution_options(synchronize_session=False)
    )
    result = await db.execute(stmt)
    return [Triple(*row) for row in result.all()]


async def list_for_event(
    db: AsyncSession,
    event_id: int,
    department_id: Optional[int] = None,
) -> list[EventVolunteer]:
    query = (
        select(EventVolunteer)
        .options(selectinload(EventVolunteer.volunteer))
        .where(EventVolunteer.event_id == event_id)
        .execution_options(populate_existing=True)
    )
    if department_id is not None:
        query = query.where(EventVolunteer.department_id == department_id)
    query = query.order_by(EventVolunteer.department_id, EventVolunteer.volunteer_id)
    result = await db.execute(query)
    return list(result.scalars().all())
