"""
Test configuration and fixtures for Escala backend tests.
"""
import os
import pytest
import pytest_asyncio
from dataclasses import dataclass, field
from datetime import datetime, date, time, timezone
from typing import Any, AsyncGenerator
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import NullPool

import escala.models  # noqa: F401
from escala.main import app
from escala.db.base import Base, get_db
from escala.core.deps import get_now
from escala.core.errors import DeliveryFailure, PushGone
from escala.core.security import get_password_hash, create_access_token
from escala.models.user import User, UserRole
from escala.models.department import Department, DepartmentLeader
from escala.models.volunteer import Volunteer
from escala.models.event import Event, EventStatus, EventDepartment, EventVolunteer
from escala.services.event_window import get_event_timezone
from escala.services.push import get_push_sender


# Use a file-based SQLite DB to avoid :memory: multiple-connection issues
# with SQLAlchemy + aiosqlite (each new connection would see an empty DB).
TEST_DATABASE_URL = "sqlite+aiosqlite:///./test.db"

# 09:30 local time in America/Sao_Paulo (UTC-03:00)
FIXED_NOW = datetime(2026, 3, 15, 12, 30, tzinfo=timezone.utc)
EVENT_DATE = date(2026, 3, 15)


@dataclass
class Clock:
    now: datetime = FIXED_NOW


@dataclass
class FakePushSender:
    """Records deliveries; endpoints in ``gone``/``failing`` raise like a real provider."""
    sent: list[tuple[dict[str, Any], dict[str, Any]]] = field(default_factory=list)
    gone: set[str] = field(default_factory=set)
    failing: set[str] = field(default_factory=set)

    async def send(self, subscription_info: dict[str, Any], payload: dict[str, Any]) -> None:
        endpoint = subscription_info["endpoint"]
        if endpoint in self.gone:
            raise PushGone(endpoint, "gone", 410)
        if endpoint in self.failing:
            raise DeliveryFailure(endpoint, "server error", 500)
        self.sent.append((subscription_info, payload))


@pytest_asyncio.fixture(scope="function")
async def db_engine():
    """Create a test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=NullPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()
    # Clean up test database file
    try:
        os.remove("./test.db")
    except OSError:
        pass


@pytest_asyncio.fixture(scope="function")
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async_session_maker = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False
    )
    async with async_session_maker() as session:
        yield session
        await session.rollback()


@pytest.fixture
def clock() -> Clock:
    return Clock()


@pytest.fixture
def tz():
    return get_event_timezone("America/Sao_Paulo")


@pytest.fixture
def push_sender() -> FakePushSender:
    return FakePushSender()


@pytest_asyncio.fixture(scope="function")
async def client(
    db_session: AsyncSession, clock: Clock, push_sender: FakePushSender
) -> AsyncGenerator[AsyncClient, None]:
    """Create a test client with database session, clock and push overrides."""
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_now] = lambda: clock.now
    app.dependency_overrides[get_push_sender] = lambda: push_sender
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


def auth_headers_for(user: User) -> dict:
    token = create_access_token(subject=user.id, additional_claims={"role": user.role.value})
    return {"Authorization": f"Bearer {token}"}


async def make_user(
    db: AsyncSession,
    email: str,
    name: str,
    role: UserRole,
    department_id: int | None = None,
) -> User:
    user = User(
        email=email,
        name=name,
        password_hash=get_password_hash("TestPass123"),
        role=role,
        department_id=department_id,
        is_active=True,
    )
    db.add(user)
    await db.flush()
    return user


@pytest_asyncio.fixture
async def department(db_session: AsyncSession) -> Department:
    dept = Department(name="Louvor", description="Worship team")
    db_session.add(dept)
    await db_session.flush()
    return dept


@pytest_asyncio.fixture
async def other_department(db_session: AsyncSession) -> Department:
    dept = Department(name="Recepção")
    db_session.add(dept)
    await db_session.flush()
    return dept


@pytest_asyncio.fixture
async def admin_user(db_session: AsyncSession) -> User:
    return await make_user(db_session, "admin@example.com", "Admin User", UserRole.ADMIN)


@pytest_asyncio.fixture
async def leader_user(db_session: AsyncSession, department: Department) -> User:
    leader = await make_user(
        db_session, "leader@example.com", "Leader One", UserRole.LEADER, department.id
    )
    db_session.add(DepartmentLeader(department_id=department.id, user_id=leader.id))
    await db_session.flush()
    return leader


@pytest_asyncio.fixture
async def other_leader(db_session: AsyncSession, other_department: Department) -> User:
    leader = await make_user(
        db_session, "other.leader@example.com", "Leader Two", UserRole.LEADER, other_department.id
    )
    db_session.add(DepartmentLeader(department_id=other_department.id, user_id=leader.id))
    await db_session.flush()
    return leader


@pytest_asyncio.fixture
async def volunteer_user(db_session: AsyncSession) -> User:
    return await make_user(db_session, "volunteer@example.com", "Maria Souza", UserRole.VOLUNTEER)


@pytest_asyncio.fixture
async def volunteer(db_session: AsyncSession, volunteer_user: User) -> Volunteer:
    vol = Volunteer(name="Maria Souza", initials="MS", user_id=volunteer_user.id)
    db_session.add(vol)
    await db_session.flush()
    return vol


async def make_event(
    db: AsyncSession,
    name: str,
    day: date = EVENT_DATE,
    start: time = time(9, 0),
    end: time = time(10, 0),
    status: EventStatus = EventStatus.CONFIRMED,
    departments: tuple[Department, ...] = (),
) -> Event:
    event = Event(name=name, date=day, start_time=start, end_time=end, status=status)
    db.add(event)
    await db.flush()
    for dept in departments:
        db.add(EventDepartment(event_id=event.id, department_id=dept.id))
    await db.flush()
    return event


async def schedule(
    db: AsyncSession,
    event: Event,
    volunteer: Volunteer,
    department: Department,
    present: bool | None = None,
) -> EventVolunteer:
    record = EventVolunteer(
        event_id=event.id,
        volunteer_id=volunteer.id,
        department_id=department.id,
        present=present,
    )
    db.add(record)
    await db.flush()
    return record


@pytest_asyncio.fixture
async def live_event(db_session: AsyncSession, department: Department) -> Event:
    """Confirmed event 09:00-10:00 local on the fixed clock's day."""
    return await make_event(db_session, "Culto de Domingo", departments=(department,))


@pytest_asyncio.fixture
async def scheduled(
    db_session: AsyncSession, live_event: Event, volunteer: Volunteer, department: Department
) -> EventVolunteer:
    return await schedule(db_session, live_event, volunteer, department)
