"""
Pytest configuration and fixtures for testing.
"""
import os

# Settings are read at import time, so the test environment goes first
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-attendance")
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["CACHE_ENABLED"] = "false"
os.environ["EVENTS_ENABLED"] = "false"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["ENVIRONMENT"] = "test"

import pytest
import pytest_asyncio
from typing import AsyncGenerator
from datetime import timedelta
from httpx import AsyncClient, ASGITransport
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import NullPool

from attendance.main import app
from attendance.db.session import Base, get_session
from attendance.core.security import create_access_token
from attendance.core.timeutils import utcnow
from attendance.db.models.user import User, RoleEnum
from attendance.db.models.event import Event, EventCoOrganizer
from attendance.db.models.rsvp import RSVP
from attendance.events import publisher
from attendance.services.rsvp_service import RSVPService


@pytest_asyncio.fixture(scope="function")
async def test_engine(tmp_path):
    """
    Fresh database per test.

    Defaults to a SQLite file in the test's temp dir; set TEST_DATABASE_URL
    to run against Postgres.
    """
    url = os.getenv("TEST_DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'attendance.db'}")
    engine = create_async_engine(url, poolclass=NullPool, echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Session used to seed data. Never handed to the code under test."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client with every request running on its own test database session."""

    async def override_get_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def published(monkeypatch):
    """Capture domain events instead of talking to RabbitMQ."""
    sent = []

    async def fake_publish(routing_key, payload):
        sent.append((routing_key, payload))

    monkeypatch.setattr(publisher, "publish_event", fake_publish)
    return sent


@pytest.fixture
def make_user(db_session):
    async def _make(name: str, role: RoleEnum = RoleEnum.user) -> User:
        user = User(email=f"{name}@example.com", full_name=name.title(), role=role)
        db_session.add(user)
        await db_session.commit()
        return user
    return _make


@pytest_asyncio.fixture
async def organizer(make_user) -> User:
    return await make_user("organizer", RoleEnum.organizer)


@pytest_asyncio.fixture
async def co_organizer(make_user) -> User:
    return await make_user("coorganizer", RoleEnum.organizer)


@pytest_asyncio.fixture
async def admin(make_user) -> User:
    return await make_user("admin", RoleEnum.admin)


@pytest_asyncio.fixture
async def attendees(make_user) -> list:
    return [await make_user(f"attendee{i}") for i in range(1, 5)]


@pytest.fixture
def make_event(db_session, organizer):
    async def _make(
        capacity=None,
        co_organizers=(),
        waitlist_enabled: bool = True,
        starts_in: timedelta = timedelta(days=7),
        title: str = "Nairobi Tech Meetup",
    ) -> Event:
        event = Event(
            title=title,
            starts_at=utcnow() + starts_in,
            capacity=capacity,
            waitlist_enabled=waitlist_enabled,
            organizer_id=organizer.id,
            co_organizers=[EventCoOrganizer(user_id=u.id) for u in co_organizers],
        )
        db_session.add(event)
        await db_session.commit()
        return event
    return _make


@pytest_asyncio.fixture
async def event(make_event, co_organizer) -> Event:
    """Capacity-two event organized by ``organizer`` with one co-organizer."""
    return await make_event(capacity=2, co_organizers=[co_organizer])


@pytest.fixture
def service_call(session_factory):
    """Run one RSVPService method on a session of its own, like one request would."""
    async def _call(method: str, *args, **kwargs):
        async with session_factory() as session:
            return await getattr(RSVPService(session), method)(*args, **kwargs)
    return _call


@pytest.fixture
def rsvp_of(session_factory):
    """Read the committed RSVP of a user from a fresh session."""
    async def _get(event_id, user_id):
        async with session_factory() as session:
            result = await session.execute(
                select(RSVP).where(RSVP.event_id == event_id, RSVP.user_id == user_id)
            )
            return result.scalar_one_or_none()
    return _get


@pytest.fixture
def auth_headers():
    def _headers(user: User) -> dict:
        token = create_access_token({"sub": str(user.id)})
        return {"Authorization": f"Bearer {token}"}
    return _headers
