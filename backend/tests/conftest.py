"""Shared test configuration and fixtures.

Every test gets its own in-memory SQLite database (via aiosqlite), created
from the ORM metadata, so tests are isolated without an external server.
"""

import uuid
from collections.abc import AsyncGenerator, Awaitable, Callable
from datetime import datetime, timezone

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from staysync.database import Base, get_db
from staysync.main import app
from staysync.models import Booking, Property

# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def test_engine() -> AsyncGenerator[AsyncEngine, None]:
    """A fresh in-memory database shared by every session of one test."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(test_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory: async_sessionmaker[AsyncSession]) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Provide an httpx AsyncClient wired to use the test DB session."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Convenience fixtures: property and booking helpers
# ---------------------------------------------------------------------------


def utc(year: int, month: int, day: int, hour: int = 0) -> datetime:
    return datetime(year, month, day, hour, tzinfo=timezone.utc)


@pytest_asyncio.fixture
async def test_property(db_session: AsyncSession) -> Property:
    """Create and return a property with a feed URL directly in the DB."""
    prop = Property(name="Casa Test", ical_url="https://www.airbnb.com/calendar/ical/123.ics?s=abc")
    db_session.add(prop)
    await db_session.flush()
    return prop


AddBooking = Callable[..., Awaitable[Booking]]


@pytest_asyncio.fixture
async def add_booking(db_session: AsyncSession, test_property: Property) -> AddBooking:
    """Factory inserting a booking row on ``test_property``.

    Defaults to a confirmed manual block; pass ``source``/``status`` and any
    other column to override.
    """

    async def _add(start: datetime, end: datetime, **fields) -> Booking:
        fields.setdefault("source", "manual")
        fields.setdefault("status", "confirmed")
        if fields["source"] == "public":
            fields.setdefault("requester_name", "Ana Guest")
        row = Booking(
            id=uuid.uuid4(),
            property_id=test_property.id,
            title=fields.pop("title", "Booked"),
            start=start,
            end=end,
            **fields,
        )
        db_session.add(row)
        await db_session.flush()
        return row

    return _add
