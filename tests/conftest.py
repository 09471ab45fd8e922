"""Shared fixtures: slot calendar and an in-memory SQLite database."""

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import circlematch.shared.models  # noqa: F401  registers all tables on Base.metadata
from circlematch.shared.models.base import Base
from circlematch.shared.services.slot_calendar import SlotCalendar

from factories import SLOT_DATE


@pytest.fixture
def calendar() -> SlotCalendar:
    return SlotCalendar(
        slot_times=["11:00", "14:00", "17:00"],
        timezone_name="America/Los_Angeles",
        deadline_lead_minutes=60,
        rollover_hour=20,
        event_duration_minutes=20,
    )


@pytest.fixture
def eleven_am(calendar):
    return calendar.get_occurrence(SLOT_DATE, "11AM")


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
