"""Builders for test inputs: instants, eligible users, seeded database rows."""

from datetime import date, datetime
from typing import Iterable, List, Optional, Sequence
from zoneinfo import ZoneInfo

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from circlematch.shared.models.conversation_prompt import ConversationPrompt
from circlematch.shared.models.location import Location
from circlematch.shared.repositories.user_repository import UserRepository
from circlematch.shared.repositories.waitlist_repository import WaitlistRepository
from circlematch.shared.services.group_partitioner import EligibleUser

LA = ZoneInfo("America/Los_Angeles")
SLOT_DATE = date(2026, 10, 19)


def local(hour: int, minute: int = 0, second: int = 0, day: int = 19) -> datetime:
    """An aware instant in October 2026, America/Los_Angeles."""
    return datetime(2026, 10, day, hour, minute, second, tzinfo=LA)


def make_users(count: int, prefix: str = "u", **attrs) -> List[EligibleUser]:
    return [EligibleUser(id=f"{prefix}{i:03d}", **attrs) for i in range(1, count + 1)]


async def seed_waitlist(
    session_factory: async_sessionmaker[AsyncSession],
    time_slot: datetime,
    count: int,
    *,
    gender: Optional[str] = None,
    date_of_birth: Optional[date] = None,
    interests: Iterable[str] = (),
) -> List[str]:
    """Create `count` users waitlisted for `time_slot`; returns their ids."""
    user_ids = []
    async with session_factory() as session:
        users = UserRepository(session)
        waitlist = WaitlistRepository(session)
        for i in range(count):
            user = await users.create_with_interests(
                full_name=f"User {i}",
                gender=gender,
                date_of_birth=date_of_birth,
                interests=list(interests),
            )
            await waitlist.add_entry(user.id, time_slot)
            user_ids.append(str(user.id))
        await session.commit()
    return user_ids


async def seed_resources(
    session_factory: async_sessionmaker[AsyncSession],
    locations: Sequence[str] = ("Dolores Park",),
    prompts: Sequence[str] = ("What surprised you this week?",),
) -> None:
    async with session_factory() as session:
        session.add_all([Location(name=name) for name in locations])
        session.add_all([ConversationPrompt(prompt_text=text) for text in prompts])
        await session.commit()
