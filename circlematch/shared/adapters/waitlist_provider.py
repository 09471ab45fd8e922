"""
Waitlist provider - snapshot of the users opted into a slot occurrence.

The matching service only depends on the WaitlistProvider protocol. The SQL
implementation reads waitlist_entries → users → user_interests and converts
each row into an EligibleUser:

    WaitlistEntry(user_id, time_slot)        EligibleUser(
    User(gender="female",            ──→         id="550e8400-...",
         date_of_birth=2002-04-11)               gender="female",
    UserInterest("deep_thinking")                birth_date=2002-04-11,
                                                 interests=("deep_thinking",))

Missing attributes are passed through as None / empty; the partitioner
puts such users in the "unknown" bucket instead of rejecting them.
"""

from typing import List, Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from circlematch.shared.core.exceptions import WaitlistFetchError
from circlematch.shared.core.logging import get_logger
from circlematch.shared.models.waitlist_entry import WaitlistEntry
from circlematch.shared.repositories.waitlist_repository import WaitlistRepository
from circlematch.shared.services.group_partitioner import EligibleUser
from circlematch.shared.services.slot_calendar import SlotOccurrence


logger = get_logger(__name__)


class WaitlistProvider(Protocol):
    async def get_eligible_users(self, occurrence: SlotOccurrence) -> List[EligibleUser]:
        """
        Users opted into the occurrence, in opt-in order.

        Raises:
            WaitlistFetchError: If the snapshot cannot be read
        """
        ...


def to_eligible_user(entry: WaitlistEntry) -> EligibleUser:
    user = entry.user
    return EligibleUser(
        id=str(user.id),
        birth_date=user.date_of_birth,
        gender=user.gender,
        interests=tuple(sorted(interest.interest_type for interest in user.interests)),
    )


class SqlWaitlistProvider:
    """Reads waitlist snapshots from the database, one session per call."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory

    async def get_eligible_users(self, occurrence: SlotOccurrence) -> List[EligibleUser]:
        try:
            async with self.session_factory() as session:
                entries = await WaitlistRepository(session).get_entries_for_slot(occurrence.starts_at)
                users = [to_eligible_user(entry) for entry in entries]
        except (SQLAlchemyError, OSError) as e:
            raise WaitlistFetchError(occurrence.slot_key, str(e)) from e

        logger.debug("Waitlist snapshot read", users=len(users))
        return users
