"""
Circle store - persists circles produced by the assembler.

Each circle is written in its own transaction: the circle row and all of
its member rows commit together or not at all. A failure is raised as
CirclePersistenceError and leaves no partial circle behind.

The unique (slot_key, user_id) constraint on circle_members means a user
can never end up in two circles of the same slot occurrence, even if two
matching runs race.
"""

from typing import List, Protocol, Set
import uuid

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from circlematch.shared.core.exceptions import CirclePersistenceError, CollaboratorError
from circlematch.shared.repositories.circle_repository import CircleRepository
from circlematch.shared.services.circle_assembler import CircleDraft
from circlematch.shared.services.slot_calendar import SlotOccurrence


class CircleStore(Protocol):
    async def create_circle(self, draft: CircleDraft) -> None:
        """
        Persist a circle with all members atomically.

        Raises:
            CirclePersistenceError: If nothing was written
        """
        ...

    async def get_circle_ids(self, occurrence: SlotOccurrence) -> List[str]:
        """Ids of circles already stored for the occurrence, by running index."""
        ...

    async def get_assigned_user_ids(self, occurrence: SlotOccurrence) -> Set[str]:
        """Users already placed in a circle of the occurrence."""
        ...


def _optional_uuid(value):
    return uuid.UUID(value) if value is not None else None


class SqlCircleStore:
    """CircleStore backed by the circles and circle_members tables."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory

    async def create_circle(self, draft: CircleDraft) -> None:
        try:
            async with self.session_factory() as session:
                async with session.begin():
                    await CircleRepository(session).create_with_members(
                        circle_id=draft.circle_id,
                        slot_key=draft.slot_key,
                        time_slot=draft.time_slot,
                        member_ids=[uuid.UUID(member_id) for member_id in draft.member_ids],
                        location_id=_optional_uuid(draft.location.id if draft.location else None),
                        prompt_id=_optional_uuid(draft.prompt.id if draft.prompt else None),
                    )
        except (SQLAlchemyError, OSError, ValueError) as e:
            raise CirclePersistenceError(draft.circle_id, str(getattr(e, "orig", None) or e)) from e

    async def get_circle_ids(self, occurrence: SlotOccurrence) -> List[str]:
        try:
            async with self.session_factory() as session:
                return await CircleRepository(session).get_ids_for_slot(occurrence.slot_key)
        except (SQLAlchemyError, OSError) as e:
            raise CollaboratorError("circle_store", f"Failed to read circles: {e}") from e

    async def get_assigned_user_ids(self, occurrence: SlotOccurrence) -> Set[str]:
        try:
            async with self.session_factory() as session:
                user_ids = await CircleRepository(session).get_assigned_user_ids(occurrence.slot_key)
        except (SQLAlchemyError, OSError) as e:
            raise CollaboratorError("circle_store", f"Failed to read circle members: {e}") from e
        return {str(user_id) for user_id in user_ids}
