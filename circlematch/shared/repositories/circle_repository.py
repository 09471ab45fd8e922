"""
Circle Repository

Database operations for circles and their members.

Common Operations:
==================
- create_with_members()     → Insert a circle and all its members (one flush)
- get_ids_for_slot()        → Circle ids already stored for a slot occurrence
- get_assigned_user_ids()   → Users already placed in a circle of the occurrence

Atomicity:
==========
create_with_members() only flushes. The caller owns the transaction and
commits or rolls back the circle together with its members:

    async with session_factory() as session, session.begin():
        await CircleRepository(session).create_with_members(...)
"""

from datetime import datetime
from typing import List, Optional, Sequence, Set
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from circlematch.shared.repositories.base import BaseRepository
from circlematch.shared.models.base import as_utc
from circlematch.shared.models.circle import Circle
from circlematch.shared.models.circle_member import CircleMember
from circlematch.shared.models.enums import CircleStatus


def _circle_index(circle_id: str) -> int:
    tail = circle_id.rsplit("_", 1)[-1]
    return int(tail) if tail.isdigit() else 0


class CircleRepository(BaseRepository[Circle]):
    """Repository for Circle and CircleMember database operations."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(Circle, session)

    # ═══════════════════════════════════════════════════════════════════════════
    # READ OPERATIONS
    # ═══════════════════════════════════════════════════════════════════════════

    async def get_ids_for_slot(self, slot_key: str) -> List[str]:
        """
        Ids of circles stored for a slot occurrence.

        Returns:
            Circle ids ordered by their running index (Circle_2 before Circle_10)
        """
        result = await self.session.execute(select(Circle.id).where(Circle.slot_key == slot_key))
        return sorted(result.scalars().all(), key=_circle_index)

    async def get_assigned_user_ids(self, slot_key: str) -> Set[UUID]:
        """Users that already belong to a circle of this slot occurrence."""
        result = await self.session.execute(
            select(CircleMember.user_id).where(CircleMember.slot_key == slot_key)
        )
        return set(result.scalars().all())

    # ═══════════════════════════════════════════════════════════════════════════
    # CREATE OPERATIONS
    # ═══════════════════════════════════════════════════════════════════════════

    async def create_with_members(
        self,
        *,
        circle_id: str,
        slot_key: str,
        time_slot: datetime,
        member_ids: Sequence[UUID],
        location_id: Optional[UUID] = None,
        prompt_id: Optional[UUID] = None,
    ) -> Circle:
        """
        Insert a circle row and one member row per user.

        Raises:
            sqlalchemy.exc.IntegrityError: If the circle id exists or a
                member is already assigned within the same slot occurrence
        """
        circle = Circle(
            id=circle_id,
            slot_key=slot_key,
            time_slot=as_utc(time_slot),
            location_id=location_id,
            prompt_id=prompt_id,
            status=CircleStatus.ACTIVE.value,
            max_participants=len(member_ids),
        )
        circle.members = [
            CircleMember(circle_id=circle_id, user_id=user_id, slot_key=slot_key)
            for user_id in member_ids
        ]
        self.session.add(circle)
        await self.session.flush()
        return circle
