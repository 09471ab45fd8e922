"""
Waitlist Repository

Database operations for slot opt-ins (waitlist entries).

Common Operations:
==================
- get_entries_for_slot()  → Snapshot of a slot's waitlist, opt-in order
- count_for_slot()        → Waitlist size of a slot occurrence
- add_entry()             → Opt a user into a slot occurrence

Time slots are always passed as UTC instants; see models.base.as_utc.
"""

from datetime import datetime
from typing import List
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy.sql.functions import count as sql_count

from circlematch.shared.repositories.base import BaseRepository
from circlematch.shared.models.base import as_utc
from circlematch.shared.models.user import User
from circlematch.shared.models.waitlist_entry import WaitlistEntry


class WaitlistRepository(BaseRepository[WaitlistEntry]):
    """Repository for WaitlistEntry database operations."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(WaitlistEntry, session)

    async def get_entries_for_slot(self, time_slot: datetime) -> List[WaitlistEntry]:
        """
        Get all waitlist entries of one slot occurrence.

        Users and their interests are loaded eagerly so the caller can
        build matching inputs without further queries.

        Args:
            time_slot: Slot start instant

        Returns:
            Entries ordered by opt-in time (ties by id)
        """
        result = await self.session.execute(
            select(WaitlistEntry)
            .where(WaitlistEntry.time_slot == as_utc(time_slot))
            .options(selectinload(WaitlistEntry.user).selectinload(User.interests))
            .order_by(WaitlistEntry.created_at, WaitlistEntry.id)
        )
        return list(result.scalars().all())

    async def count_for_slot(self, time_slot: datetime) -> int:
        result = await self.session.execute(
            select(sql_count())
            .select_from(WaitlistEntry)
            .where(WaitlistEntry.time_slot == as_utc(time_slot))
        )
        return result.scalar() or 0

    async def add_entry(self, user_id: UUID, time_slot: datetime) -> WaitlistEntry:
        """
        Opt a user into a slot occurrence.

        Raises:
            sqlalchemy.exc.IntegrityError: If the user is already waitlisted
        """
        return await self.create(user_id=user_id, time_slot=as_utc(time_slot))
