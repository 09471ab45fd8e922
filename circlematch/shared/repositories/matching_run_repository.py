"""
Slot Matching Run Repository

Database operations for the per-occurrence matching status rows.

Claiming Protocol:
==================
Claims are conditional writes; no row is ever read-then-written:

    insert_claim()  INSERT ... (slot_key PK)        → fails if any run exists
    reclaim()       UPDATE ... WHERE status='failed'
                        OR (status='in_progress' AND started_at < cutoff)
                    → rowcount 1 only for the caller that wins

Two concurrent matchers therefore cannot both own the same occurrence.
"""

from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import and_, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from circlematch.shared.repositories.base import BaseRepository
from circlematch.shared.models.base import as_utc
from circlematch.shared.models.enums import MatchingStatus
from circlematch.shared.models.slot_matching_run import SlotMatchingRun


class SlotMatchingRunRepository(BaseRepository[SlotMatchingRun]):
    """Repository for SlotMatchingRun database operations."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(SlotMatchingRun, session)

    async def get_many(self, slot_keys: Iterable[str]) -> Dict[str, SlotMatchingRun]:
        """Runs for several slot keys, keyed by slot key."""
        keys = list(slot_keys)
        if not keys:
            return {}
        result = await self.session.execute(
            select(SlotMatchingRun).where(SlotMatchingRun.slot_key.in_(keys))
        )
        return {run.slot_key: run for run in result.scalars().all()}

    async def list_recent(self, limit: int = 50) -> List[SlotMatchingRun]:
        return await self.list(limit=limit, order_by="time_slot", order_desc=True)

    async def insert_claim(self, slot_key: str, time_slot: datetime, now: datetime) -> SlotMatchingRun:
        """
        Insert the IN_PROGRESS row of a first attempt.

        Raises:
            sqlalchemy.exc.IntegrityError: If a run already exists
        """
        return await self.create(
            slot_key=slot_key,
            time_slot=as_utc(time_slot),
            status=MatchingStatus.IN_PROGRESS.value,
            attempts=1,
            started_at=as_utc(now),
        )

    async def reclaim(self, slot_key: str, now: datetime, stale_before: datetime) -> bool:
        """
        Take over a failed or stale run.

        Returns:
            True if this caller now owns the run
        """
        result = await self.session.execute(
            update(SlotMatchingRun)
            .where(
                SlotMatchingRun.slot_key == slot_key,
                or_(
                    SlotMatchingRun.status == MatchingStatus.FAILED.value,
                    and_(
                        SlotMatchingRun.status == MatchingStatus.IN_PROGRESS.value,
                        SlotMatchingRun.started_at < as_utc(stale_before),
                    ),
                ),
            )
            .values(
                status=MatchingStatus.IN_PROGRESS.value,
                attempts=SlotMatchingRun.attempts + 1,
                started_at=as_utc(now),
                completed_at=None,
                error_message=None,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def finish(
        self,
        slot_key: str,
        status: MatchingStatus,
        completed_at: datetime,
        error_message: Optional[str] = None,
        summary: Optional[dict[str, Any]] = None,
    ) -> Optional[SlotMatchingRun]:
        """Record the outcome of the current attempt."""
        return await self.update(
            slot_key,
            status=status.value,
            completed_at=as_utc(completed_at),
            error_message=error_message,
            summary=summary,
        )
