"""
Matching status store - exactly-once guard per slot occurrence.

State machine of one occurrence (row in slot_matching_runs):

    (no row) ──claim──→ IN_PROGRESS ──mark_done───→ DONE
                            │   ↑
                 mark_failed│   │claim (failed, or in progress for longer
                            ↓   │       than the stale threshold)
                          FAILED

claim() is the only way into IN_PROGRESS and is a conditional write (see
SlotMatchingRunRepository), so at most one caller owns an occurrence at a
time and a DONE occurrence is never matched again.
"""

from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, Optional, Protocol

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from circlematch.shared.core.exceptions import CollaboratorError
from circlematch.shared.core.logging import get_logger
from circlematch.shared.models.enums import ClaimOutcome, MatchingStatus
from circlematch.shared.repositories.matching_run_repository import SlotMatchingRunRepository
from circlematch.shared.services.slot_calendar import SlotOccurrence


logger = get_logger(__name__)


class MatchingStatusStore(Protocol):
    async def claim(self, occurrence: SlotOccurrence, now: datetime) -> ClaimOutcome:
        ...

    async def mark_done(
        self, occurrence: SlotOccurrence, now: datetime, summary: Optional[dict[str, Any]] = None
    ) -> None:
        ...

    async def mark_failed(
        self,
        occurrence: SlotOccurrence,
        now: datetime,
        error: str,
        summary: Optional[dict[str, Any]] = None,
    ) -> None:
        ...

    async def get_statuses(self, slot_keys: Iterable[str]) -> Dict[str, MatchingStatus]:
        """Known statuses; keys without a run are omitted (not started)."""
        ...


class SqlMatchingStatusStore:
    """MatchingStatusStore backed by the slot_matching_runs table."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        stale_after: timedelta = timedelta(minutes=10),
    ) -> None:
        self.session_factory = session_factory
        self.stale_after = stale_after

    async def claim(self, occurrence: SlotOccurrence, now: datetime) -> ClaimOutcome:
        slot_key = occurrence.slot_key
        try:
            async with self.session_factory() as session:
                repo = SlotMatchingRunRepository(session)

                try:
                    await repo.insert_claim(slot_key, occurrence.starts_at, now)
                    await session.commit()
                    return ClaimOutcome.CLAIMED
                except IntegrityError:
                    await session.rollback()

                if await repo.reclaim(slot_key, now, now - self.stale_after):
                    await session.commit()
                    logger.info("Reclaimed matching run", slot_key=slot_key)
                    return ClaimOutcome.CLAIMED

                run = await repo.get(slot_key)
        except (SQLAlchemyError, OSError) as e:
            raise CollaboratorError("matching_status", f"Failed to claim {slot_key}: {e}") from e

        if run is not None and run.status == MatchingStatus.DONE.value:
            return ClaimOutcome.ALREADY_MATCHED
        return ClaimOutcome.IN_PROGRESS

    async def mark_done(
        self, occurrence: SlotOccurrence, now: datetime, summary: Optional[dict[str, Any]] = None
    ) -> None:
        await self._finish(occurrence, MatchingStatus.DONE, now, None, summary)

    async def mark_failed(
        self,
        occurrence: SlotOccurrence,
        now: datetime,
        error: str,
        summary: Optional[dict[str, Any]] = None,
    ) -> None:
        await self._finish(occurrence, MatchingStatus.FAILED, now, error, summary)

    async def get_statuses(self, slot_keys: Iterable[str]) -> Dict[str, MatchingStatus]:
        try:
            async with self.session_factory() as session:
                runs = await SlotMatchingRunRepository(session).get_many(slot_keys)
        except (SQLAlchemyError, OSError) as e:
            raise CollaboratorError("matching_status", f"Failed to read statuses: {e}") from e
        return {key: MatchingStatus(run.status) for key, run in runs.items()}

    async def _finish(
        self,
        occurrence: SlotOccurrence,
        status: MatchingStatus,
        now: datetime,
        error: Optional[str],
        summary: Optional[dict[str, Any]],
    ) -> None:
        try:
            async with self.session_factory() as session:
                await SlotMatchingRunRepository(session).finish(
                    occurrence.slot_key,
                    status,
                    completed_at=now,
                    error_message=error,
                    summary=summary,
                )
                await session.commit()
        except (SQLAlchemyError, OSError) as e:
            raise CollaboratorError(
                "matching_status", f"Failed to record {status.value} for {occurrence.slot_key}: {e}"
            ) from e
