"""
Matching pipeline.
Wires the SQL collaborators to the matching service for the worker.

Flow of one tick:
1. Ask the slot calendar which occurrences have their deadline this minute
2. For each: claim → waitlist snapshot → partition → assemble circles → record
3. Return a MatchingRunReport (logged by the worker loop)

Example:
- Tick at 10:00:05 America/Los_Angeles, 14 users waitlisted for 11AM
  → 1 result: 4 circles (4, 4, 3, 3), status "matched"
- Tick at 10:01:05 → no occurrence due, empty report
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from circlematch.config.settings import Settings
from circlematch.shared.adapters.circle_store import SqlCircleStore
from circlematch.shared.adapters.matching_status_store import SqlMatchingStatusStore
from circlematch.shared.adapters.resource_provider import SqlResourcePoolProvider
from circlematch.shared.adapters.waitlist_provider import SqlWaitlistProvider
from circlematch.shared.schemas.matching import MatchingRunReport
from circlematch.shared.services.matching_service import MatchingService


@dataclass
class MatchingPipelineStats:
    """Counters across the ticks of one worker process."""

    ticks: int = 0
    slots_processed: int = 0
    circles_created: int = 0
    failed_runs: int = 0
    last_run_at: Optional[datetime] = None


class MatchingPipeline:
    """
    Pipeline running the deadline trigger against the database.

    The service is built once; its collaborators open their own short
    sessions from the factory on every call.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], settings: Settings):
        self.service = MatchingService.from_settings(
            settings,
            waitlist_provider=SqlWaitlistProvider(session_factory),
            circle_store=SqlCircleStore(session_factory),
            status_store=SqlMatchingStatusStore(session_factory, settings.matching_stale_after),
            resource_provider=SqlResourcePoolProvider(session_factory),
        )
        self.stats = MatchingPipelineStats()

    async def run(self, now: datetime) -> MatchingRunReport:
        """
        Run the trigger once for `now`.

        Returns:
            MatchingRunReport; success is False if any occurrence failed
        """
        report = await self.service.run(now)

        self.stats.ticks += 1
        self.stats.slots_processed += len(report.results)
        self.stats.circles_created += sum(r.circles_created for r in report.results)
        if not report.success:
            self.stats.failed_runs += 1
        self.stats.last_run_at = report.processed_at

        return report
