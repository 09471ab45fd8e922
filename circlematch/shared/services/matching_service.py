"""
Matching service - the deadline trigger.

Invoked on a fixed cadence (worker loop, or POST /matching/run) with the
current time. For every slot occurrence whose deadline is due it:

1. Claims the occurrence (exactly-once guard, skips if already matched)
2. Reads the waitlist snapshot and drops users already placed in a circle
   of this occurrence (a retry after a partial failure)
3. Partitions the users into groups of 2-4
4. Assembles and persists one circle per group
5. Marks the occurrence done, or failed so a later run can retry it

Example (deadline 10:00 for the 11AM slot, 14 users on the waitlist):
    run_once(2026-10-19 10:00:12) →
        [MatchingResult(slotKey="2026-10-19_11AM", totalUsers=14,
                        circlesCreated=4, usersMatched=14, status="matched")]
    run_once(2026-10-19 10:00:40) →
        [MatchingResult(slotKey="2026-10-19_11AM", status="skipped",
                        circleIds=[...the same 4 circles...])]

Each occurrence is isolated: a collaborator failure (or any unexpected
error) in one occurrence becomes a failed result for that occurrence and
the others are still processed.
"""

from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from circlematch.config.settings import Settings
from circlematch.shared.core.exceptions import CollaboratorError
from circlematch.shared.core.logging import get_logger, log_context, unbind_log_context
from circlematch.shared.models.enums import ClaimOutcome
from circlematch.shared.schemas.matching import (
    MatchingResult,
    MatchingResultStatus,
    MatchingRunReport,
)
from circlematch.shared.services.circle_assembler import (
    CircleAssembler,
    ResourcePools,
    parse_circle_id,
    resolve_policies,
)
from circlematch.shared.services.group_partitioner import (
    PartitionerFactory,
    partition_summary,
)
from circlematch.shared.services.slot_calendar import SlotCalendar, SlotOccurrence

if TYPE_CHECKING:
    from circlematch.shared.adapters.circle_store import CircleStore
    from circlematch.shared.adapters.matching_status_store import MatchingStatusStore
    from circlematch.shared.adapters.resource_provider import ResourcePoolProvider
    from circlematch.shared.adapters.waitlist_provider import WaitlistProvider


logger = get_logger(__name__)


class MatchingService:
    """
    Orchestrates matching of due slot occurrences.

    All collaborators are injected; the service keeps no state between
    invocations; "already processed" lives in the status store.
    """

    def __init__(
        self,
        calendar: SlotCalendar,
        waitlist_provider: "WaitlistProvider",
        circle_store: "CircleStore",
        status_store: "MatchingStatusStore",
        resource_provider: "ResourcePoolProvider",
        partitioner_factory: Optional[PartitionerFactory] = None,
        assembler: Optional[CircleAssembler] = None,
    ) -> None:
        self.calendar = calendar
        self.waitlist_provider = waitlist_provider
        self.circle_store = circle_store
        self.status_store = status_store
        self.resource_provider = resource_provider
        self.partitioner_factory = partitioner_factory or PartitionerFactory()
        self.assembler = assembler or CircleAssembler(circle_store)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        waitlist_provider: "WaitlistProvider",
        circle_store: "CircleStore",
        status_store: "MatchingStatusStore",
        resource_provider: "ResourcePoolProvider",
    ) -> "MatchingService":
        """
        Build the service with calendar, partitioning and resource policies
        from settings.

        Raises:
            ConfigurationError: On malformed matching configuration
        """
        return cls(
            calendar=SlotCalendar.from_settings(settings),
            waitlist_provider=waitlist_provider,
            circle_store=circle_store,
            status_store=status_store,
            resource_provider=resource_provider,
            partitioner_factory=PartitionerFactory.from_settings(settings),
            assembler=CircleAssembler.from_settings(circle_store, settings),
        )

    # ═══════════════════════════════════════════════════════════════════════════
    # ENTRY POINTS
    # ═══════════════════════════════════════════════════════════════════════════

    async def run_once(self, now: datetime) -> List[MatchingResult]:
        """
        Match every slot occurrence whose deadline is due at `now`.

        Returns:
            One MatchingResult per due occurrence; empty when none is due
        """
        ready = self.calendar.slots_ready_for_matching(now)
        if not ready:
            logger.debug("No slots ready for matching", now=now.isoformat())
            return []

        logger.info("Matching run started", ready_slots=[o.slot_key for o in ready])

        results = []
        for occurrence in ready:
            results.append(await self.match_slot(occurrence, now))

        logger.info(
            "Matching run finished",
            slots=len(results),
            circles_created=sum(r.circles_created for r in results),
            failed=sum(1 for r in results if r.is_failure),
        )
        return results

    async def run(self, now: datetime) -> MatchingRunReport:
        """run_once wrapped in a report."""
        results = await self.run_once(now)
        return MatchingRunReport.from_results(results, processed_at=self.calendar.to_local(now))

    async def match_slot(self, occurrence: SlotOccurrence, now: datetime) -> MatchingResult:
        """
        Match a single occurrence, regardless of whether its deadline is due.

        Used by run_once and by the manual force-match endpoint. The claim
        still applies: an occurrence that is done is skipped.
        """
        log_context(slot_key=occurrence.slot_key)
        try:
            return await self._match_slot(occurrence, self.calendar.to_local(now))
        finally:
            unbind_log_context("slot_key")

    # ═══════════════════════════════════════════════════════════════════════════
    # PER-OCCURRENCE FLOW
    # ═══════════════════════════════════════════════════════════════════════════

    async def _match_slot(self, occurrence: SlotOccurrence, now: datetime) -> MatchingResult:
        try:
            outcome = await self.status_store.claim(occurrence, now)
        except CollaboratorError as e:
            logger.error("Could not claim slot", error=e.message)
            return self._failed_result(occurrence, e.message)
        except Exception as e:
            logger.error("Unexpected error while claiming slot", error=str(e), exc_info=True)
            return self._failed_result(occurrence, f"Unexpected error: {e}")

        if outcome != ClaimOutcome.CLAIMED:
            return await self._skipped_result(occurrence, outcome)

        logger.info("Slot claimed for matching")

        try:
            result = await self._match_claimed(occurrence)
        except CollaboratorError as e:
            logger.error("Slot matching failed", error=e.message)
            result = self._failed_result(occurrence, e.message)
        except Exception as e:
            logger.error("Unexpected error while matching slot", error=str(e), exc_info=True)
            result = self._failed_result(occurrence, f"Unexpected error: {e}")

        await self._record(occurrence, result, now)
        return result

    async def _match_claimed(self, occurrence: SlotOccurrence) -> MatchingResult:
        users = await self.waitlist_provider.get_eligible_users(occurrence)
        assigned = await self.circle_store.get_assigned_user_ids(occurrence)
        existing_ids = await self.circle_store.get_circle_ids(occurrence)

        pending = [user for user in users if user.id not in assigned]
        already_matched = len(users) - len(pending)

        logger.info(
            "Waitlist fetched",
            users=len(users),
            already_matched=already_matched,
        )

        if not users:
            return MatchingResult(
                slot_label=occurrence.label,
                slot_key=occurrence.slot_key,
                slot_time=occurrence.starts_at,
                circle_ids=existing_ids,
                status=MatchingResultStatus.EMPTY,
            )

        partitioner = self.partitioner_factory.build(occurrence.slot_date)
        partition = partitioner.partition(pending)
        stats = partition_summary(partition)

        logger.info(
            "Partition computed",
            group_sizes=partition.group_sizes,
            leftover=len(partition.leftover),
            buckets=partition.bucket_sizes,
            efficiency=stats.efficiency,
        )

        pools = await self.resource_provider.get_pools() if partition.groups else ResourcePools()
        assembly = await self.assembler.assemble(
            occurrence,
            partition.groups,
            pools,
            start_index=_last_circle_index(existing_ids),
        )

        users_matched = already_matched + assembly.users_matched
        status = MatchingResultStatus.MATCHED
        error = None
        if assembly.failed_groups:
            status = MatchingResultStatus.PARTIAL if assembly.circles else MatchingResultStatus.FAILED
            error = (
                f"{len(assembly.failed_groups)} of {len(partition.groups)} groups failed to persist: "
                + ", ".join(group.circle_id for group in assembly.failed_groups)
            )

        return MatchingResult(
            slot_label=occurrence.label,
            slot_key=occurrence.slot_key,
            slot_time=occurrence.starts_at,
            total_users=len(users),
            circles_created=len(assembly.circles),
            users_matched=users_matched,
            unmatched_users=len(users) - users_matched,
            circle_ids=existing_ids + assembly.circle_ids,
            status=status,
            error=error,
        )

    async def _record(self, occurrence: SlotOccurrence, result: MatchingResult, now: datetime) -> None:
        summary = result.model_dump(mode="json", by_alias=True)
        try:
            if result.is_failure:
                await self.status_store.mark_failed(occurrence, now, result.error or "failed", summary)
            else:
                await self.status_store.mark_done(occurrence, now, summary)
        except CollaboratorError as e:
            # The run stays in progress; once stale, force-matching the slot retries it.
            logger.error("Could not record matching status", error=e.message, status=result.status.value)
            return
        except Exception as e:
            logger.error(
                "Unexpected error while recording matching status",
                error=str(e),
                status=result.status.value,
                exc_info=True,
            )
            return

        logger.info(
            "Slot matching recorded",
            status=result.status.value,
            circles_created=result.circles_created,
            users_matched=result.users_matched,
            unmatched_users=result.unmatched_users,
        )

    async def _skipped_result(self, occurrence: SlotOccurrence, outcome: ClaimOutcome) -> MatchingResult:
        try:
            circle_ids = await self.circle_store.get_circle_ids(occurrence)
        except Exception as e:
            logger.warning("Could not list existing circles", error=str(e))
            circle_ids = []

        logger.info("Slot skipped", reason=outcome.value, existing_circles=len(circle_ids))
        return MatchingResult(
            slot_label=occurrence.label,
            slot_key=occurrence.slot_key,
            slot_time=occurrence.starts_at,
            circle_ids=circle_ids,
            status=MatchingResultStatus.SKIPPED,
        )

    @staticmethod
    def _failed_result(occurrence: SlotOccurrence, error: str) -> MatchingResult:
        return MatchingResult(
            slot_label=occurrence.label,
            slot_key=occurrence.slot_key,
            slot_time=occurrence.starts_at,
            status=MatchingResultStatus.FAILED,
            error=error,
        )


def _last_circle_index(circle_ids: List[str]) -> int:
    indexes = [parts.index for parts in map(parse_circle_id, circle_ids) if parts is not None]
    return max(indexes, default=0)


def validate_matching_settings(settings: Settings) -> SlotCalendar:
    """
    Check every matching setting once at startup.

    Returns:
        The validated calendar

    Raises:
        ConfigurationError: On any malformed value; startup must abort
    """
    calendar = SlotCalendar.from_settings(settings)
    PartitionerFactory.from_settings(settings)
    resolve_policies(settings)
    return calendar
