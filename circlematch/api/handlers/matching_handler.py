"""
Matching handler.
Exposes the deadline trigger and the slot calendar over HTTP.

ARCHITECTURE NOTE:
  Handler → MatchingService → (calendar, partitioner, assembler, collaborators)

Handlers should ONLY:
- Parse HTTP requests (the optional `at` instant)
- Call service methods
- Format HTTP responses

Endpoints:
    POST /matching/run?at=...                        runOnce for the given instant
    POST /matching/slots/{slot_date}/{slot_label}    force-match one occurrence
    GET  /matching/slots?at=...                      calendar view with states and waitlist sizes
    GET  /matching/runs                              recent matching runs

`at` defaults to the current time. A naive `at` is read as local civil
time of the slot timezone, so `?at=2026-10-19T10:00:00` is the deadline of
that day's 11AM slot.
"""

from datetime import date, datetime
from typing import List, Optional

from fastapi import APIRouter, Query

from circlematch.shared.core.exceptions import SlotAlreadyMatchedError
from circlematch.shared.models.enums import MatchingStatus
from circlematch.shared.repositories.matching_run_repository import SlotMatchingRunRepository
from circlematch.shared.repositories.waitlist_repository import WaitlistRepository
from circlematch.shared.schemas.common import ErrorResponse
from circlematch.shared.schemas.matching import (
    MatchingResult,
    MatchingResultStatus,
    MatchingRunReport,
    MatchingRunResponse,
    SlotCalendarResponse,
    SlotView,
)
from ..dependencies.database import DbSession
from ..dependencies.services import Calendar, MatchingServiceDep, Now, StatusStore

router = APIRouter()


@router.post("/run", response_model=MatchingRunReport)
async def run_matching(
    service: MatchingServiceDep,
    now: Now,
    at: Optional[datetime] = Query(None, description="Instant to evaluate deadlines at"),
):
    """
    Run the deadline trigger once.

    Matches every slot occurrence whose deadline falls in the minute of
    `at`. Calling it again for the same minute is safe: matched occurrences
    are reported as skipped.
    """
    return await service.run(at or now)


@router.post(
    "/slots/{slot_date}/{slot_label}",
    response_model=MatchingResult,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def force_match_slot(
    slot_date: date,
    slot_label: str,
    service: MatchingServiceDep,
    calendar: Calendar,
    now: Now,
):
    """
    Match one slot occurrence now, regardless of its deadline.

    Raises:
        SlotNotFoundError: If the label is not a configured slot (404)
        SlotAlreadyMatchedError: If the occurrence is matched or being matched (409)
    """
    occurrence = calendar.get_occurrence(slot_date, slot_label)
    result = await service.match_slot(occurrence, now)
    if result.status == MatchingResultStatus.SKIPPED:
        raise SlotAlreadyMatchedError(occurrence.slot_key)
    return result


@router.get("/slots", response_model=SlotCalendarResponse)
async def list_slots(
    db: DbSession,
    calendar: Calendar,
    status_store: StatusStore,
    now: Now,
    at: Optional[datetime] = Query(None, description="Instant to evaluate the calendar at"),
):
    """
    Slot occurrences relevant at `at`, with their state, matching status
    and current waitlist size.
    """
    local_now = calendar.to_local(at or now)
    occurrences = calendar.todays_slots(local_now)
    statuses = await status_store.get_statuses(o.slot_key for o in occurrences)
    waitlist = WaitlistRepository(db)
    counts = {o.slot_key: await waitlist.count_for_slot(o.starts_at) for o in occurrences}
    next_slot = calendar.next_available_slot(local_now)

    return SlotCalendarResponse(
        now=local_now,
        display_date=calendar.display_date(local_now),
        next_available_slot=next_slot.slot_key if next_slot else None,
        slots=[
            SlotView(
                slot_key=o.slot_key,
                slot_label=o.label,
                starts_at=o.starts_at,
                deadline=o.deadline,
                state=calendar.slot_state(o, local_now),
                accepting_signups=calendar.is_accepting_signups(o, local_now),
                matching_status=statuses.get(o.slot_key, MatchingStatus.NOT_STARTED),
                waitlist_count=counts[o.slot_key],
            )
            for o in occurrences
        ],
    )


@router.get("/runs", response_model=List[MatchingRunResponse])
async def list_runs(
    db: DbSession,
    limit: int = Query(50, ge=1, le=500, description="Maximum runs to return"),
):
    """Most recent matching runs, latest slot first."""
    runs = await SlotMatchingRunRepository(db).list_recent(limit=limit)
    return [MatchingRunResponse.model_validate(run) for run in runs]
