"""
Matching Schemas

Records produced by a matching run. They are returned by the API, logged by
the worker, and stored as the summary of each slot_matching_runs row.

MatchingResult (one per slot occurrence, camelCase on the wire):
    {
        "slotLabel": "11AM",
        "slotKey": "2026-10-19_11AM",
        "slotTime": "2026-10-19T11:00:00-07:00",
        "totalUsers": 14,
        "circlesCreated": 4,
        "usersMatched": 14,
        "unmatchedUsers": 0,
        "circleIds": ["2026-10-19_11AM_Circle_1", ...],
        "status": "matched",
        "error": null
    }

Status values:
    matched  all groups persisted (leftover users are normal)
    empty    nobody on the waitlist (or everyone already placed)
    skipped  already matched or owned by another run; nothing created
    partial  some groups failed to persist
    failed   a collaborator failed before any circle was persisted
"""

from datetime import date, datetime
from enum import Enum
from typing import Any, List, Optional

from pydantic import Field

from circlematch.shared.models.enums import MatchingStatus, SlotState
from circlematch.shared.schemas.common import CamelSchema


class MatchingResultStatus(str, Enum):
    MATCHED = "matched"
    EMPTY = "empty"
    SKIPPED = "skipped"
    PARTIAL = "partial"
    FAILED = "failed"


class MatchingResult(CamelSchema):
    """Outcome of matching one slot occurrence."""

    slot_label: str
    slot_key: str
    slot_time: datetime
    total_users: int = 0
    circles_created: int = 0
    users_matched: int = 0
    unmatched_users: int = 0
    circle_ids: List[str] = Field(default_factory=list)
    status: MatchingResultStatus = MatchingResultStatus.MATCHED
    error: Optional[str] = None

    @property
    def is_failure(self) -> bool:
        return self.status in (MatchingResultStatus.FAILED, MatchingResultStatus.PARTIAL)


class MatchingRunReport(CamelSchema):
    """All results of one trigger invocation."""

    success: bool
    processed_at: datetime
    results: List[MatchingResult] = Field(default_factory=list)

    @classmethod
    def from_results(cls, results: List[MatchingResult], processed_at: datetime) -> "MatchingRunReport":
        return cls(
            success=not any(result.is_failure for result in results),
            processed_at=processed_at,
            results=results,
        )


class SlotView(CamelSchema):
    """One slot occurrence in the calendar view."""

    slot_key: str
    slot_label: str
    starts_at: datetime
    deadline: datetime
    state: SlotState
    accepting_signups: bool
    matching_status: MatchingStatus = MatchingStatus.NOT_STARTED
    waitlist_count: int = 0


class SlotCalendarResponse(CamelSchema):
    """Slots relevant at a point in time."""

    now: datetime
    display_date: date
    next_available_slot: Optional[str] = None
    slots: List[SlotView] = Field(default_factory=list)


class MatchingRunResponse(CamelSchema):
    """Stored matching status of one slot occurrence."""

    slot_key: str
    time_slot: datetime
    status: MatchingStatus
    attempts: int
    started_at: datetime
    completed_at: Optional[datetime] = None
    error_message: Optional[str] = None
    summary: Optional[dict[str, Any]] = None
