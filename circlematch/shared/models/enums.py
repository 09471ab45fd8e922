"""
Enums used across the application.
"""

from enum import Enum


class Gender(str, Enum):
    """Self-declared gender as collected during onboarding."""

    MALE = "male"
    FEMALE = "female"
    NON_BINARY = "non-binary"


class InterestType(str, Enum):
    """Interest tags a user can declare during onboarding."""

    DEEP_THINKING = "deep_thinking"
    SPIRITUAL_GROWTH = "spiritual_growth"
    NEW_ACTIVITIES = "new_activities"
    COMMUNITY_SERVICE = "community_service"


class CircleStatus(str, Enum):
    """Circle lifecycle state."""

    FORMING = "forming"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class MatchingStatus(str, Enum):
    """
    Matching state of one slot occurrence.

    NOT_STARTED is implicit (no row in slot_matching_runs). A FAILED run,
    or an IN_PROGRESS run older than the stale threshold, may be claimed
    again; DONE is terminal.
    """

    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    DONE = "done"
    FAILED = "failed"


class ClaimOutcome(str, Enum):
    """Result of trying to claim a slot occurrence for matching."""

    CLAIMED = "claimed"  # caller owns the run and must finish it
    ALREADY_MATCHED = "already_matched"  # a previous run completed
    IN_PROGRESS = "in_progress"  # another run owns it and is not stale


class SlotState(str, Enum):
    """Where a slot occurrence is in its daily lifecycle."""

    PRE_DEADLINE = "pre_deadline"  # accepting waitlist entries
    POST_DEADLINE = "post_deadline"  # matched, waiting for the event
    PAST_EVENT = "past_event"  # event window over
