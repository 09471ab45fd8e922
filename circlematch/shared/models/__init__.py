"""
CircleMatch SQLAlchemy Models

This package contains all database models for the CircleMatch service.

Model Hierarchy:
================
    User
       ├── interests (UserInterest[])
       ├── waitlist_entries (WaitlistEntry[])
       └── circle_memberships (CircleMember[])

    Circle
       ├── members (CircleMember[])
       ├── location (Location)
       └── prompt (ConversationPrompt)

    SlotMatchingRun  ← matching status per slot occurrence

Models Overview:
================
- Base: Base class and timestamp mixin
- User / UserInterest: Read-only inputs of matching
- WaitlistEntry: User opt-in to a slot occurrence
- Location / ConversationPrompt: Resource pools for circles
- Circle / CircleMember: Matching output
- SlotMatchingRun: Exactly-once guard for matching
"""

from circlematch.shared.models.base import Base, TimestampMixin
from circlematch.shared.models.enums import (
    Gender,
    InterestType,
    CircleStatus,
    MatchingStatus,
    ClaimOutcome,
    SlotState,
)
from circlematch.shared.models.user import User
from circlematch.shared.models.user_interest import UserInterest
from circlematch.shared.models.waitlist_entry import WaitlistEntry
from circlematch.shared.models.location import Location
from circlematch.shared.models.conversation_prompt import ConversationPrompt
from circlematch.shared.models.circle import Circle
from circlematch.shared.models.circle_member import CircleMember
from circlematch.shared.models.slot_matching_run import SlotMatchingRun

__all__ = [
    # Base classes and mixins
    "Base",
    "TimestampMixin",
    # Enums
    "Gender",
    "InterestType",
    "CircleStatus",
    "MatchingStatus",
    "ClaimOutcome",
    "SlotState",
    # Models
    "User",
    "UserInterest",
    "WaitlistEntry",
    "Location",
    "ConversationPrompt",
    "Circle",
    "CircleMember",
    "SlotMatchingRun",
]
