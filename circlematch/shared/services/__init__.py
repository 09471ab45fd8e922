"""
Business Logic Services

The matching core. Services hold the domain rules and depend on
collaborators only through protocols (see shared/adapters).

Service Pattern:
================
    Trigger (API / worker) → MatchingService → SlotCalendar
                                             → GroupPartitioner
                                             → CircleAssembler → CircleStore
                                             ↘ WaitlistProvider, MatchingStatusStore

Available Services:
===================
- SlotCalendar: Slot occurrences, deadlines, display date, slot state
- GroupPartitioner: Splits a waitlist into groups of 2-4
- CircleAssembler: Ids, locations, prompts, atomic persistence per circle
- MatchingService: The deadline trigger (run_once / match_slot)

Usage:
======
    from circlematch.shared.services import MatchingService

    service = MatchingService.from_settings(settings, waitlist, circles, statuses, resources)
    results = await service.run_once(now)
"""

from circlematch.shared.services.slot_calendar import SlotCalendar, SlotOccurrence
from circlematch.shared.services.group_partitioner import (
    EligibleUser,
    GroupPartitioner,
    PartitionerFactory,
)
from circlematch.shared.services.circle_assembler import CircleAssembler
from circlematch.shared.services.matching_service import MatchingService

__all__ = [
    "SlotCalendar",
    "SlotOccurrence",
    "EligibleUser",
    "GroupPartitioner",
    "PartitionerFactory",
    "CircleAssembler",
    "MatchingService",
]
