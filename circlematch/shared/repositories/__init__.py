"""
Repository Pattern Implementations

Repositories encapsulate database queries and provide a clean API for data
access. They only flush; the caller owns the transaction.

Repository Hierarchy:
=====================
    BaseRepository[ModelType]               ← Generic CRUD operations
         │
         ├── UserRepository                 ← Users with interest tags
         ├── WaitlistRepository             ← Slot opt-ins
         ├── LocationRepository             ← Active meeting locations
         ├── ConversationPromptRepository   ← Active conversation prompts
         ├── CircleRepository               ← Circles and members
         └── SlotMatchingRunRepository      ← Exactly-once matching guard

Usage Example:
==============
    from circlematch.shared.db import AsyncSessionLocal
    from circlematch.shared.repositories import CircleRepository

    async with AsyncSessionLocal() as session:
        circle_ids = await CircleRepository(session).get_ids_for_slot("2026-10-19_11AM")
"""

from circlematch.shared.repositories.base import BaseRepository
from circlematch.shared.repositories.user_repository import UserRepository
from circlematch.shared.repositories.waitlist_repository import WaitlistRepository
from circlematch.shared.repositories.resource_repository import (
    LocationRepository,
    ConversationPromptRepository,
)
from circlematch.shared.repositories.circle_repository import CircleRepository
from circlematch.shared.repositories.matching_run_repository import SlotMatchingRunRepository

__all__ = [
    # Base class
    "BaseRepository",
    # Entity-specific repositories
    "UserRepository",
    "WaitlistRepository",
    "LocationRepository",
    "ConversationPromptRepository",
    "CircleRepository",
    "SlotMatchingRunRepository",
]
