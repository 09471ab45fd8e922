"""
Resource Repositories

Read access to the pools circles draw from: meeting locations and
conversation prompts. Both return active rows in a stable order so that
index-based assignment is reproducible.
"""

from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from circlematch.shared.repositories.base import BaseRepository
from circlematch.shared.models.location import Location
from circlematch.shared.models.conversation_prompt import ConversationPrompt


class LocationRepository(BaseRepository[Location]):
    """Repository for Location database operations."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(Location, session)

    async def get_active(self) -> List[Location]:
        """Active locations, oldest first."""
        result = await self.session.execute(
            select(Location)
            .where(Location.is_active.is_(True))
            .order_by(Location.created_at, Location.id)
        )
        return list(result.scalars().all())


class ConversationPromptRepository(BaseRepository[ConversationPrompt]):
    """Repository for ConversationPrompt database operations."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(ConversationPrompt, session)

    async def get_active(self) -> List[ConversationPrompt]:
        """Active prompts, oldest first."""
        result = await self.session.execute(
            select(ConversationPrompt)
            .where(ConversationPrompt.is_active.is_(True))
            .order_by(ConversationPrompt.created_at, ConversationPrompt.id)
        )
        return list(result.scalars().all())
