"""
Resource pool provider - active locations and conversation prompts.
"""

from typing import Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from circlematch.shared.core.exceptions import CollaboratorError
from circlematch.shared.repositories.resource_repository import (
    ConversationPromptRepository,
    LocationRepository,
)
from circlematch.shared.services.circle_assembler import ResourcePools, ResourceRef


class ResourcePoolProvider(Protocol):
    async def get_pools(self) -> ResourcePools:
        ...


class SqlResourcePoolProvider:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory

    async def get_pools(self) -> ResourcePools:
        try:
            async with self.session_factory() as session:
                locations = await LocationRepository(session).get_active()
                prompts = await ConversationPromptRepository(session).get_active()
        except (SQLAlchemyError, OSError) as e:
            raise CollaboratorError("resources", f"Failed to load resource pools: {e}") from e

        return ResourcePools(
            locations=[ResourceRef(id=str(loc.id), label=loc.name) for loc in locations],
            prompts=[ResourceRef(id=str(p.id), label=p.prompt_text) for p in prompts],
        )
