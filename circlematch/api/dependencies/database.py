"""
Database Dependency

FastAPI dependencies for database access.

- get_db / DbSession: one session per request, committed on success and
  rolled back on error (used by read endpoints)
- get_session_factory / SessionFactory: the session factory handed to the
  SQL collaborators of the matching service, which manage their own short
  transactions

Usage:
======
    from circlematch.api.dependencies.database import DbSession

    @router.get("/runs")
    async def list_runs(db: DbSession):
        return await SlotMatchingRunRepository(db).list_recent()
"""

from typing import Annotated, AsyncGenerator

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from circlematch.shared.db import AsyncSessionLocal
from circlematch.shared.db import get_db as _get_db


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency for database sessions.

    Yields:
        AsyncSession: Database session for the current request
    """
    async for session in _get_db():
        yield session


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Session factory for the matching collaborators (overridden in tests)."""
    return AsyncSessionLocal


# Type aliases for cleaner route signatures
DbSession = Annotated[AsyncSession, Depends(get_db)]
SessionFactory = Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)]
