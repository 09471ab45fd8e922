"""
Database Module

Database connectivity and session management for CircleMatch.

Components:
===========
- session.py: Database engine, session factory, and lifecycle functions

Usage in FastAPI:
=================
    from fastapi import Depends
    from circlematch.shared.db import get_db

    @router.get("/circles/{circle_id}")
    async def get_circle(circle_id: str, db: AsyncSession = Depends(get_db)):
        return await CircleRepository(db).get(circle_id)

Usage in the worker:
====================
    from circlematch.shared.db import AsyncSessionLocal

    store = SqlCircleStore(AsyncSessionLocal)
"""

from circlematch.shared.db.session import (
    get_db,
    check_db,
    init_db,
    close_db,
    AsyncSessionLocal,
    engine,
)

__all__ = [
    "get_db",  # FastAPI dependency for getting a database session
    "check_db",  # Connectivity probe
    "init_db",  # Initialize database on app startup
    "close_db",  # Close database on app shutdown
    "AsyncSessionLocal",  # Session factory for manual session creation
    "engine",  # Database engine (for migrations, etc.)
]
