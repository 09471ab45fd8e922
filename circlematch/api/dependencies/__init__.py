"""
API Dependencies

FastAPI dependencies for injection into route handlers.

Dependencies:
=============
- Database: get_db(), DbSession, get_session_factory(), SessionFactory
- Services: get_matching_service(), get_calendar(), get_status_store()
- Clock: get_now(), Now

Type Aliases:
=============
    # Instead of this:
    async def handler(service: MatchingService = Depends(get_matching_service)):

    # Write this:
    async def handler(service: MatchingServiceDep):
"""

from circlematch.api.dependencies.database import (
    get_db,
    get_session_factory,
    DbSession,
    SessionFactory,
)
from circlematch.api.dependencies.services import (
    get_now,
    get_calendar,
    get_status_store,
    get_matching_service,
    Now,
    Calendar,
    StatusStore,
    MatchingServiceDep,
)

__all__ = [
    # Database
    "get_db",
    "get_session_factory",
    "DbSession",
    "SessionFactory",
    # Services
    "get_now",
    "get_calendar",
    "get_status_store",
    "get_matching_service",
    "Now",
    "Calendar",
    "StatusStore",
    "MatchingServiceDep",
]
