"""
Service Dependencies

FastAPI dependencies for service injection.

The matching service is created per request around the shared session
factory. It is stateless between invocations (the exactly-once guard lives
in the database), so a per-request instance behaves exactly like the
worker's long-lived one.

Usage:
======
    from circlematch.api.dependencies.services import MatchingServiceDep, Now

    @router.post("/run")
    async def run_matching(service: MatchingServiceDep, now: Now):
        return await service.run(now)
"""

from datetime import datetime, timezone
from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from circlematch.api.dependencies.database import SessionFactory
from circlematch.config.settings import settings
from circlematch.shared.adapters.circle_store import SqlCircleStore
from circlematch.shared.adapters.matching_status_store import SqlMatchingStatusStore
from circlematch.shared.adapters.resource_provider import SqlResourcePoolProvider
from circlematch.shared.adapters.waitlist_provider import SqlWaitlistProvider
from circlematch.shared.services.matching_service import MatchingService
from circlematch.shared.services.slot_calendar import SlotCalendar


def get_now() -> datetime:
    """Current instant; the only place the API reads the clock."""
    return datetime.now(timezone.utc)


@lru_cache
def get_calendar() -> SlotCalendar:
    """
    Slot calendar built from settings, cached for the process.

    Raises:
        ConfigurationError: On malformed slot configuration
    """
    return SlotCalendar.from_settings(settings)


def get_status_store(session_factory: SessionFactory) -> SqlMatchingStatusStore:
    return SqlMatchingStatusStore(
        session_factory,
        stale_after=settings.matching_stale_after,
    )


def get_matching_service(
    session_factory: SessionFactory,
    status_store: Annotated[SqlMatchingStatusStore, Depends(get_status_store)],
) -> MatchingService:
    """Dependency to get a MatchingService wired to the SQL collaborators."""
    return MatchingService.from_settings(
        settings,
        waitlist_provider=SqlWaitlistProvider(session_factory),
        circle_store=SqlCircleStore(session_factory),
        status_store=status_store,
        resource_provider=SqlResourcePoolProvider(session_factory),
    )


# Type aliases for cleaner route signatures
Now = Annotated[datetime, Depends(get_now)]
Calendar = Annotated[SlotCalendar, Depends(get_calendar)]
StatusStore = Annotated[SqlMatchingStatusStore, Depends(get_status_store)]
MatchingServiceDep = Annotated[MatchingService, Depends(get_matching_service)]
