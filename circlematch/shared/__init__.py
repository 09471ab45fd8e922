"""
Shared Module

Contains code shared between API and Worker components:
- Models: SQLAlchemy ORM models
- Repositories: Data access layer
- Services: Matching core (calendar, partitioner, assembler, orchestrator)
- Schemas: Pydantic response models and matching records
- Core: Logging, exceptions
- Adapters: Database-backed collaborators of the matching service

Package Structure:
==================
    shared/
    ├── core/           ← Logging, exceptions
    ├── db/             ← Database session management
    ├── models/         ← SQLAlchemy models
    ├── repositories/   ← Data access layer
    ├── services/       ← Matching core
    ├── schemas/        ← Pydantic schemas
    ├── adapters/       ← Waitlist, circle store, status store, resources
    └── migrations/     ← Alembic environment and revisions

Usage:
======
    from circlematch.shared.models import Circle, WaitlistEntry
    from circlematch.shared.repositories import CircleRepository
    from circlematch.shared.services import MatchingService
    from circlematch.shared.schemas import MatchingResult
    from circlematch.shared.core import logger, CircleMatchException
"""
