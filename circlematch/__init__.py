"""
CircleMatch Backend

Deadline-driven matching of waitlisted users into small conversation circles.

Package Structure:
==================
    circlematch/
    ├── api/        ← FastAPI application (trigger, force-match, calendar view)
    ├── worker/     ← Fixed-cadence matching trigger
    ├── shared/     ← Shared code (models, services, adapters, etc.)
    └── config/     ← Configuration

Running the Application:
========================
    # API Server
    uvicorn circlematch.api.main:app --reload

    # Worker
    python -m circlematch.worker.main

    # Database migrations
    alembic upgrade head
"""
