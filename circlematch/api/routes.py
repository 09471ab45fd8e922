"""
Route Registration

Centralizes all route registration for the FastAPI application.

Route Hierarchy:
================
    /health, /ready, /live  → Health check endpoints
    /matching               → Matching trigger, force-match, slot calendar, runs

Usage:
======
    from circlematch.api.routes import register_routes

    app = FastAPI()
    register_routes(app)
"""

from fastapi import FastAPI

from circlematch.api.handlers import (
    health_handler,
    matching_handler,
)


def register_routes(app: FastAPI) -> None:
    """
    Register all API routes.

    Args:
        app: FastAPI application instance
    """
    # Health check endpoints (no prefix, root level)
    app.include_router(
        health_handler.router,
        tags=["Health"],
    )

    # Matching endpoints
    app.include_router(
        matching_handler.router,
        prefix="/matching",
        tags=["Matching"],
    )
