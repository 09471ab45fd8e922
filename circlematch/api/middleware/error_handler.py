"""
Error Handler Middleware

Global exception handling for the API.

Error Response Format:
======================
    {
        "error": {
            "code": "NOT_FOUND",
            "message": "Slot with id '2026-10-19_9AM' not found",
            "details": {}
        }
    }

Exception Handling:
===================
1. CircleMatchException subclasses → their status_code and to_dict()
   - 4xx logged as warnings (caller mistakes: unknown slot, already matched)
   - 5xx logged as errors (collaborator outage, bad configuration)
2. Request / Pydantic validation errors → 400 with validation details
3. Other exceptions → 500 with generic message (details hidden, traceback logged)

Usage:
======
    from circlematch.api.middleware.error_handler import setup_exception_handlers

    app = FastAPI()
    setup_exception_handlers(app)
"""

from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from circlematch.shared.core.exceptions import CircleMatchException
from circlematch.shared.core.logging import logger


def _validation_response(errors: list[Any]) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={
            "error": {
                "code": "VALIDATION_ERROR",
                "message": "Request validation failed",
                "details": {"errors": errors},
            }
        },
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """
    Set up global exception handlers.

    Args:
        app: FastAPI application instance
    """

    @app.exception_handler(CircleMatchException)
    async def circlematch_exception_handler(
        request: Request,
        exc: CircleMatchException,
    ) -> JSONResponse:
        """Convert application exceptions to the error envelope."""
        log = logger.error if exc.status_code >= 500 else logger.warning
        log(
            "Application error",
            error_code=exc.error_code,
            message=exc.message,
            status_code=exc.status_code,
            path=request.url.path,
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_dict(),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        """Malformed path or query parameters (e.g. a bad `at` instant)."""
        errors = [
            {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
            for err in exc.errors()
        ]
        logger.warning("Request validation error", errors=errors, path=request.url.path)
        return _validation_response(errors)

    @app.exception_handler(ValidationError)
    async def validation_exception_handler(
        request: Request,
        exc: ValidationError,
    ) -> JSONResponse:
        errors = exc.errors(include_url=False, include_context=False, include_input=False)
        logger.warning("Validation error", errors=errors, path=request.url.path)
        return _validation_response(errors)

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        """
        Handle unexpected exceptions.

        Full error details are logged but not exposed to clients.
        """
        logger.error(
            "Unexpected error",
            error=str(exc),
            error_type=type(exc).__name__,
            path=request.url.path,
            exc_info=True,
        )
        return JSONResponse(
            status_code=500,
            content={
                "error": {
                    "code": "INTERNAL_ERROR",
                    "message": "An unexpected error occurred",
                }
            },
        )
