"""
Custom Exceptions

Application-specific exceptions with HTTP status codes and error codes.

Exception Hierarchy:
====================
    CircleMatchException (base)
       │
       ├── ConfigurationError (500)      ← Malformed slot/strategy settings (fatal)
       ├── ValidationError (400)         ← Invalid input (bad date, bad label)
       ├── NotFoundError (404)
       │      └── SlotNotFoundError
       ├── ConflictError (409)
       │      └── SlotAlreadyMatchedError
       └── CollaboratorError (503)       ← Transient store/provider failure
              ├── WaitlistFetchError
              └── CirclePersistenceError

Error Taxonomy:
===============
- Configuration errors are detected at startup and stop the process.
- Collaborator errors are isolated to one slot occurrence and reported in
  that occurrence's MatchingResult; they are not retried within a run.
- Data errors (users missing attributes) never raise; they fall back to
  an "unknown" bucket inside the partitioner.

Usage:
======
    from circlematch.shared.core.exceptions import SlotNotFoundError

    raise SlotNotFoundError("2026-10-19_9AM")
    # Results in: {"error": {"code": "NOT_FOUND", "message": "Slot with id '2026-10-19_9AM' not found"}}
"""

from typing import Any, Optional


class CircleMatchException(Exception):
    """
    Base exception for all CircleMatch application errors.

    Attributes:
        message: Human-readable error message
        status_code: HTTP status code (default 500)
        error_code: Machine-readable error code
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        error_code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.status_code = status_code
        self.error_code = error_code or "INTERNAL_ERROR"
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert exception to dictionary for API response.

        Returns:
            Dictionary with error details for JSON response
        """
        return {
            "error": {
                "code": self.error_code,
                "message": self.message,
                "details": self.details,
            }
        }


# ═══════════════════════════════════════════════════════════════════════════════
# CONFIGURATION ERRORS (fatal at startup)
# ═══════════════════════════════════════════════════════════════════════════════


class ConfigurationError(CircleMatchException):
    """
    Invalid configuration (slot definitions, strategy names).

    Raised while building the slot calendar or the partitioner from
    settings. Callers at startup let it propagate.
    """

    def __init__(
        self,
        message: str = "Invalid configuration",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            message=message,
            status_code=500,
            error_code="CONFIGURATION_ERROR",
            details=details,
        )


# ═══════════════════════════════════════════════════════════════════════════════
# VALIDATION & NOT FOUND ERRORS (400, 404)
# ═══════════════════════════════════════════════════════════════════════════════


class ValidationError(CircleMatchException):
    """Validation error (400 Bad Request)."""

    def __init__(
        self,
        message: str = "Validation failed",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            message=message,
            status_code=400,
            error_code="VALIDATION_ERROR",
            details=details,
        )


class NotFoundError(CircleMatchException):
    """
    Resource not found error (404 Not Found).

    Example:
        raise NotFoundError("Circle", circle_id)
        # Message: "Circle with id '2026-10-19_11AM_Circle_1' not found"
    """

    def __init__(
        self,
        resource: str,
        resource_id: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        message = f"{resource} not found"
        if resource_id:
            message = f"{resource} with id '{resource_id}' not found"
        super().__init__(
            message=message,
            status_code=404,
            error_code="NOT_FOUND",
            details=details,
        )


class SlotNotFoundError(NotFoundError):
    """No configured slot matches the requested label."""

    def __init__(self, slot_key: str) -> None:
        super().__init__(resource="Slot", resource_id=slot_key)


# ═══════════════════════════════════════════════════════════════════════════════
# CONFLICT ERRORS (409)
# ═══════════════════════════════════════════════════════════════════════════════


class ConflictError(CircleMatchException):
    """Resource conflict error (409 Conflict)."""

    def __init__(
        self,
        message: str = "Resource conflict",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            message=message,
            status_code=409,
            error_code="CONFLICT",
            details=details,
        )


class SlotAlreadyMatchedError(ConflictError):
    """The slot occurrence already has a completed matching run."""

    def __init__(self, slot_key: str) -> None:
        super().__init__(
            message=f"Slot {slot_key} has already been matched",
            details={"slot_key": slot_key},
        )


# ═══════════════════════════════════════════════════════════════════════════════
# COLLABORATOR ERRORS (503)
# ═══════════════════════════════════════════════════════════════════════════════


class CollaboratorError(CircleMatchException):
    """
    A backing collaborator (waitlist provider, circle store) failed.

    These are transient from the matching service's point of view: the
    affected slot occurrence is reported as failed and the next run may
    retry it.
    """

    def __init__(
        self,
        collaborator: str,
        message: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        msg = message or f"{collaborator} failed"
        extra_details = details or {}
        extra_details["collaborator"] = collaborator
        super().__init__(
            message=msg,
            status_code=503,
            error_code="COLLABORATOR_ERROR",
            details=extra_details,
        )


class WaitlistFetchError(CollaboratorError):
    """Reading the waitlist snapshot for a slot occurrence failed."""

    def __init__(self, slot_key: str, reason: str) -> None:
        super().__init__(
            collaborator="waitlist",
            message=f"Failed to fetch waitlist for {slot_key}: {reason}",
            details={"slot_key": slot_key},
        )


class CirclePersistenceError(CollaboratorError):
    """Persisting a circle (or its members) failed and was rolled back."""

    def __init__(self, circle_id: str, reason: str) -> None:
        super().__init__(
            collaborator="circle_store",
            message=f"Failed to persist circle {circle_id}: {reason}",
            details={"circle_id": circle_id},
        )
