"""
Core Module

Provides core functionality shared across the application:
- Structured logging
- Custom exceptions

Usage:
======
    from circlematch.shared.core.logging import logger, get_logger
    from circlematch.shared.core.exceptions import CircleMatchException, SlotNotFoundError

    logger.info("Starting matching run", ready_slots=2)
"""

from circlematch.shared.core.logging import (
    logger,
    get_logger,
    log_context,
    unbind_log_context,
    clear_log_context,
)
from circlematch.shared.core.exceptions import (
    CircleMatchException,
    ConfigurationError,
    ValidationError,
    NotFoundError,
    SlotNotFoundError,
    ConflictError,
    SlotAlreadyMatchedError,
    CollaboratorError,
    WaitlistFetchError,
    CirclePersistenceError,
)

__all__ = [
    # Logging
    "logger",
    "get_logger",
    "log_context",
    "unbind_log_context",
    "clear_log_context",
    # Exceptions
    "CircleMatchException",
    "ConfigurationError",
    "ValidationError",
    "NotFoundError",
    "SlotNotFoundError",
    "ConflictError",
    "SlotAlreadyMatchedError",
    "CollaboratorError",
    "WaitlistFetchError",
    "CirclePersistenceError",
]
