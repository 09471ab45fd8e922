"""
Logging Configuration

structlog on top of the stdlib logging module, configured once on import.

Renderers:
==========
    ENVIRONMENT=development  → colored console lines
        2026-10-19T17:00:00Z [info     ] Circle created   circle_id=2026-10-19_11AM_Circle_1 members=4

    anything else            → one JSON object per line
        {"event": "Circle created", "slot_key": "2026-10-19_11AM", "level": "info", ...}

Context:
========
The matching service binds ``slot_key`` while it processes one slot
occurrence, so collaborators log without passing it around:

    log_context(slot_key=occurrence.slot_key)
    try:
        ...
    finally:
        unbind_log_context("slot_key")

The worker clears the whole context after every tick.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.typing import Processor

from circlematch.config.settings import settings


def setup_logging() -> None:
    """Route structlog through stdlib logging at LOG_LEVEL."""
    level = getattr(logging, settings.LOG_LEVEL.upper())
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if settings.is_development:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))
    else:
        processors.extend([
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ])

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Named logger; modules pass ``__name__``."""
    return structlog.get_logger(name)


def log_context(**kwargs: Any) -> None:
    """Bind key-value pairs to every following log line in this context."""
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_log_context(*keys: str) -> None:
    structlog.contextvars.unbind_contextvars(*keys)


def clear_log_context() -> None:
    structlog.contextvars.clear_contextvars()


setup_logging()

logger = get_logger("circlematch")
