"""
API Handlers

Route handlers for the CircleMatch API.

Handlers follow the pattern:
- Parse HTTP requests
- Call service methods
- Format HTTP responses

All business logic is delegated to the service layer.
"""

from circlematch.api.handlers import (
    health_handler,
    matching_handler,
)

__all__ = [
    "health_handler",
    "matching_handler",
]
