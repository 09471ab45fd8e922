"""
Pydantic Schemas

Request and response models for the API and the matching records.

Schema Categories:
==================
- common: Base schemas, error and health responses
- matching: MatchingResult, MatchingRunReport, slot calendar views

Usage:
======
    from circlematch.shared.schemas.matching import MatchingResult, MatchingRunReport
    from circlematch.shared.schemas.common import ErrorResponse
"""

from circlematch.shared.schemas.common import (
    BaseSchema,
    CamelSchema,
    ErrorDetail,
    ErrorResponse,
    HealthResponse,
)
from circlematch.shared.schemas.matching import (
    MatchingResultStatus,
    MatchingResult,
    MatchingRunReport,
    SlotView,
    SlotCalendarResponse,
    MatchingRunResponse,
)

__all__ = [
    # Common
    "BaseSchema",
    "CamelSchema",
    "ErrorDetail",
    "ErrorResponse",
    "HealthResponse",
    # Matching
    "MatchingResultStatus",
    "MatchingResult",
    "MatchingRunReport",
    "SlotView",
    "SlotCalendarResponse",
    "MatchingRunResponse",
]
