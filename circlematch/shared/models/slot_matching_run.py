"""
SlotMatchingRun Entity Model

Persisted matching status of one slot occurrence.

The primary key is the slot key itself, so inserting the row is the
conditional write that claims an occurrence: two concurrent runs cannot
both insert it. Status moves IN_PROGRESS → DONE, or IN_PROGRESS → FAILED
(a failed or stale run may be claimed again).

SAMPLE SLOT_MATCHING_RUN RECORD:
┌──────────────────────────────────────────────────────────────────────────────┐
│ slot_key         │ "2026-10-19_11AM"                                         │
│ time_slot        │ 2026-10-19T18:00:00Z                                      │
│ status           │ "done"                                                    │
│ attempts         │ 1                                                         │
│ started_at       │ 2026-10-19T17:00:00Z                                      │
│ completed_at     │ 2026-10-19T17:00:01Z                                      │
│ summary          │ {"totalUsers": 14, "circlesCreated": 4, ...}              │
└──────────────────────────────────────────────────────────────────────────────┘
"""

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from circlematch.shared.models.base import Base, TimestampMixin
from circlematch.shared.models.enums import MatchingStatus


class SlotMatchingRun(Base, TimestampMixin):
    """
    SlotMatchingRun model - one row per slot occurrence that was claimed.

    Attributes:
        slot_key: Slot occurrence key (PK)
        time_slot: Slot start instant (UTC)
        status: MatchingStatus value
        attempts: Number of times the occurrence was claimed
        started_at: When the current attempt claimed the occurrence
        completed_at: When the current attempt finished
        error_message: Failure reason of the last attempt
        summary: MatchingResult record of the last attempt
    """

    __tablename__ = "slot_matching_runs"

    slot_key: Mapped[str] = mapped_column(
        String(32),
        primary_key=True,
    )

    time_slot: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    status: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default=MatchingStatus.IN_PROGRESS.value,
    )

    attempts: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=1,
    )

    started_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    completed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    error_message: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )

    summary: Mapped[Optional[dict[str, Any]]] = mapped_column(
        nullable=True,
    )

    def __repr__(self) -> str:
        """String representation for debugging."""
        return f"<SlotMatchingRun(slot_key={self.slot_key}, status={self.status})>"
