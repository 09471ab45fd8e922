"""
WaitlistEntry Entity Model

A user's opt-in to one slot occurrence. Created when the user joins the
waitlist and deleted if they opt out before the deadline. The matching
service only reads a snapshot of these rows at deadline time.

SAMPLE WAITLIST_ENTRY RECORD:
┌──────────────────────────────────────────────────────────────────────────────┐
│ id               │ 770e8400-e29b-41d4-a716-446655440000                      │
│ user_id          │ 550e8400-e29b-41d4-a716-446655440000                      │
│ time_slot        │ 2026-10-19T18:00:00Z   (11AM Pacific)                     │
└──────────────────────────────────────────────────────────────────────────────┘
"""

from datetime import datetime
from typing import TYPE_CHECKING
import uuid

from sqlalchemy import DateTime, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from circlematch.shared.models.base import Base, TimestampMixin


if TYPE_CHECKING:
    from circlematch.shared.models.user import User


class WaitlistEntry(Base, TimestampMixin):
    """
    WaitlistEntry model.

    A user can be on the waitlist of a given slot occurrence at most once.

    Attributes:
        id: Unique identifier (UUID v4)
        user_id: User who opted in
        time_slot: Slot occurrence start instant (stored as UTC)
    """

    __tablename__ = "waitlist_entries"
    __table_args__ = (
        UniqueConstraint("user_id", "time_slot", name="uq_waitlist_user_slot"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    time_slot: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
    )

    user: Mapped["User"] = relationship(
        "User",
        back_populates="waitlist_entries",
    )

    def __repr__(self) -> str:
        """String representation for debugging."""
        return f"<WaitlistEntry(user_id={self.user_id}, time_slot={self.time_slot})>"
