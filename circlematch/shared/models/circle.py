"""
Circle Entity Model

A persisted conversation group formed for one slot occurrence.

Circles are created once by the matching service and are immutable
afterwards: their member list never changes. The primary key is
deterministic (date + slot label + running index) so that a re-run of the
same slot can never silently create a second copy of the same circle.

SAMPLE CIRCLE RECORD:
┌──────────────────────────────────────────────────────────────────────────────┐
│ id               │ "2026-10-19_11AM_Circle_1"                                │
│ slot_key         │ "2026-10-19_11AM"                                         │
│ time_slot        │ 2026-10-19T18:00:00Z                                      │
│ location_id      │ 880e8400-e29b-41d4-a716-446655440000                      │
│ prompt_id        │ 990e8400-e29b-41d4-a716-446655440000                      │
│ status           │ "active"                                                  │
│ max_participants │ 4                                                         │
└──────────────────────────────────────────────────────────────────────────────┘
"""

from datetime import datetime
from typing import TYPE_CHECKING, Optional
import uuid

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from circlematch.shared.models.base import Base, TimestampMixin
from circlematch.shared.models.enums import CircleStatus


if TYPE_CHECKING:
    from circlematch.shared.models.circle_member import CircleMember
    from circlematch.shared.models.location import Location
    from circlematch.shared.models.conversation_prompt import ConversationPrompt


class Circle(Base, TimestampMixin):
    """
    Circle model.

    Attributes:
        id: Deterministic identifier, e.g. "2026-10-19_11AM_Circle_1"
        slot_key: Slot occurrence key, e.g. "2026-10-19_11AM"
        time_slot: Slot start instant (UTC)
        location_id: Assigned location, nullable if the pool was empty
        prompt_id: Assigned conversation prompt, nullable if the pool was empty
        status: CircleStatus value
        max_participants: Member count at creation

    Relationships:
        members: CircleMember rows of this circle
    """

    __tablename__ = "circles"

    # ═══════════════════════════════════════════════════════════════════════════
    # PRIMARY KEY
    # ═══════════════════════════════════════════════════════════════════════════

    id: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
    )

    # ═══════════════════════════════════════════════════════════════════════════
    # SLOT OCCURRENCE
    # ═══════════════════════════════════════════════════════════════════════════

    slot_key: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        index=True,
    )

    time_slot: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
    )

    # ═══════════════════════════════════════════════════════════════════════════
    # RESOURCES
    # ═══════════════════════════════════════════════════════════════════════════

    location_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("locations.id", ondelete="SET NULL"),
        nullable=True,
    )

    prompt_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("conversation_prompts.id", ondelete="SET NULL"),
        nullable=True,
    )

    # ═══════════════════════════════════════════════════════════════════════════
    # STATE
    # ═══════════════════════════════════════════════════════════════════════════

    status: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default=CircleStatus.ACTIVE.value,
    )

    max_participants: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    # ═══════════════════════════════════════════════════════════════════════════
    # RELATIONSHIPS
    # ═══════════════════════════════════════════════════════════════════════════

    members: Mapped[list["CircleMember"]] = relationship(
        "CircleMember",
        back_populates="circle",
        cascade="all, delete-orphan",
    )

    location: Mapped[Optional["Location"]] = relationship("Location")

    prompt: Mapped[Optional["ConversationPrompt"]] = relationship("ConversationPrompt")

    def __repr__(self) -> str:
        """String representation for debugging."""
        return f"<Circle(id={self.id}, members={self.max_participants})>"
