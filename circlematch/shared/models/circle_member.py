"""
CircleMember Entity Model

Junction table linking users to circles.

Besides the composite primary key, every row carries the slot key of its
circle so the database can enforce that a user is assigned to at most one
circle per slot occurrence (unique (slot_key, user_id)). This constraint is
what makes concurrent or repeated matching runs safe.

SAMPLE CIRCLE_MEMBER RECORD:
┌──────────────────────────────────────────────────────────────────────────────┐
│ circle_id        │ "2026-10-19_11AM_Circle_1"                                │
│ user_id          │ 550e8400-e29b-41d4-a716-446655440000                      │
│ slot_key         │ "2026-10-19_11AM"                                         │
└──────────────────────────────────────────────────────────────────────────────┘
"""

from datetime import datetime
from typing import TYPE_CHECKING
import uuid

from sqlalchemy import DateTime, ForeignKey, String, UniqueConstraint, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from circlematch.shared.models.base import Base


if TYPE_CHECKING:
    from circlematch.shared.models.circle import Circle
    from circlematch.shared.models.user import User


class CircleMember(Base):
    """
    CircleMember model.

    Attributes:
        circle_id: The circle (part of composite PK)
        user_id: The member (part of composite PK)
        slot_key: Slot occurrence of the circle, unique together with user_id
        joined_at: Creation time
    """

    __tablename__ = "circle_members"
    __table_args__ = (
        UniqueConstraint("slot_key", "user_id", name="uq_circle_member_slot_user"),
    )

    circle_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("circles.id", ondelete="CASCADE"),
        primary_key=True,
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    )

    slot_key: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        index=True,
    )

    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=text("CURRENT_TIMESTAMP"),
        nullable=False,
    )

    circle: Mapped["Circle"] = relationship(
        "Circle",
        back_populates="members",
    )

    user: Mapped["User"] = relationship(
        "User",
        back_populates="circle_memberships",
    )

    def __repr__(self) -> str:
        """String representation for debugging."""
        return f"<CircleMember(circle_id={self.circle_id}, user_id={self.user_id})>"
