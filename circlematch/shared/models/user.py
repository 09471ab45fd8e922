"""
User Entity Model

Represents a person who completed onboarding and can join time slots.
The matching core only reads users; profile editing lives elsewhere.

Model Hierarchy:
================
    User
       ├── interests (UserInterest[])       - Declared interest tags
       ├── waitlist_entries (WaitlistEntry[]) - Slot opt-ins
       └── circle_memberships (CircleMember[])

SAMPLE USER RECORD:
┌──────────────────────────────────────────────────────────────────────────────┐
│ id               │ 550e8400-e29b-41d4-a716-446655440000                      │
│ full_name        │ "Alice Chen"                                              │
│ gender           │ "female"                                                  │
│ date_of_birth    │ 2002-04-11                                                │
└──────────────────────────────────────────────────────────────────────────────┘
"""

from datetime import date
from typing import TYPE_CHECKING, Optional
import uuid

from sqlalchemy import Date, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from circlematch.shared.models.base import Base, TimestampMixin


if TYPE_CHECKING:
    from circlematch.shared.models.user_interest import UserInterest
    from circlematch.shared.models.waitlist_entry import WaitlistEntry
    from circlematch.shared.models.circle_member import CircleMember


class User(Base, TimestampMixin):
    """
    User model.

    Gender and date of birth are optional: onboarding may be incomplete.
    Gender is stored as free text so an unexpected value degrades to the
    "unknown" matching bucket instead of failing a read.

    Attributes:
        id: Unique identifier (UUID v4)
        full_name: Display name
        gender: Self-declared gender (see Gender enum), nullable
        date_of_birth: Used to derive age bands, nullable
    """

    __tablename__ = "users"

    # ═══════════════════════════════════════════════════════════════════════════
    # PRIMARY KEY
    # ═══════════════════════════════════════════════════════════════════════════

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    # ═══════════════════════════════════════════════════════════════════════════
    # PROFILE
    # ═══════════════════════════════════════════════════════════════════════════

    full_name: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )

    gender: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )

    date_of_birth: Mapped[Optional[date]] = mapped_column(
        Date,
        nullable=True,
    )

    # ═══════════════════════════════════════════════════════════════════════════
    # RELATIONSHIPS
    # ═══════════════════════════════════════════════════════════════════════════

    interests: Mapped[list["UserInterest"]] = relationship(
        "UserInterest",
        back_populates="user",
        cascade="all, delete-orphan",
    )

    waitlist_entries: Mapped[list["WaitlistEntry"]] = relationship(
        "WaitlistEntry",
        back_populates="user",
        cascade="all, delete-orphan",
    )

    circle_memberships: Mapped[list["CircleMember"]] = relationship(
        "CircleMember",
        back_populates="user",
    )

    def __repr__(self) -> str:
        """String representation for debugging."""
        return f"<User(id={self.id}, gender={self.gender})>"
