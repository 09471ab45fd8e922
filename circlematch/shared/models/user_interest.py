"""
UserInterest Entity Model

Interest tags declared by a user during onboarding (one row per tag).

SAMPLE USER_INTEREST RECORD:
┌──────────────────────────────────────────────────────────────────────────────┐
│ user_id          │ 550e8400-e29b-41d4-a716-446655440000                      │
│ interest_type    │ "deep_thinking"                                           │
└──────────────────────────────────────────────────────────────────────────────┘
"""

from datetime import datetime
from typing import TYPE_CHECKING
import uuid

from sqlalchemy import DateTime, ForeignKey, Text, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from circlematch.shared.models.base import Base


if TYPE_CHECKING:
    from circlematch.shared.models.user import User


class UserInterest(Base):
    """
    UserInterest model - junction of users and interest tags.

    Attributes:
        user_id: Owning user (part of composite PK)
        interest_type: Interest tag (part of composite PK), see InterestType
    """

    __tablename__ = "user_interests"

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    )

    interest_type: Mapped[str] = mapped_column(
        Text,
        primary_key=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=text("CURRENT_TIMESTAMP"),
        nullable=False,
    )

    user: Mapped["User"] = relationship(
        "User",
        back_populates="interests",
    )

    def __repr__(self) -> str:
        """String representation for debugging."""
        return f"<UserInterest(user_id={self.user_id}, interest={self.interest_type})>"
