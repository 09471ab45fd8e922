"""
Location Entity Model

A venue where circles meet. Locations form the pool the circle assembler
draws from; inactive locations are skipped.

SAMPLE LOCATION RECORD:
┌──────────────────────────────────────────────────────────────────────────────┐
│ id               │ 880e8400-e29b-41d4-a716-446655440000                      │
│ name             │ "Student Union Courtyard"                                 │
│ address          │ "308 Westwood Plaza"                                      │
│ latitude         │ 34.0703                                                   │
│ longitude        │ -118.4441                                                 │
│ is_active        │ true                                                      │
└──────────────────────────────────────────────────────────────────────────────┘
"""

from typing import Optional
import uuid

from sqlalchemy import Boolean, Float, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from circlematch.shared.models.base import Base, TimestampMixin


class Location(Base, TimestampMixin):
    """
    Location model.

    Attributes:
        id: Unique identifier (UUID v4)
        name: Display name
        description: Optional meeting-point hint
        address: Street address
        latitude / longitude: Map coordinates
        is_active: Whether the assembler may assign it
    """

    __tablename__ = "locations"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    name: Mapped[str] = mapped_column(Text, nullable=False)

    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    latitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    longitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
    )

    def __repr__(self) -> str:
        """String representation for debugging."""
        return f"<Location(id={self.id}, name={self.name})>"
