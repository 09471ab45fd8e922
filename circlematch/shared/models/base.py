"""
Base Model Classes

This module provides the foundational classes for all SQLAlchemy models in
CircleMatch: the declarative base and the timestamp mixin.

Model Hierarchy:
================
    Base                    ← SQLAlchemy declarative base
       │
       └── TimestampMixin   ← Automatic created_at/updated_at

Usage:
======
    from circlematch.shared.models.base import Base, TimestampMixin

    class Location(Base, TimestampMixin):
        __tablename__ = "locations"
        id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True)

Column Types:
=============
Models use the generic ``Uuid`` and ``JSON`` types. On PostgreSQL they map
to native UUID and JSON columns; on SQLite (used by the test suite) they
fall back to CHAR(32) and TEXT.
"""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import JSON, DateTime, text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utcnow() -> datetime:
    """Timezone-aware current UTC time, used for Python-side defaults."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """
    Normalize a datetime to aware UTC.

    SQLite hands back naive datetimes for timezone-aware columns; those are
    stored as UTC by this application, so a naive value is tagged as UTC.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy models.

    Maps Python dict annotations to JSON columns so run summaries can be
    stored without a dedicated schema.
    """

    type_annotation_map = {
        dict[str, Any]: JSON,
    }


class TimestampMixin:
    """
    Mixin that adds automatic timestamp tracking to models.

    - created_at: Set by the database on INSERT via server_default
    - updated_at: Set on INSERT, updated by SQLAlchemy on UPDATE via onupdate
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=text("CURRENT_TIMESTAMP"),
        nullable=False,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=text("CURRENT_TIMESTAMP"),
        onupdate=utcnow,
        nullable=False,
    )
