"""
ConversationPrompt Entity Model

An opening question handed to a circle to start the conversation.

SAMPLE CONVERSATION_PROMPT RECORD:
┌──────────────────────────────────────────────────────────────────────────────┐
│ id               │ 990e8400-e29b-41d4-a716-446655440000                      │
│ prompt_text      │ "What is something you changed your mind about?"          │
│ is_active        │ true                                                      │
└──────────────────────────────────────────────────────────────────────────────┘
"""

import uuid

from sqlalchemy import Boolean, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from circlematch.shared.models.base import Base, TimestampMixin


class ConversationPrompt(Base, TimestampMixin):
    """
    ConversationPrompt model.

    Attributes:
        id: Unique identifier (UUID v4)
        prompt_text: The question shown to the circle
        is_active: Whether the assembler may assign it
    """

    __tablename__ = "conversation_prompts"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    prompt_text: Mapped[str] = mapped_column(Text, nullable=False)

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
    )

    def __repr__(self) -> str:
        """String representation for debugging."""
        return f"<ConversationPrompt(id={self.id})>"
