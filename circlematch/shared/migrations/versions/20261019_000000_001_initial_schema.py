# pylint: skip-file
# ruff: noqa
"""Initial schema - create all tables

Revision ID: 001
Revises:
Create Date: 2026-10-19 00:00:00

This migration creates all database tables for the CircleMatch application.

Tables created:
- users: Participant profiles (name, gender, date of birth)
- user_interests: Interests per user (composite key)
- waitlist_entries: Users waiting for a slot occurrence
- locations: Meeting places assigned to circles
- conversation_prompts: Opening prompts assigned to circles
- circles: Matched groups, one per slot occurrence and index
- circle_members: Junction table, a user is in at most one circle per slot
- slot_matching_runs: Exactly-once guard and result record per slot
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    """Upgrade database schema."""
    # ═══════════════════════════════════════════════════════════════════════════
    # USERS
    # ═══════════════════════════════════════════════════════════════════════════
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("full_name", sa.Text(), nullable=True),
        sa.Column("gender", sa.Text(), nullable=True),
        sa.Column("date_of_birth", sa.Date(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "user_interests",
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("interest_type", sa.Text(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("user_id", "interest_type"),
    )

    # ═══════════════════════════════════════════════════════════════════════════
    # WAITLIST
    # ═══════════════════════════════════════════════════════════════════════════
    op.create_table(
        "waitlist_entries",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("time_slot", sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "time_slot", name="uq_waitlist_user_slot"),
    )
    op.create_index("ix_waitlist_entries_user_id", "waitlist_entries", ["user_id"])
    op.create_index("ix_waitlist_entries_time_slot", "waitlist_entries", ["time_slot"])

    # ═══════════════════════════════════════════════════════════════════════════
    # RESOURCES
    # ═══════════════════════════════════════════════════════════════════════════
    op.create_table(
        "locations",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("latitude", sa.Float(), nullable=True),
        sa.Column("longitude", sa.Float(), nullable=True),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "conversation_prompts",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("prompt_text", sa.Text(), nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )

    # ═══════════════════════════════════════════════════════════════════════════
    # CIRCLES
    # ═══════════════════════════════════════════════════════════════════════════
    op.create_table(
        "circles",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("slot_key", sa.String(length=32), nullable=False),
        sa.Column("time_slot", sa.DateTime(timezone=True), nullable=False),
        sa.Column("location_id", sa.Uuid(), nullable=True),
        sa.Column("prompt_id", sa.Uuid(), nullable=True),
        sa.Column("status", sa.Text(), nullable=False),
        sa.Column("max_participants", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["location_id"], ["locations.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["prompt_id"], ["conversation_prompts.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_circles_slot_key", "circles", ["slot_key"])
    op.create_index("ix_circles_time_slot", "circles", ["time_slot"])

    op.create_table(
        "circle_members",
        sa.Column("circle_id", sa.String(length=64), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("slot_key", sa.String(length=32), nullable=False),
        sa.Column(
            "joined_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["circle_id"], ["circles.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("circle_id", "user_id"),
        sa.UniqueConstraint("slot_key", "user_id", name="uq_circle_member_slot_user"),
    )
    op.create_index("ix_circle_members_slot_key", "circle_members", ["slot_key"])

    # ═══════════════════════════════════════════════════════════════════════════
    # MATCHING RUNS
    # ═══════════════════════════════════════════════════════════════════════════
    op.create_table(
        "slot_matching_runs",
        sa.Column("slot_key", sa.String(length=32), nullable=False),
        sa.Column("time_slot", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", sa.Text(), nullable=False),
        sa.Column("attempts", sa.Integer(), nullable=False),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("summary", sa.JSON(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("slot_key"),
    )


def downgrade() -> None:
    """Downgrade database schema."""
    # Drop tables in reverse order (respect foreign keys)
    op.drop_table("slot_matching_runs")
    op.drop_index("ix_circle_members_slot_key", table_name="circle_members")
    op.drop_table("circle_members")
    op.drop_index("ix_circles_time_slot", table_name="circles")
    op.drop_index("ix_circles_slot_key", table_name="circles")
    op.drop_table("circles")
    op.drop_table("conversation_prompts")
    op.drop_table("locations")
    op.drop_index("ix_waitlist_entries_time_slot", table_name="waitlist_entries")
    op.drop_index("ix_waitlist_entries_user_id", table_name="waitlist_entries")
    op.drop_table("waitlist_entries")
    op.drop_table("user_interests")
    op.drop_table("users")
