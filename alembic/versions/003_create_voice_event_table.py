"""Create voice_event table

Revision ID: 003
Revises: 002
Create Date: 2026-10-19

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

revision: str = "003"
down_revision: str | None = "002"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "voice_event",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("user.id"), nullable=False),
        sa.Column("received_at", sa.DateTime(), nullable=False),
        sa.Column("duration_seconds", sa.Float(), nullable=True),
        sa.Column("file_size_bytes", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="processing"),
        sa.Column("processing_type", sa.String(length=16), nullable=False, server_default="webhook"),
        sa.Column("enhancements_requested", sa.Text(), nullable=True),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_voice_event_user_id"), "voice_event", ["user_id"])
    op.create_index("ix_voice_event_user_received", "voice_event", ["user_id", "received_at"])


def downgrade() -> None:
    op.drop_index("ix_voice_event_user_received", table_name="voice_event")
    op.drop_index(op.f("ix_voice_event_user_id"), table_name="voice_event")
    op.drop_table("voice_event")
