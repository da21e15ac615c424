"""Create user table

Revision ID: 001
Revises:
Create Date: 2026-10-19

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "user",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("email", sa.String(length=256), nullable=False),
        sa.Column("slug", sa.String(length=6), nullable=False),
        sa.Column("approved", sa.Boolean(), nullable=False, server_default="0"),
        sa.Column("api_key", sa.String(length=32), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_user_email"), "user", ["email"], unique=True)
    op.create_index(op.f("ix_user_slug"), "user", ["slug"], unique=True)
    op.create_index(op.f("ix_user_api_key"), "user", ["api_key"], unique=True)


def downgrade() -> None:
    op.drop_index(op.f("ix_user_api_key"), table_name="user")
    op.drop_index(op.f("ix_user_slug"), table_name="user")
    op.drop_index(op.f("ix_user_email"), table_name="user")
    op.drop_table("user")
