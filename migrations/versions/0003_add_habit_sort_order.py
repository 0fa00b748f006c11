"""add habits.sort_order

Revision ID: 0003
Revises: 0002
Create Date: 2026-02-27

User-defined display order for PATCH /habits/reorder. Existing rows keep
their creation order through the id tie-break.
"""
from alembic import op
import sqlalchemy as sa

revision = "0003"
down_revision = "0002"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.add_column(
        "habits",
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
    )
    op.create_index("ix_habits_user_sort", "habits", ["user_id", "sort_order"])


def downgrade() -> None:
    op.drop_index("ix_habits_user_sort", table_name="habits")
    op.drop_column("habits", "sort_order")
