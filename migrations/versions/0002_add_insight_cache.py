"""add insight_cache table

Revision ID: 0002
Revises: 0001
Create Date: 2026-02-25

One row per user holding the last generated insights and the SHA-256
fingerprint of the data they were generated from.
"""
from alembic import op
import sqlalchemy as sa

revision = "0002"
down_revision = "0001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "insight_cache",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("data_hash", sa.String(64), nullable=False),
        sa.Column("insights", sa.Text(), nullable=False, server_default="[]"),
        sa.Column(
            "generated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )
    op.create_index("ix_insight_cache_id", "insight_cache", ["id"])
    op.create_index("ix_insight_cache_user_id", "insight_cache", ["user_id"], unique=True)


def downgrade() -> None:
    op.drop_index("ix_insight_cache_user_id", table_name="insight_cache")
    op.drop_table("insight_cache")
