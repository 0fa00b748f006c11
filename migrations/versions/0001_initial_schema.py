"""initial schema

Revision ID: 0001
Revises:
Create Date: 2026-02-22 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # --- ENUM types ---
    habit_frequency_enum = sa.Enum("daily", "weekly", name="habit_frequency_enum")
    habit_frequency_enum.create(op.get_bind(), checkfirst=True)

    habit_category_enum = sa.Enum(
        "health", "fitness", "learning", "mindfulness", "productivity", "custom",
        name="habit_category_enum",
    )
    habit_category_enum.create(op.get_bind(), checkfirst=True)

    # --- mood_entries ---
    op.create_table(
        "mood_entries",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("mood_score", sa.Integer(), nullable=False),
        sa.Column("emoji", sa.String(16), nullable=False),
        sa.Column("journal_id", sa.String(64), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_mood_entries_id", "mood_entries", ["id"])
    op.create_index("ix_mood_entries_user_id", "mood_entries", ["user_id"])
    op.create_index("ix_mood_entries_user_created", "mood_entries", ["user_id", "created_at"])

    # --- habits ---
    op.create_table(
        "habits",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("title", sa.String(128), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("frequency", sa.Enum(
            "daily", "weekly", name="habit_frequency_enum", create_type=False,
        ), nullable=False),
        sa.Column("category", sa.Enum(
            "health", "fitness", "learning", "mindfulness", "productivity", "custom",
            name="habit_category_enum", create_type=False,
        ), nullable=False),
        sa.Column("target_per_week", sa.Integer(), nullable=True),
        sa.Column("reminder_on", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("reminder_time", sa.String(5), nullable=True),
        sa.Column("is_archived", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_habits_id", "habits", ["id"])
    op.create_index("ix_habits_user_id", "habits", ["user_id"])
    op.create_index("ix_habits_reminder_time", "habits", ["reminder_time"])

    # --- habit_logs ---
    op.create_table(
        "habit_logs",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("habit_id", sa.Integer(), nullable=False),
        sa.Column("period_date", sa.Date(), nullable=False),
        sa.Column("note", sa.Text(), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["habit_id"], ["habits.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("habit_id", "period_date", name="uq_habit_log_habit_period"),
    )
    op.create_index("ix_habit_logs_id", "habit_logs", ["id"])
    op.create_index("ix_habit_logs_habit_id", "habit_logs", ["habit_id"])


def downgrade() -> None:
    op.drop_table("habit_logs")
    op.drop_table("habits")
    op.drop_table("mood_entries")

    op.execute("DROP TYPE IF EXISTS habit_category_enum")
    op.execute("DROP TYPE IF EXISTS habit_frequency_enum")
