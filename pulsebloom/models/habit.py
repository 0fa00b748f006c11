"""
Habit + HabitLog: the habit series and its completion events.

HabitLog is append-only and holds at most one row per (habit_id,
period_date): period_date is the normalized period start (the day for
daily habits, the ISO-week Monday for weekly ones). The unique constraint
is the sole authority for "already completed this period".
"""
from datetime import datetime, date
import enum

from sqlalchemy import (
    Boolean, Date, DateTime, Enum, ForeignKey, Index, Integer, String, Text,
    UniqueConstraint, func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pulsebloom.db.base import Base


class HabitFrequency(str, enum.Enum):
    daily = "daily"
    weekly = "weekly"


class HabitCategory(str, enum.Enum):
    health = "health"
    fitness = "fitness"
    learning = "learning"
    mindfulness = "mindfulness"
    productivity = "productivity"
    custom = "custom"


class Habit(Base):
    __tablename__ = "habits"
    __table_args__ = (
        Index("ix_habits_user_sort", "user_id", "sort_order"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(128), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    frequency: Mapped[HabitFrequency] = mapped_column(
        Enum(HabitFrequency, name="habit_frequency_enum"),
        nullable=False,
        default=HabitFrequency.daily,
    )
    category: Mapped[HabitCategory] = mapped_column(
        Enum(HabitCategory, name="habit_category_enum"),
        nullable=False,
        default=HabitCategory.custom,
    )
    target_per_week: Mapped[int | None] = mapped_column(Integer, nullable=True)
    reminder_on: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    reminder_time: Mapped[str | None] = mapped_column(
        String(5), nullable=True, index=True, comment='Zero-padded 24h "HH:MM"'
    )
    is_archived: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    logs: Mapped[list["HabitLog"]] = relationship(
        back_populates="habit",
        cascade="all, delete-orphan",
        order_by="HabitLog.period_date",
    )


class HabitLog(Base):
    __tablename__ = "habit_logs"
    __table_args__ = (
        UniqueConstraint("habit_id", "period_date", name="uq_habit_log_habit_period"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    habit_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("habits.id", ondelete="CASCADE"), nullable=False, index=True
    )
    period_date: Mapped[date] = mapped_column(Date, nullable=False)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)
    completed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    habit: Mapped[Habit] = relationship(back_populates="logs")
