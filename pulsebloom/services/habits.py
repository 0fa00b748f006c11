"""
Habit service: habit lifecycle, per-period completion and habit analytics.

Lifecycle
---------
Habits are never hard-deleted. An archived habit is hidden from the
active list and gets no reminders or completions; restoring brings it
back with its log intact. Display order is the per-user `sort_order`,
appended on create and rewritten by reorder_habits.

Completion
----------
A completion is stored against its normalized period start (`period_date`):
the local day for daily habits, the ISO-week Monday for weekly habits. The
unique constraint on (habit_id, period_date) is the only authority for
"already completed": the insert is attempted and an IntegrityError is
mapped to HabitAlreadyCompletedError (409). No read-then-write check.

All reads are scoped by user_id; a habit owned by someone else is reported
as not found.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timezone, tzinfo
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from pulsebloom.core.config import settings
from pulsebloom.core.errors import (
    EmptyUpdateError,
    HabitAlreadyCompletedError,
    HabitArchivedError,
    HabitNotFoundError,
    NoCompletionToUndoError,
)
from pulsebloom.models.habit import Habit, HabitCategory, HabitFrequency, HabitLog
from pulsebloom.services import buckets
from pulsebloom.services.buckets import Heatmap, MonthlySummary, Sample
from pulsebloom.services.periods import (
    Period,
    PeriodKind,
    local_date,
    normalize,
    period_for_date,
)
from pulsebloom.services.scoring import (
    CompletionStats,
    CompositeScore,
    completion_stats,
    consistency_score,
)
from pulsebloom.services.streaks import StreakState, compute_streak

logger = logging.getLogger(__name__)

_KIND = {
    HabitFrequency.daily: PeriodKind.day,
    HabitFrequency.weekly: PeriodKind.week,
}


@dataclass
class HabitAnalytics:
    habit_id: int
    stats: CompletionStats
    streak: StreakState
    consistency: CompositeScore


def period_kind(habit: Habit) -> PeriodKind:
    return _KIND[HabitFrequency(habit.frequency)]


def _now(now: Optional[datetime]) -> datetime:
    return now or datetime.now(tz=timezone.utc)


def _tz(tz: Optional[tzinfo]) -> tzinfo:
    return tz or settings.tz


# ---------------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------------

def _next_sort_order(db: Session, user_id: str) -> int:
    current = db.query(func.max(Habit.sort_order)).filter(Habit.user_id == user_id).scalar()
    return 0 if current is None else current + 1


def create_habit(
    db: Session,
    user_id: str,
    title: str,
    frequency: HabitFrequency = HabitFrequency.daily,
    description: Optional[str] = None,
    category: HabitCategory = HabitCategory.custom,
    target_per_week: Optional[int] = None,
    reminder_on: bool = False,
    reminder_time: Optional[str] = None,
) -> Habit:
    habit = Habit(
        user_id=user_id,
        title=title,
        description=description,
        frequency=frequency,
        category=category,
        target_per_week=target_per_week,
        reminder_on=reminder_on,
        reminder_time=reminder_time,
        sort_order=_next_sort_order(db, user_id),
    )
    db.add(habit)
    db.commit()
    db.refresh(habit)
    logger.info("Created %s habit %s for user %s", habit.frequency.value, habit.id, user_id)
    return habit


def list_habits(
    db: Session,
    user_id: str,
    include_archived: bool = False,
    category: Optional[HabitCategory] = None,
) -> list[Habit]:
    query = db.query(Habit).filter(Habit.user_id == user_id)
    if not include_archived:
        query = query.filter(Habit.is_archived.is_(False))
    if category is not None:
        query = query.filter(Habit.category == category)
    return query.order_by(Habit.sort_order.asc(), Habit.id.asc()).all()


def list_archived_habits(db: Session, user_id: str) -> list[Habit]:
    return (
        db.query(Habit)
        .filter(Habit.user_id == user_id, Habit.is_archived.is_(True))
        .order_by(Habit.updated_at.desc(), Habit.id.desc())
        .all()
    )


def get_habit(db: Session, user_id: str, habit_id: int) -> Habit:
    habit = (
        db.query(Habit)
        .filter(Habit.id == habit_id, Habit.user_id == user_id)
        .first()
    )
    if habit is None:
        raise HabitNotFoundError(habit_id)
    return habit


_EDITABLE = ("title", "description", "category", "target_per_week")


def update_habit(db: Session, user_id: str, habit_id: int, changes: dict) -> Habit:
    """
    Partial update of the descriptive fields. Frequency is fixed at creation:
    stored period_date values are only meaningful for the original kind.
    """
    changes = {k: v for k, v in changes.items() if k in _EDITABLE}
    if not changes:
        raise EmptyUpdateError()
    habit = get_habit(db, user_id, habit_id)
    for key, value in changes.items():
        setattr(habit, key, value)
    db.commit()
    db.refresh(habit)
    logger.info("Updated habit %s: %s", habit_id, ", ".join(sorted(changes)))
    return habit


def _set_archived(db: Session, user_id: str, habit_id: int, archived: bool) -> Habit:
    habit = get_habit(db, user_id, habit_id)
    if habit.is_archived != archived:
        habit.is_archived = archived
        db.commit()
        db.refresh(habit)
        logger.info("Habit %s %s", habit_id, "archived" if archived else "restored")
    return habit


def archive_habit(db: Session, user_id: str, habit_id: int) -> Habit:
    """Soft delete. Logs are kept; the habit drops out of lists and reminders."""
    return _set_archived(db, user_id, habit_id, True)


def restore_habit(db: Session, user_id: str, habit_id: int) -> Habit:
    return _set_archived(db, user_id, habit_id, False)


def update_reminder(
    db: Session,
    user_id: str,
    habit_id: int,
    reminder_on: bool,
    reminder_time: Optional[str] = None,
) -> Habit:
    habit = get_habit(db, user_id, habit_id)
    habit.reminder_on = reminder_on
    if reminder_time is not None:
        habit.reminder_time = reminder_time
    db.commit()
    db.refresh(habit)
    return habit


def reorder_habits(db: Session, user_id: str, habit_ids: list[int]) -> list[Habit]:
    """sort_order follows the position in habit_ids. Every id must belong to the user."""
    owned = {
        h.id: h
        for h in db.query(Habit).filter(Habit.user_id == user_id, Habit.id.in_(habit_ids))
    }
    for habit_id in habit_ids:
        if habit_id not in owned:
            raise HabitNotFoundError(habit_id)
    for position, habit_id in enumerate(habit_ids):
        owned[habit_id].sort_order = position
    db.commit()
    return list_habits(db, user_id)


def _logs(db: Session, habit_id: int) -> list[HabitLog]:
    return (
        db.query(HabitLog)
        .filter(HabitLog.habit_id == habit_id)
        .order_by(HabitLog.period_date.desc())
        .all()
    )


# ---------------------------------------------------------------------------
# Completion
# ---------------------------------------------------------------------------

def complete_habit(
    db: Session,
    user_id: str,
    habit_id: int,
    note: Optional[str] = None,
    now: Optional[datetime] = None,
    tz: Optional[tzinfo] = None,
) -> HabitLog:
    habit = get_habit(db, user_id, habit_id)
    if habit.is_archived:
        raise HabitArchivedError(habit_id)

    now = _now(now)
    period = normalize(now, period_kind(habit), _tz(tz))
    log = HabitLog(
        habit_id=habit.id,
        period_date=period.start_date,
        note=note,
        completed_at=now.astimezone(timezone.utc),
    )
    db.add(log)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HabitAlreadyCompletedError(habit_id, period.start_date)
    db.refresh(log)
    logger.info("Habit %s completed for period %s", habit_id, period.key)
    return log


def undo_last_completion(db: Session, user_id: str, habit_id: int) -> date:
    """Removes the most recent completion and returns its period_date."""
    habit = get_habit(db, user_id, habit_id)
    log = (
        db.query(HabitLog)
        .filter(HabitLog.habit_id == habit.id)
        .order_by(HabitLog.period_date.desc())
        .first()
    )
    if log is None:
        raise NoCompletionToUndoError(habit_id)
    period_date = log.period_date
    db.delete(log)
    db.commit()
    logger.info("Habit %s completion for %s undone", habit_id, period_date)
    return period_date


# ---------------------------------------------------------------------------
# Analytics
# ---------------------------------------------------------------------------

def _periods(logs: list[HabitLog], kind: PeriodKind, tz: tzinfo) -> list[Period]:
    return [period_for_date(log.period_date, kind, tz) for log in logs]


def _samples(logs: list[HabitLog], tz: tzinfo) -> list[Sample]:
    return [
        Sample(occurred_at=datetime.combine(log.period_date, time.min, tzinfo=tz))
        for log in logs
    ]


def habit_streak(
    db: Session,
    user_id: str,
    habit_id: int,
    now: Optional[datetime] = None,
    tz: Optional[tzinfo] = None,
) -> StreakState:
    habit = get_habit(db, user_id, habit_id)
    tz = _tz(tz)
    kind = period_kind(habit)
    return compute_streak(_periods(_logs(db, habit.id), kind, tz), kind, _now(now), tz=tz)


def habit_analytics(
    db: Session,
    user_id: str,
    habit_id: int,
    now: Optional[datetime] = None,
    tz: Optional[tzinfo] = None,
) -> HabitAnalytics:
    habit = get_habit(db, user_id, habit_id)
    tz = _tz(tz)
    now = _now(now)
    kind = period_kind(habit)
    logs = _logs(db, habit.id)

    stats = completion_stats(
        created_on=local_date(habit.created_at, tz),
        completions=len(logs),
        kind=kind,
        today=local_date(now, tz),
    )
    streak = compute_streak(_periods(logs, kind, tz), kind, now, tz=tz)
    last_completed = logs[0].completed_at if logs else None
    if last_completed is not None and last_completed.tzinfo is None:
        last_completed = last_completed.replace(tzinfo=timezone.utc)

    return HabitAnalytics(
        habit_id=habit.id,
        stats=stats,
        streak=streak,
        consistency=consistency_score(stats.completion_rate, streak, last_completed, now, kind),
    )


def habit_heatmap(
    db: Session,
    user_id: str,
    habit_id: int,
    days: int,
    today: Optional[date] = None,
    tz: Optional[tzinfo] = None,
) -> Heatmap:
    habit = get_habit(db, user_id, habit_id)
    tz = _tz(tz)
    today = today or local_date(_now(None), tz)
    return buckets.heatmap(
        _samples(_logs(db, habit.id), tz),
        days=days,
        today=today,
        max_days=settings.HEATMAP_MAX_DAYS,
        tz=tz,
    )


def habit_monthly_summary(
    db: Session,
    user_id: str,
    habit_id: int,
    month: str,
    tz: Optional[tzinfo] = None,
) -> MonthlySummary:
    habit = get_habit(db, user_id, habit_id)
    tz = _tz(tz)
    return buckets.monthly_calendar(_samples(_logs(db, habit.id), tz), month, tz)
