"""
Habits router: habit lifecycle, per-period completion and habit analytics.

POST   /habits - create a habit
GET    /habits - list the caller's active habits in display order
GET    /habits/archived - list archived habits
PATCH  /habits/reorder - set the display order
GET    /habits/{id} - one habit
PATCH  /habits/{id} - edit title, description, category or weekly target
DELETE /habits/{id} - archive (soft delete)
PATCH  /habits/{id}/restore - unarchive
PATCH  /habits/{id}/reminder - reminder on/off and time
POST   /habits/{id}/complete - complete for the current period
DELETE /habits/{id}/complete - undo the most recent completion
GET    /habits/{id}/streak - current and longest streak
GET    /habits/{id}/analytics - completion rate and consistency score
GET    /habits/{id}/heatmap - per-day completion heatmap
GET    /habits/{id}/summary/monthly - calendar month breakdown
"""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from pulsebloom.core.config import settings
from pulsebloom.core.deps import CurrentUser
from pulsebloom.db.base import get_db
from pulsebloom.models.habit import Habit, HabitCategory, HabitLog
from pulsebloom.routers._serializers import (
    heatmap_to_response,
    iso_utc,
    monthly_to_response,
    streak_to_response,
)
from pulsebloom.schemas.common import (
    ErrorResponse,
    HeatmapResponse,
    MonthlySummaryResponse,
    StreakResponse,
)
from pulsebloom.schemas.habit import (
    ConsistencyResponse,
    HabitAnalyticsResponse,
    HabitCompleteRequest,
    HabitCreate,
    HabitListResponse,
    HabitLogResponse,
    HabitReminderUpdate,
    HabitReorderRequest,
    HabitResponse,
    HabitUndoResponse,
    HabitUpdate,
)
from pulsebloom.services import habits

router = APIRouter(prefix="/habits", tags=["habits"])

_NOT_FOUND = {404: {"model": ErrorResponse, "description": "Habit not found for this user."}}


# ---------------------------------------------------------------------------
# Serialization helpers
# ---------------------------------------------------------------------------

def _to_response(h: Habit) -> HabitResponse:
    return HabitResponse(
        id=h.id,
        title=h.title,
        description=h.description,
        frequency=h.frequency.value,
        category=h.category.value,
        target_per_week=h.target_per_week,
        reminder_on=h.reminder_on,
        reminder_time=h.reminder_time,
        is_archived=h.is_archived,
        sort_order=h.sort_order,
        created_at=iso_utc(h.created_at),
    )


def _log_to_response(log: HabitLog) -> HabitLogResponse:
    return HabitLogResponse(
        id=log.id,
        habit_id=log.habit_id,
        period_date=str(log.period_date),
        note=log.note,
        completed_at=iso_utc(log.completed_at),
    )


# ---------------------------------------------------------------------------
# CRUD and lifecycle
# ---------------------------------------------------------------------------

@router.post(
    "",
    response_model=HabitResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a habit",
)
def create_habit(payload: HabitCreate, user_id: CurrentUser, db: Session = Depends(get_db)):
    habit = habits.create_habit(
        db,
        user_id=user_id,
        title=payload.title,
        frequency=payload.frequency,
        description=payload.description,
        category=payload.category,
        target_per_week=payload.target_per_week,
        reminder_on=payload.reminder_on,
        reminder_time=payload.reminder_time,
    )
    return _to_response(habit)


@router.get("", response_model=HabitListResponse, summary="List habits")
def list_habits(
    user_id: CurrentUser,
    include_archived: bool = Query(default=False),
    category: Optional[HabitCategory] = Query(default=None),
    db: Session = Depends(get_db),
):
    items = habits.list_habits(db, user_id, include_archived=include_archived, category=category)
    return HabitListResponse(total=len(items), items=[_to_response(h) for h in items])


@router.get("/archived", response_model=HabitListResponse, summary="List archived habits")
def list_archived_habits(user_id: CurrentUser, db: Session = Depends(get_db)):
    items = habits.list_archived_habits(db, user_id)
    return HabitListResponse(total=len(items), items=[_to_response(h) for h in items])


@router.patch(
    "/reorder",
    response_model=HabitListResponse,
    summary="Set the display order of habits",
    responses=_NOT_FOUND,
)
def reorder_habits(payload: HabitReorderRequest, user_id: CurrentUser, db: Session = Depends(get_db)):
    """Listed habits take the position of their id in habit_ids; the rest keep theirs."""
    items = habits.reorder_habits(db, user_id, payload.habit_ids)
    return HabitListResponse(total=len(items), items=[_to_response(h) for h in items])


@router.get("/{habit_id}", response_model=HabitResponse, summary="Get a habit", responses=_NOT_FOUND)
def get_habit(habit_id: int, user_id: CurrentUser, db: Session = Depends(get_db)):
    return _to_response(habits.get_habit(db, user_id, habit_id))


@router.patch(
    "/{habit_id}",
    response_model=HabitResponse,
    summary="Update a habit",
    responses={**_NOT_FOUND, 400: {"model": ErrorResponse, "description": "Empty update body."}},
)
def update_habit(habit_id: int, payload: HabitUpdate, user_id: CurrentUser, db: Session = Depends(get_db)):
    habit = habits.update_habit(db, user_id, habit_id, payload.model_dump(exclude_unset=True))
    return _to_response(habit)


@router.delete(
    "/{habit_id}",
    response_model=HabitResponse,
    summary="Archive a habit",
    responses=_NOT_FOUND,
)
def archive_habit(habit_id: int, user_id: CurrentUser, db: Session = Depends(get_db)):
    """Soft delete: the habit and its log are kept and can be restored."""
    return _to_response(habits.archive_habit(db, user_id, habit_id))


@router.patch(
    "/{habit_id}/restore",
    response_model=HabitResponse,
    summary="Restore an archived habit",
    responses=_NOT_FOUND,
)
def restore_habit(habit_id: int, user_id: CurrentUser, db: Session = Depends(get_db)):
    return _to_response(habits.restore_habit(db, user_id, habit_id))


@router.patch(
    "/{habit_id}/reminder",
    response_model=HabitResponse,
    summary="Update reminder settings",
    responses=_NOT_FOUND,
)
def update_reminder(
    habit_id: int,
    payload: HabitReminderUpdate,
    user_id: CurrentUser,
    db: Session = Depends(get_db),
):
    habit = habits.update_reminder(db, user_id, habit_id, payload.reminder_on, payload.reminder_time)
    return _to_response(habit)


# ---------------------------------------------------------------------------
# Completion
# ---------------------------------------------------------------------------

@router.post(
    "/{habit_id}/complete",
    response_model=HabitLogResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Complete a habit for the current period",
    responses={
        **_NOT_FOUND,
        400: {"model": ErrorResponse, "description": "Habit is archived."},
        409: {"model": ErrorResponse, "description": "Already completed this period."},
    },
)
def complete_habit(
    habit_id: int,
    user_id: CurrentUser,
    payload: HabitCompleteRequest | None = None,
    db: Session = Depends(get_db),
):
    """
    Records one completion for the current day (daily habits) or ISO week
    (weekly habits). A second completion in the same period returns 409
    HABIT_ALREADY_COMPLETED.
    """
    log = habits.complete_habit(db, user_id, habit_id, note=payload.note if payload else None)
    return _log_to_response(log)


@router.delete(
    "/{habit_id}/complete",
    response_model=HabitUndoResponse,
    summary="Undo the most recent completion",
    responses={404: {"model": ErrorResponse, "description": "Habit not found, or nothing to undo."}},
)
def undo_completion(habit_id: int, user_id: CurrentUser, db: Session = Depends(get_db)):
    period_date = habits.undo_last_completion(db, user_id, habit_id)
    return HabitUndoResponse(habit_id=habit_id, period_date=str(period_date))


# ---------------------------------------------------------------------------
# Analytics
# ---------------------------------------------------------------------------

@router.get(
    "/{habit_id}/streak",
    response_model=StreakResponse,
    summary="Habit streak",
    responses=_NOT_FOUND,
)
def habit_streak(habit_id: int, user_id: CurrentUser, db: Session = Depends(get_db)):
    return streak_to_response(habits.habit_streak(db, user_id, habit_id))


@router.get(
    "/{habit_id}/analytics",
    response_model=HabitAnalyticsResponse,
    summary="Habit completion analytics",
    responses=_NOT_FOUND,
)
def habit_analytics(habit_id: int, user_id: CurrentUser, db: Session = Depends(get_db)):
    """
    Possible periods count from the creation day through today, inclusive.
    Consistency = 0.5 × completion rate + 0.3 × streak ratio + 0.2 × recency.
    """
    a = habits.habit_analytics(db, user_id, habit_id)
    return HabitAnalyticsResponse(
        habit_id=a.habit_id,
        total_completions=a.stats.total_completions,
        total_possible_periods=a.stats.total_possible_periods,
        completion_rate=a.stats.completion_rate,
        missed_periods=a.stats.missed_periods,
        current_streak=a.streak.current,
        longest_streak=a.streak.longest,
        consistency=ConsistencyResponse(value=a.consistency.value, components=a.consistency.components),
        streak=streak_to_response(a.streak),
    )


@router.get(
    "/{habit_id}/heatmap",
    response_model=HeatmapResponse,
    summary="Habit completion heatmap",
    responses=_NOT_FOUND,
)
def habit_heatmap(
    habit_id: int,
    user_id: CurrentUser,
    days: int = Query(default=settings.HEATMAP_DEFAULT_DAYS),
    db: Session = Depends(get_db),
):
    return heatmap_to_response(habits.habit_heatmap(db, user_id, habit_id, days))


@router.get(
    "/{habit_id}/summary/monthly",
    response_model=MonthlySummaryResponse,
    summary="Habit monthly summary",
    responses=_NOT_FOUND,
)
def habit_monthly_summary(
    habit_id: int,
    user_id: CurrentUser,
    month: str = Query(description="Month in YYYY-MM format.", examples=["2026-02"]),
    db: Session = Depends(get_db),
):
    return monthly_to_response(habits.habit_monthly_summary(db, user_id, habit_id, month))
