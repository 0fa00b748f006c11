"""
Mood router: mood entries and mood analytics.

POST   /mood - log a mood entry
GET    /mood - list entries, newest first
GET    /mood/streak - current and longest daily logging streak
GET    /mood/heatmap - per-day averages for the last N days
GET    /mood/summary/monthly - calendar month breakdown
GET    /mood/insights/daily - day-of-week and time-of-day patterns
GET    /mood/analytics - score distribution and extremes
GET    /mood/trends/weekly - ISO-week averages
GET    /mood/trends/rolling - trailing N-day rolling average
GET    /mood/burnout-risk - composite burnout risk score
GET    /mood/{id} - one entry
PATCH  /mood/{id} - partial update
DELETE /mood/{id} - delete an entry
"""
from __future__ import annotations

from datetime import date
from typing import Optional, Union

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from pulsebloom.core.config import settings
from pulsebloom.core.deps import CurrentUser
from pulsebloom.db.base import get_db
from pulsebloom.models.mood_entry import MoodEntry
from pulsebloom.routers._serializers import (
    heatmap_to_response,
    insufficient_to_response,
    iso_utc,
    monthly_to_response,
    streak_to_response,
)
from pulsebloom.schemas.common import (
    ErrorResponse,
    HeatmapResponse,
    InsufficientDataResponse,
    MonthlySummaryResponse,
    StreakResponse,
)
from pulsebloom.schemas.mood import (
    BurnoutRiskResponse,
    DailyPatternsResponse,
    MoodAnalyticsResponse,
    MoodCreate,
    MoodListResponse,
    MoodResponse,
    MoodUpdate,
    PatternBucketResponse,
    RollingAverageResponse,
    RollingPointResponse,
    WeeklyTrendPoint,
    WeeklyTrendResponse,
)
from pulsebloom.services import moods
from pulsebloom.services.buckets import ROLLING_WINDOW_DAYS, DailyPatterns
from pulsebloom.services.outcomes import InsufficientData

router = APIRouter(prefix="/mood", tags=["mood"])

_START = Query(default=None, description="First local day (inclusive).", examples=["2026-02-01"])
_END = Query(default=None, description="Last local day (inclusive).", examples=["2026-02-28"])

_NOT_FOUND = {404: {"model": ErrorResponse, "description": "Mood entry not found for this user."}}


# ---------------------------------------------------------------------------
# Serialization helpers
# ---------------------------------------------------------------------------

def _to_response(entry: MoodEntry) -> MoodResponse:
    return MoodResponse(
        id=entry.id,
        mood_score=entry.mood_score,
        emoji=entry.emoji,
        journal_id=entry.journal_id,
        created_at=iso_utc(entry.created_at),
    )


def _patterns_to_response(p: DailyPatterns) -> DailyPatternsResponse:
    return DailyPatternsResponse(
        total_entries=p.total_entries,
        by_weekday=[PatternBucketResponse(**vars(b)) for b in p.by_weekday],
        by_time_of_day=[PatternBucketResponse(**vars(b)) for b in p.by_time_of_day],
        best_weekday=p.best_weekday,
        worst_weekday=p.worst_weekday,
        most_consistent_weekday=p.most_consistent_weekday,
        best_time_of_day=p.best_time_of_day,
    )


# ---------------------------------------------------------------------------
# POST /mood
# ---------------------------------------------------------------------------

@router.post(
    "",
    response_model=MoodResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Log a mood entry",
)
def create_mood(payload: MoodCreate, user_id: CurrentUser, db: Session = Depends(get_db)):
    entry = moods.add_mood(
        db,
        user_id=user_id,
        mood_score=payload.mood_score,
        emoji=payload.emoji,
        journal_id=payload.journal_id,
        created_at=payload.created_at,
    )
    return _to_response(entry)


# ---------------------------------------------------------------------------
# Streak / heatmap / monthly
# ---------------------------------------------------------------------------

@router.get("/streak", response_model=StreakResponse, summary="Daily mood logging streak")
def mood_streak(user_id: CurrentUser, db: Session = Depends(get_db)):
    """
    The streak stays alive until a whole day is skipped: not having logged
    *yet* today keeps yesterday's streak.
    """
    return streak_to_response(moods.mood_streak(db, user_id))


@router.get("/heatmap", response_model=HeatmapResponse, summary="Per-day mood heatmap")
def mood_heatmap(
    user_id: CurrentUser,
    days: int = Query(
        default=settings.HEATMAP_DEFAULT_DAYS,
        description=f"Window length ending today. At most {settings.HEATMAP_MAX_DAYS}.",
    ),
    db: Session = Depends(get_db),
):
    return heatmap_to_response(moods.mood_heatmap(db, user_id, days=days))


@router.get(
    "/summary/monthly",
    response_model=MonthlySummaryResponse,
    summary="Calendar month mood summary",
)
def mood_monthly_summary(
    user_id: CurrentUser,
    month: str = Query(description="Month in YYYY-MM format.", examples=["2026-02"]),
    db: Session = Depends(get_db),
):
    return monthly_to_response(moods.mood_monthly_summary(db, user_id, month))


# ---------------------------------------------------------------------------
# Patterns / analytics / trends
# ---------------------------------------------------------------------------

@router.get(
    "/insights/daily",
    response_model=Union[DailyPatternsResponse, InsufficientDataResponse],
    summary="Day-of-week and time-of-day mood patterns",
)
def mood_daily_patterns(
    user_id: CurrentUser,
    start_date: Optional[date] = _START,
    end_date: Optional[date] = _END,
    db: Session = Depends(get_db),
):
    result = moods.mood_daily_patterns(db, user_id, start_date, end_date)
    if isinstance(result, InsufficientData):
        return insufficient_to_response(result)
    return _patterns_to_response(result)


@router.get("/analytics", response_model=MoodAnalyticsResponse, summary="Mood score statistics")
def mood_analytics(
    user_id: CurrentUser,
    start_date: Optional[date] = _START,
    end_date: Optional[date] = _END,
    db: Session = Depends(get_db),
):
    s = moods.mood_analytics(db, user_id, start_date, end_date)
    return MoodAnalyticsResponse(
        total_entries=s.total_entries,
        average=s.average,
        highest=s.highest,
        lowest=s.lowest,
        most_frequent=s.most_frequent,
        distribution=s.distribution,
    )


@router.get("/trends/weekly", response_model=WeeklyTrendResponse, summary="Weekly mood averages")
def mood_weekly_trend(
    user_id: CurrentUser,
    start_date: Optional[date] = _START,
    end_date: Optional[date] = _END,
    db: Session = Depends(get_db),
):
    points = moods.mood_weekly_trend(db, user_id, start_date, end_date)
    return WeeklyTrendResponse(
        total_weeks=len(points),
        weeks=[WeeklyTrendPoint(week=p.week, average=p.average, count=p.count) for p in points],
    )


@router.get(
    "/trends/rolling",
    response_model=RollingAverageResponse,
    summary="Trailing rolling mood average",
)
def mood_rolling_average(
    user_id: CurrentUser,
    window_days: int = Query(default=ROLLING_WINDOW_DAYS, description="Trailing window in days."),
    start_date: Optional[date] = _START,
    end_date: Optional[date] = _END,
    db: Session = Depends(get_db),
):
    points = moods.mood_rolling_average(db, user_id, window_days, start_date, end_date)
    return RollingAverageResponse(
        window_days=window_days,
        points=[
            RollingPointResponse(
                date=str(p.date),
                daily_average=p.daily_average,
                rolling_average=p.rolling_average,
                days_in_window=p.days_in_window,
            )
            for p in points
        ],
    )


@router.get(
    "/burnout-risk",
    response_model=Union[BurnoutRiskResponse, InsufficientDataResponse],
    summary="Composite burnout risk",
)
def mood_burnout_risk(
    user_id: CurrentUser,
    start_date: Optional[date] = _START,
    end_date: Optional[date] = _END,
    db: Session = Depends(get_db),
):
    """
    score = low entries × 2 + max(0, 3.0 − average) × 3 + (max − min) × 1.5

    Level: above 10 High, 5 to 10 Moderate, below 5 Low.
    """
    result = moods.mood_burnout_risk(db, user_id, start_date, end_date)
    if isinstance(result, InsufficientData):
        return insufficient_to_response(result)
    return BurnoutRiskResponse(
        risk_score=result.risk_score,
        risk_level=result.risk_level,
        total_entries=result.total_entries,
        average=result.average,
        low_count=result.low_count,
        volatility=result.volatility,
        components=result.components,
    )


# ---------------------------------------------------------------------------
# Entries (/{entry_id} routes stay last so fixed paths match first)
# ---------------------------------------------------------------------------

@router.get("", response_model=MoodListResponse, summary="List mood entries")
def list_moods(
    user_id: CurrentUser,
    start_date: Optional[date] = _START,
    end_date: Optional[date] = _END,
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
):
    total, page = moods.list_moods(db, user_id, start_date, end_date, limit=limit, offset=offset)
    return MoodListResponse(
        total=total,
        limit=limit,
        offset=offset,
        items=[_to_response(e) for e in page],
    )


@router.get("/{entry_id}", response_model=MoodResponse, summary="Get a mood entry", responses=_NOT_FOUND)
def get_mood(entry_id: int, user_id: CurrentUser, db: Session = Depends(get_db)):
    return _to_response(moods.get_mood(db, user_id, entry_id))


@router.patch(
    "/{entry_id}",
    response_model=MoodResponse,
    summary="Update a mood entry",
    responses={**_NOT_FOUND, 400: {"model": ErrorResponse, "description": "Empty update body."}},
)
def update_mood(entry_id: int, payload: MoodUpdate, user_id: CurrentUser, db: Session = Depends(get_db)):
    entry = moods.update_mood(db, user_id, entry_id, payload.model_dump(exclude_unset=True))
    return _to_response(entry)


@router.delete(
    "/{entry_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Delete a mood entry",
    responses=_NOT_FOUND,
)
def delete_mood(entry_id: int, user_id: CurrentUser, db: Session = Depends(get_db)):
    moods.delete_mood(db, user_id, entry_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
