"""
Dataclass → response model helpers shared by the mood and habit routers.
"""
from __future__ import annotations

from datetime import datetime, timezone

from pulsebloom.schemas.common import (
    CalendarDayResponse,
    DayScoreResponse,
    HeatmapDayResponse,
    HeatmapResponse,
    InsufficientDataResponse,
    MonthlySummaryResponse,
    StreakResponse,
)
from pulsebloom.services.buckets import DayScore, Heatmap, MonthlySummary
from pulsebloom.services.outcomes import InsufficientData
from pulsebloom.services.streaks import StreakState


def iso_utc(ts: datetime | None) -> str | None:
    if ts is None:
        return None
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc).isoformat()


def insufficient_to_response(r: InsufficientData) -> InsufficientDataResponse:
    return InsufficientDataResponse(**r.to_dict())


def streak_to_response(s: StreakState) -> StreakResponse:
    return StreakResponse(**s.to_dict())


def heatmap_to_response(h: Heatmap) -> HeatmapResponse:
    return HeatmapResponse(
        total_days=h.total_days,
        logged_days=h.logged_days,
        days=[
            HeatmapDayResponse(date=str(d.date), average=d.average, count=d.count)
            for d in h.days
        ],
    )


def _day_score(d: DayScore | None) -> DayScoreResponse | None:
    if d is None:
        return None
    return DayScoreResponse(date=str(d.date), average=d.average)


def monthly_to_response(m: MonthlySummary) -> MonthlySummaryResponse:
    return MonthlySummaryResponse(
        month=m.month,
        total_entries=m.total_entries,
        logged_days=m.logged_days,
        average=m.average,
        best_day=_day_score(m.best_day),
        worst_day=_day_score(m.worst_day),
        days=[
            CalendarDayResponse(date=str(d.date), day=d.day, average=d.average, count=d.count)
            for d in m.days
        ],
    )
