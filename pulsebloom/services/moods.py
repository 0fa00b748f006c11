"""
Mood service: stores mood entries and feeds them to the analytics engine.

Timestamps are stored in UTC. Every read converts them to the configured
local zone before bucketing, so "today" and "this week" follow the
user's calendar rather than the server's.

Date ranges
-----------
Range endpoints accept optional start_date / end_date (local calendar
dates). end_date is inclusive through the end of that day. A reversed
range raises DateRangeReversedError (400).
"""
from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Optional

from sqlalchemy.orm import Session

from pulsebloom.core.config import settings
from pulsebloom.core.errors import DateRangeReversedError, EmptyUpdateError, MoodEntryNotFoundError
from pulsebloom.models.mood_entry import MoodEntry
from pulsebloom.services import buckets
from pulsebloom.services.buckets import (
    DailyPatterns,
    Heatmap,
    MonthlySummary,
    RollingPoint,
    Sample,
    ScoreSummary,
    WeeklyTrendPoint,
)
from pulsebloom.services.outcomes import InsufficientData
from pulsebloom.services.periods import PeriodKind, local_date, to_local
from pulsebloom.services.scoring import BurnoutRisk, burnout_risk
from pulsebloom.services.streaks import StreakState, streak_from_timestamps

logger = logging.getLogger(__name__)

MOOD_SCALE = (1, 2, 3, 4, 5)


def _tz(tz: Optional[tzinfo]) -> tzinfo:
    return tz or settings.tz


def _utc(ts: datetime) -> datetime:
    return to_local(ts, timezone.utc)


# ---------------------------------------------------------------------------
# Entries
# ---------------------------------------------------------------------------

def add_mood(
    db: Session,
    user_id: str,
    mood_score: int,
    emoji: str,
    journal_id: Optional[str] = None,
    created_at: Optional[datetime] = None,
) -> MoodEntry:
    entry = MoodEntry(
        user_id=user_id,
        mood_score=mood_score,
        emoji=emoji,
        journal_id=journal_id,
        created_at=_utc(created_at or datetime.now(tz=timezone.utc)),
    )
    db.add(entry)
    db.commit()
    db.refresh(entry)
    return entry


def get_mood(db: Session, user_id: str, entry_id: int) -> MoodEntry:
    entry = (
        db.query(MoodEntry)
        .filter(MoodEntry.id == entry_id, MoodEntry.user_id == user_id)
        .first()
    )
    if entry is None:
        raise MoodEntryNotFoundError(entry_id)
    return entry


_EDITABLE = ("mood_score", "emoji", "journal_id", "created_at")


def update_mood(db: Session, user_id: str, entry_id: int, changes: dict) -> MoodEntry:
    changes = {k: v for k, v in changes.items() if k in _EDITABLE}
    if not changes:
        raise EmptyUpdateError()
    entry = get_mood(db, user_id, entry_id)
    if changes.get("created_at") is not None:
        changes["created_at"] = _utc(changes["created_at"])
    for key, value in changes.items():
        setattr(entry, key, value)
    db.commit()
    db.refresh(entry)
    return entry


def delete_mood(db: Session, user_id: str, entry_id: int) -> None:
    entry = get_mood(db, user_id, entry_id)
    db.delete(entry)
    db.commit()
    logger.info("Deleted mood entry %s for user %s", entry_id, user_id)


# ---------------------------------------------------------------------------
# Read helpers
# ---------------------------------------------------------------------------

def _midnight_utc(day: date, tz: tzinfo) -> Optional[datetime]:
    # None when local midnight falls outside datetime's range in UTC.
    try:
        return _utc(datetime.combine(day, time.min, tzinfo=tz))
    except OverflowError:
        return None


def resolve_range(
    start_date: Optional[date],
    end_date: Optional[date],
    tz: Optional[tzinfo] = None,
) -> tuple[Optional[datetime], Optional[datetime]]:
    """
    Local calendar bounds -> half-open UTC instants [start, end).

    A bound at the edge of the calendar (0001-01-01, 9999-12-31) has no
    representable instant past it and is returned as None: open-ended.
    """
    if start_date and end_date and end_date < start_date:
        raise DateRangeReversedError(start_date, end_date)
    tz = _tz(tz)
    start = _midnight_utc(start_date, tz) if start_date else None
    end = None
    if end_date and end_date < date.max:
        end = _midnight_utc(end_date + timedelta(days=1), tz)
    return start, end


def _entries(db: Session, user_id: str, start: Optional[datetime], end: Optional[datetime]):
    query = db.query(MoodEntry).filter(MoodEntry.user_id == user_id)
    if start is not None:
        query = query.filter(MoodEntry.created_at >= start)
    if end is not None:
        query = query.filter(MoodEntry.created_at < end)
    return query


def fetch_samples(
    db: Session,
    user_id: str,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> list[Sample]:
    rows = (
        _entries(db, user_id, start, end)
        .order_by(MoodEntry.created_at.asc(), MoodEntry.id.asc())
        .all()
    )
    return [Sample(occurred_at=_utc(r.created_at), value=float(r.mood_score)) for r in rows]


def _ranged(
    db: Session,
    user_id: str,
    start_date: Optional[date],
    end_date: Optional[date],
    tz: tzinfo,
) -> list[Sample]:
    start, end = resolve_range(start_date, end_date, tz)
    return fetch_samples(db, user_id, start, end)


def list_moods(
    db: Session,
    user_id: str,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    limit: int = 50,
    offset: int = 0,
    tz: Optional[tzinfo] = None,
) -> tuple[int, list[MoodEntry]]:
    """Newest first. Returns (total matching, page)."""
    start, end = resolve_range(start_date, end_date, _tz(tz))
    query = _entries(db, user_id, start, end)
    total = query.count()
    page = (
        query.order_by(MoodEntry.created_at.desc(), MoodEntry.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    return total, page


# ---------------------------------------------------------------------------
# Analytics
# ---------------------------------------------------------------------------

def mood_streak(
    db: Session,
    user_id: str,
    now: Optional[datetime] = None,
    tz: Optional[tzinfo] = None,
) -> StreakState:
    tz = _tz(tz)
    samples = fetch_samples(db, user_id)
    return streak_from_timestamps(
        (s.occurred_at for s in samples),
        PeriodKind.day,
        now or datetime.now(tz=timezone.utc),
        tz=tz,
    )


def mood_heatmap(
    db: Session,
    user_id: str,
    days: Optional[int] = None,
    today: Optional[date] = None,
    tz: Optional[tzinfo] = None,
) -> Heatmap:
    tz = _tz(tz)
    days = settings.HEATMAP_DEFAULT_DAYS if days is None else days
    today = today or local_date(datetime.now(tz=timezone.utc), tz)
    buckets.check_window(days, settings.HEATMAP_MAX_DAYS)
    start = today - timedelta(days=days - 1)
    samples = _ranged(db, user_id, start, today, tz)
    return buckets.heatmap(samples, days, today, settings.HEATMAP_MAX_DAYS, tz)


def mood_monthly_summary(
    db: Session,
    user_id: str,
    month: str,
    tz: Optional[tzinfo] = None,
) -> MonthlySummary:
    tz = _tz(tz)
    first, last = buckets.month_bounds(month)
    samples = _ranged(db, user_id, first, last, tz)
    return buckets.monthly_calendar(samples, month, tz)


def mood_daily_patterns(
    db: Session,
    user_id: str,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    tz: Optional[tzinfo] = None,
) -> DailyPatterns | InsufficientData:
    tz = _tz(tz)
    return buckets.daily_patterns(_ranged(db, user_id, start_date, end_date, tz), tz)


def mood_analytics(
    db: Session,
    user_id: str,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    tz: Optional[tzinfo] = None,
) -> ScoreSummary:
    summary = buckets.summarize_scores(_ranged(db, user_id, start_date, end_date, _tz(tz)))
    # Zero-fill the full 1-5 scale so clients can chart it directly.
    summary.distribution = {
        str(score): summary.distribution.get(str(score), 0) for score in MOOD_SCALE
    }
    return summary


def mood_weekly_trend(
    db: Session,
    user_id: str,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    tz: Optional[tzinfo] = None,
) -> list[WeeklyTrendPoint]:
    tz = _tz(tz)
    return buckets.weekly_trend(_ranged(db, user_id, start_date, end_date, tz), tz)


def mood_rolling_average(
    db: Session,
    user_id: str,
    window_days: int = buckets.ROLLING_WINDOW_DAYS,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    tz: Optional[tzinfo] = None,
) -> list[RollingPoint]:
    tz = _tz(tz)
    return buckets.rolling_average(_ranged(db, user_id, start_date, end_date, tz), window_days, tz)


def mood_burnout_risk(
    db: Session,
    user_id: str,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    tz: Optional[tzinfo] = None,
) -> BurnoutRisk | InsufficientData:
    samples = _ranged(db, user_id, start_date, end_date, _tz(tz))
    result = burnout_risk([s.value for s in samples])
    if isinstance(result, BurnoutRisk):
        logger.debug("Burnout risk for user %s: %s (%s)", user_id, result.risk_score, result.risk_level)
    return result
