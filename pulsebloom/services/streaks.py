"""
Streak walker: current and longest runs of consecutive logged periods.

Anchor rule (same for mood and habit series, day and week kinds)
----------------------------------------------------------------
The live streak is anchored on the period containing `now` when that
period is logged, otherwise on the previous period. A streak therefore
survives until a whole period has been skipped; not having logged *yet*
today (or this week) never resets it. When neither the current nor the
previous period is logged, `current` is 0 whatever the history holds.

Period boundaries are compared in absolute time with a tolerance, so the
23h/25h days around a daylight-saving change still count as consecutive.

Public API
----------
distinct_periods(timestamps, kind, tz)                 -> list[Period]   (newest first)
longest_run(periods, kind, tolerance)                  -> int
compute_streak(periods, kind, now, tolerance, tz)      -> StreakState
streak_from_timestamps(timestamps, kind, now, tz)      -> StreakState
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, tzinfo
from typing import Iterable, Optional

from pulsebloom.services.periods import Period, PeriodKind, normalize, period_length


DST_SHIFT = timedelta(hours=1)
CLOCK_SLACK = timedelta(seconds=60)
DEFAULT_TOLERANCE = DST_SHIFT + CLOCK_SLACK


@dataclass(frozen=True)
class StreakState:
    current: int
    longest: int
    anchor: Optional[Period]        # period the live streak is counted from
    last_period: Optional[Period]   # most recent logged period

    def to_dict(self) -> dict:
        return {
            "current": self.current,
            "longest": self.longest,
            "anchor": self.anchor.key if self.anchor else None,
            "last_logged": self.last_period.start_date.isoformat() if self.last_period else None,
        }


def _dedupe_desc(periods: Iterable[Period]) -> list[Period]:
    by_key: dict[str, Period] = {}
    for p in periods:
        by_key.setdefault(p.key, p)
    return sorted(by_key.values(), key=lambda p: p.start.timestamp(), reverse=True)


def distinct_periods(
    timestamps: Iterable[datetime],
    kind: PeriodKind | str,
    tz: Optional[tzinfo] = None,
) -> list[Period]:
    return _dedupe_desc(normalize(ts, kind, tz) for ts in timestamps)


def _gap(later: Period, earlier: Period) -> timedelta:
    return timedelta(seconds=later.start.timestamp() - earlier.start.timestamp())


def _is_step(later: Period, earlier: Period, length: timedelta, tolerance: timedelta) -> bool:
    return abs(_gap(later, earlier) - length) <= tolerance


def longest_run(
    periods: Iterable[Period],
    kind: PeriodKind | str,
    tolerance: timedelta = DEFAULT_TOLERANCE,
) -> int:
    """Longest run of consecutive periods anywhere in the history."""
    ascending = list(reversed(_dedupe_desc(periods)))
    if not ascending:
        return 0
    length = period_length(kind)
    best = run = 1
    for prev, curr in zip(ascending, ascending[1:]):
        run = run + 1 if _is_step(curr, prev, length, tolerance) else 1
        best = max(best, run)
    return best


def _find_anchor(
    latest: Period,
    current_period: Period,
    length: timedelta,
    tolerance: timedelta,
) -> Optional[Period]:
    gap = _gap(current_period, latest)
    if abs(gap) <= tolerance:
        return latest
    if abs(gap - length) <= tolerance:
        return latest
    return None


def compute_streak(
    periods: Iterable[Period],
    kind: PeriodKind | str,
    now: datetime,
    tolerance: timedelta = DEFAULT_TOLERANCE,
    tz: Optional[tzinfo] = None,
) -> StreakState:
    kind = PeriodKind(kind)
    ordered = _dedupe_desc(periods)
    if not ordered:
        return StreakState(current=0, longest=0, anchor=None, last_period=None)

    length = period_length(kind)
    current_period = normalize(now, kind, tz)

    # Periods after the current one cannot anchor a live streak.
    horizon = current_period.start.timestamp() + tolerance.total_seconds()
    eligible = [p for p in ordered if p.start.timestamp() <= horizon]

    anchor = None
    current = 0
    if eligible:
        anchor = _find_anchor(eligible[0], current_period, length, tolerance)
    if anchor is not None:
        current = 1
        prev = anchor
        for p in eligible[1:]:
            if not _is_step(prev, p, length, tolerance):
                break
            current += 1
            prev = p

    longest = max(longest_run(ordered, kind, tolerance), current)
    return StreakState(current=current, longest=longest, anchor=anchor, last_period=ordered[0])


def streak_from_timestamps(
    timestamps: Iterable[datetime],
    kind: PeriodKind | str,
    now: datetime,
    tz: Optional[tzinfo] = None,
    tolerance: timedelta = DEFAULT_TOLERANCE,
) -> StreakState:
    return compute_streak(distinct_periods(timestamps, kind, tz), kind, now, tolerance, tz)
