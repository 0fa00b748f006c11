"""
Bucket aggregation over timestamped numeric samples.

Every operation collapses samples into day or ISO-week buckets through the
period normalizer, then derives per-bucket statistics. A bucket with no
samples has `average = None`; a real average of zero stays `0.0`.

Counting invariant: for each operation that takes a range (monthly
calendar, heatmap) the bucket counts sum to the number of input samples
whose local date falls inside that range; samples outside it are ignored.

Public API
----------
aggregate(samples, kind, tz)                          -> dict[str, AggregateBucket]
weekly_trend(samples, tz)                             -> list[WeeklyTrendPoint]
rolling_average(samples, window_days, tz)             -> list[RollingPoint]
monthly_calendar(samples, month, tz)                  -> MonthlySummary
heatmap(samples, days, today, max_days, tz)           -> Heatmap
day_of_week_pattern(samples, tz)                      -> list[PatternBucket]
time_of_day_pattern(samples, tz)                      -> list[PatternBucket]
daily_patterns(samples, tz)                           -> DailyPatterns | InsufficientData
summarize_scores(samples)                             -> ScoreSummary
"""
from __future__ import annotations

import re
from collections import Counter, defaultdict
from calendar import monthrange
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, tzinfo
from typing import Iterable, Optional

from pulsebloom.core.errors import InvalidRangeError, WindowTooLargeError
from pulsebloom.services.outcomes import InsufficientData, round2, safe_mean
from pulsebloom.services.periods import (
    PeriodKind,
    iso_week_label,
    local_date,
    normalize,
    to_local,
)


DEFAULT_MAX_HEATMAP_DAYS = 730
ROLLING_WINDOW_DAYS = 7
MIN_PATTERN_SAMPLES = 5

WEEKDAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")

# (label, first hour inclusive, last hour exclusive). Night wraps midnight.
TIME_OF_DAY_BUCKETS = (
    ("Morning", 5, 12),
    ("Afternoon", 12, 17),
    ("Evening", 17, 21),
    ("Night", 21, 5),
)

_MONTH_RE = re.compile(r"^(\d{4})-(0[1-9]|1[0-2])$")


# ---------------------------------------------------------------------------
# Types
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Sample:
    occurred_at: datetime
    value: float = 1.0          # presence events count as 1.0


@dataclass
class AggregateBucket:
    period_key: str
    count: int = 0
    sum: float = 0.0

    @property
    def average(self) -> Optional[float]:
        return None if self.count == 0 else self.sum / self.count

    def add(self, value: float) -> None:
        self.count += 1
        self.sum += value


@dataclass(frozen=True)
class WeeklyTrendPoint:
    week: str
    average: Optional[float]
    count: int


@dataclass(frozen=True)
class RollingPoint:
    date: date
    daily_average: float
    rolling_average: float
    days_in_window: int


@dataclass(frozen=True)
class CalendarDay:
    date: date
    day: int
    average: Optional[float]
    count: int


@dataclass(frozen=True)
class DayScore:
    date: date
    average: float


@dataclass
class MonthlySummary:
    month: str
    total_entries: int
    logged_days: int
    average: Optional[float]
    best_day: Optional[DayScore]
    worst_day: Optional[DayScore]
    days: list[CalendarDay] = field(default_factory=list)


@dataclass(frozen=True)
class HeatmapDay:
    date: date
    average: Optional[float]    # None = nothing logged that day
    count: int


@dataclass
class Heatmap:
    total_days: int
    logged_days: int
    days: list[HeatmapDay] = field(default_factory=list)


@dataclass(frozen=True)
class PatternBucket:
    label: str
    average: Optional[float]
    count: int


@dataclass
class DailyPatterns:
    total_entries: int
    by_weekday: list[PatternBucket]
    by_time_of_day: list[PatternBucket]
    best_weekday: Optional[str]
    worst_weekday: Optional[str]
    most_consistent_weekday: Optional[str]
    best_time_of_day: Optional[str]


@dataclass
class ScoreSummary:
    total_entries: int
    average: Optional[float]
    highest: Optional[float]
    lowest: Optional[float]
    most_frequent: Optional[float]
    distribution: dict[str, int]


# ---------------------------------------------------------------------------
# Primitives
# ---------------------------------------------------------------------------

def aggregate(
    samples: Iterable[Sample],
    kind: PeriodKind | str,
    tz: Optional[tzinfo] = None,
) -> dict[str, AggregateBucket]:
    """Group samples into period buckets keyed by Period.key (sorted)."""
    buckets: dict[str, AggregateBucket] = {}
    for s in samples:
        key = normalize(s.occurred_at, kind, tz).key
        bucket = buckets.get(key)
        if bucket is None:
            bucket = buckets[key] = AggregateBucket(period_key=key)
        bucket.add(s.value)
    return dict(sorted(buckets.items()))


def _daily_values(
    samples: Iterable[Sample],
    tz: Optional[tzinfo],
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> dict[date, list[float]]:
    by_day: dict[date, list[float]] = defaultdict(list)
    for s in samples:
        d = local_date(s.occurred_at, tz)
        if start is not None and d < start:
            continue
        if end is not None and d > end:
            continue
        by_day[d].append(s.value)
    return by_day


def _hour_bucket(hour: int) -> str:
    for label, first, last in TIME_OF_DAY_BUCKETS:
        if first < last and first <= hour < last:
            return label
        if first > last and (hour >= first or hour < last):
            return label
    raise ValueError(f"hour out of range: {hour}")


def parse_month(month: str) -> tuple[int, int]:
    m = _MONTH_RE.match(month or "")
    if not m:
        raise InvalidRangeError(
            f"Invalid month '{month}'. Use the YYYY-MM format, e.g. 2026-02.",
            month=month,
        )
    year = int(m.group(1))
    if year < 1:
        raise InvalidRangeError(
            f"Invalid month '{month}'. Year must be between 0001 and 9999.",
            month=month,
        )
    return year, int(m.group(2))


# ---------------------------------------------------------------------------
# Weekly trend
# ---------------------------------------------------------------------------

def weekly_trend(samples: Iterable[Sample], tz: Optional[tzinfo] = None) -> list[WeeklyTrendPoint]:
    # Zero-padded labels ("2026-W07") make the lexicographic sort chronological.
    buckets: dict[str, AggregateBucket] = {}
    for s in samples:
        label = iso_week_label(s.occurred_at, tz)
        buckets.setdefault(label, AggregateBucket(period_key=label)).add(s.value)
    return [
        WeeklyTrendPoint(week=label, average=round2(b.average), count=b.count)
        for label, b in sorted(buckets.items())
    ]


# ---------------------------------------------------------------------------
# Rolling average
# ---------------------------------------------------------------------------

def rolling_average(
    samples: Iterable[Sample],
    window_days: int = ROLLING_WINDOW_DAYS,
    tz: Optional[tzinfo] = None,
) -> list[RollingPoint]:
    """
    Trailing window average over daily means.

    Same-day samples are averaged first so a busy day weighs the same as
    a quiet one. For each logged day D the result averages the daily means
    of all logged days in [D - window_days + 1, D].
    """
    if window_days < 1:
        raise InvalidRangeError(
            f"window_days must be at least 1 (got {window_days}).",
            window_days=window_days,
        )
    daily = {d: sum(v) / len(v) for d, v in _daily_values(samples, tz).items()}
    days = sorted(daily)
    span = timedelta(days=window_days - 1)

    points: list[RollingPoint] = []
    lo = 0
    for hi, d in enumerate(days):
        while days[lo] < d - span:
            lo += 1
        window = [daily[x] for x in days[lo:hi + 1]]
        points.append(RollingPoint(
            date=d,
            daily_average=round(daily[d], 2),
            rolling_average=round(sum(window) / len(window), 2),
            days_in_window=len(window),
        ))
    return points


# ---------------------------------------------------------------------------
# Monthly calendar
# ---------------------------------------------------------------------------

def month_bounds(month: str) -> tuple[date, date]:
    year, mon = parse_month(month)
    return date(year, mon, 1), date(year, mon, monthrange(year, mon)[1])


def monthly_calendar(
    samples: Iterable[Sample],
    month: str,
    tz: Optional[tzinfo] = None,
) -> MonthlySummary:
    first, last = month_bounds(month)
    by_day = _daily_values(samples, tz, first, last)

    days: list[CalendarDay] = []
    all_values: list[float] = []
    scored: list[DayScore] = []
    for offset in range(last.day):
        d = first + timedelta(days=offset)
        values = by_day.get(d, [])
        avg = round2(safe_mean(values))
        days.append(CalendarDay(date=d, day=d.day, average=avg, count=len(values)))
        if values:
            all_values.extend(values)
            scored.append(DayScore(date=d, average=avg))

    # max/min keep the earliest day on ties.
    best = max(scored, key=lambda s: s.average) if scored else None
    worst = min(scored, key=lambda s: s.average) if scored else None

    return MonthlySummary(
        month=month,
        total_entries=len(all_values),
        logged_days=len(scored),
        average=round2(safe_mean(all_values)),
        best_day=best,
        worst_day=worst,
        days=days,
    )


# ---------------------------------------------------------------------------
# Heatmap
# ---------------------------------------------------------------------------

def check_window(days: int, max_days: int = DEFAULT_MAX_HEATMAP_DAYS) -> None:
    if days < 1:
        raise InvalidRangeError(f"days must be at least 1 (got {days}).", days=days)
    if days > max_days:
        raise WindowTooLargeError(requested=days, maximum=max_days)


def heatmap(
    samples: Iterable[Sample],
    days: int,
    today: date,
    max_days: int = DEFAULT_MAX_HEATMAP_DAYS,
    tz: Optional[tzinfo] = None,
) -> Heatmap:
    """Exactly `days` consecutive entries, oldest first, ending on today."""
    check_window(days, max_days)

    start = today - timedelta(days=days - 1)
    by_day = _daily_values(samples, tz, start, today)

    entries = []
    for offset in range(days):
        d = start + timedelta(days=offset)
        values = by_day.get(d, [])
        entries.append(HeatmapDay(date=d, average=round2(safe_mean(values)), count=len(values)))

    return Heatmap(
        total_days=days,
        logged_days=sum(1 for e in entries if e.count),
        days=entries,
    )


# ---------------------------------------------------------------------------
# Day-of-week / time-of-day patterns
# ---------------------------------------------------------------------------

def _pattern_buckets(labels: Iterable[str], grouped: dict[str, list[float]]) -> list[PatternBucket]:
    return [
        PatternBucket(label=label, average=round2(safe_mean(grouped.get(label, []))),
                      count=len(grouped.get(label, [])))
        for label in labels
    ]


def _best(buckets: list[PatternBucket], key, reverse: bool = False) -> Optional[str]:
    candidates = [b for b in buckets if b.count]
    if not candidates:
        return None
    pick = min if reverse else max
    return pick(candidates, key=key).label


def day_of_week_pattern(samples: Iterable[Sample], tz: Optional[tzinfo] = None) -> list[PatternBucket]:
    grouped: dict[str, list[float]] = defaultdict(list)
    for s in samples:
        grouped[WEEKDAY_NAMES[to_local(s.occurred_at, tz).weekday()]].append(s.value)
    return _pattern_buckets(WEEKDAY_NAMES, grouped)


def time_of_day_pattern(samples: Iterable[Sample], tz: Optional[tzinfo] = None) -> list[PatternBucket]:
    grouped: dict[str, list[float]] = defaultdict(list)
    for s in samples:
        grouped[_hour_bucket(to_local(s.occurred_at, tz).hour)].append(s.value)
    return _pattern_buckets((b[0] for b in TIME_OF_DAY_BUCKETS), grouped)


def daily_patterns(
    samples: Iterable[Sample],
    tz: Optional[tzinfo] = None,
    min_samples: int = MIN_PATTERN_SAMPLES,
) -> DailyPatterns | InsufficientData:
    samples = list(samples)
    if len(samples) < min_samples:
        return InsufficientData(
            required=min_samples,
            received=len(samples),
            message=f"Log at least {min_samples} entries to unlock daily patterns.",
        )

    weekday_buckets = day_of_week_pattern(samples, tz)
    time_buckets = time_of_day_pattern(samples, tz)

    return DailyPatterns(
        total_entries=len(samples),
        by_weekday=weekday_buckets,
        by_time_of_day=time_buckets,
        best_weekday=_best(weekday_buckets, key=lambda b: b.average),
        worst_weekday=_best(weekday_buckets, key=lambda b: b.average, reverse=True),
        most_consistent_weekday=_best(weekday_buckets, key=lambda b: b.count),
        best_time_of_day=_best(time_buckets, key=lambda b: b.average),
    )


# ---------------------------------------------------------------------------
# Summary statistics
# ---------------------------------------------------------------------------

def _score_key(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def summarize_scores(samples: Iterable[Sample]) -> ScoreSummary:
    values = [s.value for s in samples]
    if not values:
        return ScoreSummary(
            total_entries=0, average=None, highest=None, lowest=None,
            most_frequent=None, distribution={},
        )
    counts = Counter(values)
    # Ties resolve to the lowest score.
    most_frequent = min(counts, key=lambda v: (-counts[v], v))
    return ScoreSummary(
        total_entries=len(values),
        average=round2(safe_mean(values)),
        highest=max(values),
        lowest=min(values),
        most_frequent=most_frequent,
        distribution={_score_key(v): counts[v] for v in sorted(counts)},
    )
