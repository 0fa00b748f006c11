"""
Period normalization: maps a timestamp onto its canonical bucket.

Two timestamps share a Period if and only if they fall on the same local
calendar day (kind "day") or in the same Monday-anchored ISO week (kind
"week"). Everything here is a pure function of its arguments.

Public API
----------
normalize(ts, kind, tz=None)  -> Period
iso_week_label(ts, tz=None)   -> "YYYY-Www"
local_date(ts, tz=None)       -> date
to_local(ts, tz=None)         -> datetime
period_length(kind)           -> timedelta
"""
from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Optional


class PeriodKind(str, enum.Enum):
    day = "day"
    week = "week"


_LENGTHS = {
    PeriodKind.day: timedelta(days=1),
    PeriodKind.week: timedelta(days=7),
}


@dataclass(frozen=True)
class Period:
    kind: PeriodKind
    key: str            # "YYYY-MM-DD" for days, "YYYY-Www" for weeks
    start: datetime     # local midnight opening the period

    @property
    def start_date(self) -> date:
        return self.start.date()


def period_length(kind: PeriodKind | str) -> timedelta:
    return _LENGTHS[PeriodKind(kind)]


def to_local(ts: datetime, tz: Optional[tzinfo] = None) -> datetime:
    """Express ts in tz. Naive timestamps are read as UTC when tz is given."""
    if tz is None:
        return ts
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(tz)


def local_date(ts: datetime, tz: Optional[tzinfo] = None) -> date:
    return to_local(ts, tz).date()


def week_start(day: date) -> date:
    """Monday of the ISO week containing day (Sunday goes back 6 days)."""
    return day - timedelta(days=day.weekday())


def iso_week_label(ts: datetime | date, tz: Optional[tzinfo] = None) -> str:
    # isocalendar() applies the first-Thursday rule, so 2027-01-01 (a Friday)
    # is labelled 2026-W53, not 2027-W01.
    day = local_date(ts, tz) if isinstance(ts, datetime) else ts
    iso_year, iso_week, _ = day.isocalendar()
    return f"{iso_year}-W{iso_week:02d}"


def normalize(
    ts: datetime,
    kind: PeriodKind | str,
    tz: Optional[tzinfo] = None,
) -> Period:
    kind = PeriodKind(kind)
    local = to_local(ts, tz)
    day = local.date()

    if kind is PeriodKind.day:
        return Period(
            kind=kind,
            key=day.isoformat(),
            start=datetime.combine(day, time.min, tzinfo=local.tzinfo),
        )

    monday = week_start(day)
    return Period(
        kind=kind,
        key=iso_week_label(monday),
        start=datetime.combine(monday, time.min, tzinfo=local.tzinfo),
    )


def period_for_date(day: date, kind: PeriodKind | str, tz: Optional[tzinfo] = None) -> Period:
    """Period containing a calendar date (midnight in tz)."""
    return normalize(datetime.combine(day, time.min, tzinfo=tz), kind)
