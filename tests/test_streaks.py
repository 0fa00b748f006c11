"""
Tests for the streak walker: anchor rule, gaps, duplicates, longest run
and daylight-saving tolerance.

DST is simulated with fixed-offset zones: a local day that starts at
UTC+1 and ends at UTC+2 is only 23 hours long in absolute time.
"""
from datetime import date, datetime, timedelta, timezone

from pulsebloom.services.periods import Period, PeriodKind, normalize
from pulsebloom.services.streaks import (
    compute_streak,
    distinct_periods,
    longest_run,
    streak_from_timestamps,
)

UTC = timezone.utc


def _day(y, m, d, hour=12) -> datetime:
    return datetime(y, m, d, hour, tzinfo=UTC)


class TestDailyStreak:
    def test_no_history(self):
        s = streak_from_timestamps([], "day", now=_day(2026, 2, 23))
        assert (s.current, s.longest) == (0, 0)
        assert s.anchor is None and s.last_period is None

    def test_consecutive_days_ending_today(self):
        ts = [_day(2026, 2, d) for d in (21, 22, 23)]
        s = streak_from_timestamps(ts, "day", now=_day(2026, 2, 23, 18))
        assert s.current == 3
        assert s.longest == 3
        assert s.anchor.key == "2026-02-23"

    def test_not_logged_yet_today_keeps_yesterdays_streak(self):
        ts = [_day(2026, 2, d) for d in (20, 21, 22)]
        s = streak_from_timestamps(ts, "day", now=_day(2026, 2, 23, 8))
        assert s.current == 3
        assert s.anchor.key == "2026-02-22"

    def test_skipped_whole_day_resets_current(self):
        ts = [_day(2026, 2, d) for d in (19, 20, 21)]
        s = streak_from_timestamps(ts, "day", now=_day(2026, 2, 23))
        assert s.current == 0
        assert s.longest == 3

    def test_gap_stops_the_walk(self):
        ts = [_day(2026, 2, d) for d in (15, 16, 17, 18, 21, 22, 23)]
        s = streak_from_timestamps(ts, "day", now=_day(2026, 2, 23))
        assert s.current == 3
        assert s.longest == 4

    def test_same_day_entries_count_once(self):
        ts = [
            datetime(2026, 2, 23, 9, 0, tzinfo=UTC),
            datetime(2026, 2, 23, 21, 0, tzinfo=UTC),
            _day(2026, 2, 22),
        ]
        s = streak_from_timestamps(ts, "day", now=_day(2026, 2, 23))
        assert s.current == 2
        assert len(distinct_periods(ts, "day")) == 2

    def test_future_entries_do_not_anchor(self):
        ts = [_day(2026, 2, 22), _day(2026, 2, 23), _day(2026, 3, 1)]
        s = streak_from_timestamps(ts, "day", now=_day(2026, 2, 23))
        assert s.current == 2
        assert s.last_period.key == "2026-03-01"

    def test_unordered_input(self):
        ts = [_day(2026, 2, 23), _day(2026, 2, 21), _day(2026, 2, 22)]
        s = streak_from_timestamps(ts, "day", now=_day(2026, 2, 23))
        assert s.current == 3

    def test_longest_never_below_current(self):
        ts = [_day(2026, 2, d) for d in range(1, 24)]
        s = streak_from_timestamps(ts, "day", now=_day(2026, 2, 23))
        assert s.current == 23
        assert s.longest >= s.current


class TestWeeklyStreak:
    def test_entries_on_mon_to_wed_then_next_monday(self):
        # Mon-Wed of 2026-W07, then Monday 2026-02-16 (W08).
        ts = [_day(2026, 2, 9), _day(2026, 2, 10), _day(2026, 2, 11), _day(2026, 2, 16)]

        daily = streak_from_timestamps(ts, "day", now=_day(2026, 2, 16, 20))
        assert daily.current == 1
        assert daily.longest == 3

        weekly = streak_from_timestamps(ts, "week", now=_day(2026, 2, 16, 20))
        assert weekly.current == 2
        assert weekly.anchor.key == "2026-W08"

    def test_previous_week_anchor(self):
        ts = [_day(2026, 2, 2), _day(2026, 2, 10)]
        s = streak_from_timestamps(ts, "week", now=_day(2026, 2, 18))
        assert s.current == 2
        assert s.anchor.key == "2026-W07"

    def test_missed_week_resets(self):
        ts = [_day(2026, 2, 2), _day(2026, 2, 10)]
        s = streak_from_timestamps(ts, "week", now=_day(2026, 2, 25))
        assert s.current == 0
        assert s.longest == 2


class TestDstTolerance:
    def _local_midnight(self, d: date, offset_hours: int) -> Period:
        tz = timezone(timedelta(hours=offset_hours))
        return normalize(datetime(d.year, d.month, d.day, 12, tzinfo=tz), "day", tz)

    def test_23_hour_day_still_consecutive(self):
        # Spring forward: 03-28 starts at UTC+1, 03-29 starts at UTC+2.
        before = self._local_midnight(date(2026, 3, 28), 1)
        after = self._local_midnight(date(2026, 3, 29), 2)
        assert after.start - before.start == timedelta(hours=23)
        assert longest_run([before, after], PeriodKind.day) == 2

    def test_25_hour_day_still_consecutive(self):
        before = self._local_midnight(date(2026, 10, 24), 2)
        after = self._local_midnight(date(2026, 10, 25), 1)
        assert after.start - before.start == timedelta(hours=25)
        assert longest_run([before, after], "day") == 2

    def test_current_streak_across_dst(self):
        tz_after = timezone(timedelta(hours=2))
        periods = [
            self._local_midnight(date(2026, 3, 27), 1),
            self._local_midnight(date(2026, 3, 28), 1),
            self._local_midnight(date(2026, 3, 29), 2),
        ]
        s = compute_streak(periods, "day", now=datetime(2026, 3, 29, 18, tzinfo=tz_after), tz=tz_after)
        assert s.current == 3

    def test_two_day_gap_is_not_consecutive(self):
        a = self._local_midnight(date(2026, 3, 27), 1)
        b = self._local_midnight(date(2026, 3, 29), 2)
        assert longest_run([a, b], "day") == 1


class TestStreakState:
    def test_to_dict(self):
        s = streak_from_timestamps([_day(2026, 2, 23)], "day", now=_day(2026, 2, 23))
        assert s.to_dict() == {
            "current": 1,
            "longest": 1,
            "anchor": "2026-02-23",
            "last_logged": "2026-02-23",
        }
