"""
Tests for the composite scorer: burnout risk, completion statistics and
the habit consistency score.
"""
from datetime import date, datetime, timedelta, timezone

import pytest

from pulsebloom.services.outcomes import InsufficientData
from pulsebloom.services.scoring import (
    RiskLevel,
    burnout_risk,
    completion_stats,
    consistency_score,
    recency_flag,
    risk_level,
    streak_ratio,
)
from pulsebloom.services.streaks import StreakState

UTC = timezone.utc
NOW = datetime(2026, 2, 23, 12, tzinfo=UTC)


def _streak(current: int, longest: int) -> StreakState:
    return StreakState(current=current, longest=longest, anchor=None, last_period=None)


class TestBurnoutRisk:
    def test_low_scores_are_high_risk(self):
        r = burnout_risk([1, 1, 2])
        assert r.average == 1.33
        assert r.low_count == 3
        assert r.volatility == 1.0
        # 3*2 + (3.0 - 1.33)*3 + 1*1.5
        assert r.risk_score == 12.51
        assert r.risk_level == RiskLevel.HIGH

    def test_stable_good_mood_is_low_risk(self):
        r = burnout_risk([4, 4, 5, 4])
        assert r.low_count == 0
        assert r.components["deficit"] == 0.0
        assert r.risk_score == 1.5
        assert r.risk_level == RiskLevel.LOW

    def test_needs_three_entries(self):
        r = burnout_risk([1, 2])
        assert isinstance(r, InsufficientData)
        assert r.required == 3
        assert r.received == 2

    @pytest.mark.parametrize("score,level", [
        (0.0, "Low"), (4.99, "Low"), (5.0, "Moderate"), (10.0, "Moderate"), (10.01, "High"),
    ])
    def test_level_thresholds(self, score, level):
        assert risk_level(score) == level


class TestCompletionStats:
    def test_daily_counts_creation_day(self):
        s = completion_stats(date(2026, 2, 14), completions=5, kind="day", today=date(2026, 2, 23))
        assert s.total_possible_periods == 10
        assert s.completion_rate == 50.0
        assert s.missed_periods == 5

    def test_weekly(self):
        s = completion_stats(date(2026, 2, 1), completions=2, kind="week", today=date(2026, 2, 23))
        assert s.total_possible_periods == 4
        assert s.completion_rate == 50.0

    def test_created_today(self):
        s = completion_stats(date(2026, 2, 23), completions=1, kind="day", today=date(2026, 2, 23))
        assert s.total_possible_periods == 1
        assert s.completion_rate == 100.0
        assert s.missed_periods == 0

    def test_rate_rounded_to_two_decimals(self):
        s = completion_stats(date(2026, 2, 21), completions=1, kind="day", today=date(2026, 2, 23))
        assert s.completion_rate == 33.33


class TestConsistencyScore:
    def test_perfect(self):
        c = consistency_score(100.0, _streak(5, 5), NOW - timedelta(hours=3), NOW, "day")
        assert c.value == 100.0
        assert c.components == {"completion_rate": 100.0, "streak_ratio": 100.0, "recency": 100.0}

    def test_nothing_logged(self):
        c = consistency_score(0.0, _streak(0, 0), None, NOW, "day")
        assert c.value == 0.0

    def test_weighted_mix(self):
        c = consistency_score(50.0, _streak(1, 4), NOW - timedelta(days=10), NOW, "day")
        # 0.5*50 + 0.3*25 + 0.2*0
        assert c.value == 32.5

    def test_bounded_even_with_out_of_range_rate(self):
        c = consistency_score(250.0, _streak(3, 3), NOW, NOW, "week")
        assert 0.0 <= c.value <= 100.0

    def test_recency_window_scales_with_period(self):
        ten_days_ago = NOW - timedelta(days=10)
        assert recency_flag(ten_days_ago, NOW, "day") == 0.0
        assert recency_flag(ten_days_ago, NOW, "week") == 100.0

    def test_streak_ratio(self):
        assert streak_ratio(_streak(2, 4)) == 50.0
        assert streak_ratio(_streak(0, 0)) == 0.0
