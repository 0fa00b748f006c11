"""
Composite scores: weighted sums of independently bounded sub-metrics.

Every weight and cutoff below is a policy decision, not a derived value.
They live here as named constants so they can be tuned and tested without
touching the data pipeline.

Consistency score (habits)
--------------------------
  value = 0.5 * completion_rate + 0.3 * streak_ratio + 0.2 * recency

  completion_rate : completions / possible periods * 100, capped to [0, 100]
  streak_ratio    : current / longest * 100 (0 when longest == 0)
  recency         : 100 when the last completion is within two period
                    lengths of now, else 0
  value is clamped to [0, 100].

Burnout risk (mood)
-------------------
  score = low_count * 2 + max(0, 3.0 - average) * 3 + volatility * 1.5

  low_count  : scores <= 2
  average    : mean score rounded to 2 decimals
  volatility : max - min over the window
  level      : score > 10 High, score >= 5 Moderate, otherwise Low
  Fewer than 3 scores yields InsufficientData.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Optional, Sequence

from pulsebloom.services.outcomes import InsufficientData
from pulsebloom.services.periods import PeriodKind, period_length
from pulsebloom.services.streaks import StreakState


# ---------------------------------------------------------------------------
# Consistency policy
# ---------------------------------------------------------------------------

COMPLETION_WEIGHT = 0.5
STREAK_WEIGHT = 0.3
RECENCY_WEIGHT = 0.2
RECENCY_PERIODS = 2
SCORE_CEILING = 100.0

# ---------------------------------------------------------------------------
# Burnout policy
# ---------------------------------------------------------------------------

LOW_SCORE_CUTOFF = 2
NEUTRAL_THRESHOLD = 3.0
LOW_COUNT_WEIGHT = 2.0
DEFICIT_WEIGHT = 3.0
VOLATILITY_WEIGHT = 1.5
MIN_BURNOUT_SAMPLES = 3
HIGH_RISK_ABOVE = 10.0
MODERATE_RISK_FROM = 5.0


class RiskLevel:
    LOW = "Low"
    MODERATE = "Moderate"
    HIGH = "High"


@dataclass
class CompositeScore:
    value: float
    components: dict[str, float] = field(default_factory=dict)


@dataclass
class BurnoutRisk:
    risk_score: float
    risk_level: str
    total_entries: int
    average: float
    low_count: int
    volatility: float
    components: dict[str, float] = field(default_factory=dict)


@dataclass
class CompletionStats:
    total_completions: int
    total_possible_periods: int
    completion_rate: float
    missed_periods: int


def _clamp(value: float, low: float = 0.0, high: float = SCORE_CEILING) -> float:
    return max(low, min(high, value))


# ---------------------------------------------------------------------------
# Completion statistics
# ---------------------------------------------------------------------------

def completion_stats(
    created_on: date,
    completions: int,
    kind: PeriodKind | str,
    today: date,
) -> CompletionStats:
    """
    Periods a habit could have been completed in since creation, inclusive
    of the current one, and the share that were.
    """
    elapsed = max(0, (today - created_on).days)
    if PeriodKind(kind) is PeriodKind.day:
        possible = elapsed + 1
    else:
        possible = elapsed // 7 + 1
    rate = (completions / possible) * 100 if possible > 0 else 0.0
    return CompletionStats(
        total_completions=completions,
        total_possible_periods=possible,
        completion_rate=round(rate, 2),
        missed_periods=max(0, possible - completions),
    )


# ---------------------------------------------------------------------------
# Consistency
# ---------------------------------------------------------------------------

def streak_ratio(streak: StreakState) -> float:
    if streak.longest <= 0:
        return 0.0
    return _clamp(streak.current / streak.longest * 100)


def recency_flag(
    last_event_at: Optional[datetime],
    now: datetime,
    kind: PeriodKind | str,
) -> float:
    if last_event_at is None:
        return 0.0
    window = period_length(kind) * RECENCY_PERIODS
    age = timedelta(seconds=now.timestamp() - last_event_at.timestamp())
    return SCORE_CEILING if age <= window else 0.0


def consistency_score(
    completion_rate: float,
    streak: StreakState,
    last_event_at: Optional[datetime],
    now: datetime,
    kind: PeriodKind | str,
) -> CompositeScore:
    components = {
        "completion_rate": round(_clamp(completion_rate), 2),
        "streak_ratio": round(streak_ratio(streak), 2),
        "recency": recency_flag(last_event_at, now, kind),
    }
    value = (
        COMPLETION_WEIGHT * components["completion_rate"]
        + STREAK_WEIGHT * components["streak_ratio"]
        + RECENCY_WEIGHT * components["recency"]
    )
    return CompositeScore(value=round(_clamp(value), 2), components=components)


# ---------------------------------------------------------------------------
# Burnout
# ---------------------------------------------------------------------------

def risk_level(score: float) -> str:
    if score > HIGH_RISK_ABOVE:
        return RiskLevel.HIGH
    if score >= MODERATE_RISK_FROM:
        return RiskLevel.MODERATE
    return RiskLevel.LOW


def burnout_risk(scores: Sequence[float]) -> BurnoutRisk | InsufficientData:
    if len(scores) < MIN_BURNOUT_SAMPLES:
        return InsufficientData(
            required=MIN_BURNOUT_SAMPLES,
            received=len(scores),
            message=(
                f"At least {MIN_BURNOUT_SAMPLES} mood entries are needed "
                "to estimate burnout risk. Keep logging!"
            ),
        )

    average = round(sum(scores) / len(scores), 2)
    low_count = sum(1 for s in scores if s <= LOW_SCORE_CUTOFF)
    volatility = float(max(scores) - min(scores))

    components = {
        "low_mood": low_count * LOW_COUNT_WEIGHT,
        "deficit": max(0.0, NEUTRAL_THRESHOLD - average) * DEFICIT_WEIGHT,
        "volatility": volatility * VOLATILITY_WEIGHT,
    }
    score = round(sum(components.values()), 2)

    return BurnoutRisk(
        risk_score=score,
        risk_level=risk_level(score),
        total_entries=len(scores),
        average=average,
        low_count=low_count,
        volatility=volatility,
        components={k: round(v, 2) for k, v in components.items()},
    )
