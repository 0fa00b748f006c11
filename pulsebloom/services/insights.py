"""
Insight pipeline: weekly behavioral summary, language-model prompt and
cached, validated insight cards.

Flow (GET /insights)
--------------------
  1. Fetch the last INSIGHT_WINDOW_DAYS of mood entries and habit logs.
  2. Guard: at least 7 mood entries OR one habit with 5+ completions,
     otherwise return InsufficientData.
  3. Fingerprint the fetched rows; serve the cached cards when the
     fingerprint is unchanged (unless force_refresh).
  4. Reduce the rows to weekly buckets (never raw journal text).
  5. Ask the generator for a JSON array, parse and normalize it.
  6. Upsert the cache row.

The generator is an injected dependency. `GroqInsightGenerator` talks to
an OpenAI-compatible chat completions endpoint through httpx; tests pass
a plain callable object instead.
"""
from __future__ import annotations

import json
import logging
import math
import re
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Any, Optional, Protocol

import httpx
from sqlalchemy.orm import Session

from pulsebloom.core.config import settings
from pulsebloom.core.errors import (
    ErrorKind,
    InsightGenerationError,
    InsightGeneratorUnavailableError,
)
from pulsebloom.models.habit import Habit, HabitLog
from pulsebloom.models.mood_entry import MoodEntry
from pulsebloom.services.fingerprint import FingerprintGate, should_recompute
from pulsebloom.services.outcomes import InsufficientData
from pulsebloom.services.periods import iso_week_label, to_local

logger = logging.getLogger(__name__)

MIN_MOOD_ENTRIES = 7
MIN_HABIT_COMPLETIONS = 5
LOW_MOOD_WEEK_BELOW = 3.0
MAX_INSIGHTS = 8
MAX_TITLE_CHARS = 100
MAX_DESCRIPTION_CHARS = 500

INSIGHT_TYPES = ("correlation", "streak", "warning", "positive", "suggestion")
INSIGHT_SEVERITIES = ("info", "warning", "success")
DEFAULT_TYPE = "suggestion"
DEFAULT_SEVERITY = "info"

_FENCE_OPEN_RE = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_FENCE_CLOSE_RE = re.compile(r"```\s*$")
_ARRAY_RE = re.compile(r"\[[\s\S]*\]")


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

@dataclass
class MoodPoint:
    score: int
    created_at: datetime


@dataclass
class HabitHistory:
    id: int
    title: str
    frequency: str
    category: str
    target_per_week: Optional[int]
    completions: list[datetime] = field(default_factory=list)


@dataclass
class ParsedInsights:
    items: list[dict]
    kind: Optional[ErrorKind] = None    # MALFORMED_OUTPUT when nothing could be parsed


@dataclass
class InsightReport:
    insights: list[dict]
    cached: bool
    generated_at: Optional[datetime]
    message: str


class InsightGenerator(Protocol):
    def __call__(self, system_prompt: str, user_prompt: str) -> str: ...


# ---------------------------------------------------------------------------
# Behavioral summary
# ---------------------------------------------------------------------------

def build_behavioral_summary(
    moods: list[MoodPoint],
    habits: list[HabitHistory],
    window_days: int,
    tz: Optional[tzinfo] = None,
) -> dict:
    """Compact weekly view of moods and habits, the only data sent out."""
    by_week: dict[str, list[int]] = defaultdict(list)
    for mood in moods:
        by_week[iso_week_label(mood.created_at, tz)].append(mood.score)

    weekly_averages = [
        {
            "week": week,
            "average": round(sum(scores) / len(scores), 2),
            "entries": len(scores),
        }
        for week, scores in sorted(by_week.items())
    ]
    low_mood_weeks = [w["week"] for w in weekly_averages if w["average"] < LOW_MOOD_WEEK_BELOW]
    average = round(sum(m.score for m in moods) / len(moods), 2) if moods else 0.0

    weeks_in_window = math.ceil(window_days / 7)
    habit_summaries = []
    for habit in habits:
        total = len(habit.completions)
        possible = window_days if habit.frequency == "daily" else weeks_in_window
        per_week: dict[str, int] = defaultdict(int)
        for ts in habit.completions:
            per_week[iso_week_label(ts, tz)] += 1
        habit_summaries.append({
            "title": habit.title,
            "category": habit.category or "custom",
            "frequency": habit.frequency,
            "target_per_week": habit.target_per_week,
            "total_completions": total,
            "completion_rate": round(total / possible * 100, 1) if possible > 0 else 0.0,
            "weekly_completions": [
                {"week": week, "count": count} for week, count in sorted(per_week.items())
            ],
            "missed_weeks": max(0, weeks_in_window - len(per_week)),
        })

    return {
        "mood": {
            "total_entries": len(moods),
            "average_mood": average,
            "weekly_averages": weekly_averages,
            "low_mood_weeks": low_mood_weeks,
        },
        "habits": habit_summaries,
    }


def has_enough_data(moods: list[MoodPoint], habits: list[HabitHistory]) -> bool:
    return len(moods) >= MIN_MOOD_ENTRIES or any(
        len(h.completions) >= MIN_HABIT_COMPLETIONS for h in habits
    )


# ---------------------------------------------------------------------------
# Prompts
# ---------------------------------------------------------------------------

def build_system_prompt() -> str:
    return (
        "You are a behavioral analytics assistant for PulseBloom, a personal "
        "well-being app.\n\n"
        "Analyze the user's mood scores and habit completions and write 3 to 6 "
        "personalized behavioral insights.\n\n"
        "OUTPUT RULES:\n"
        "- Respond ONLY with a JSON array. No preamble, no markdown.\n"
        "- Each element has exactly these fields:\n"
        '  {"type": string, "title": string, "description": string, "severity": string}\n'
        f"- type is one of: {', '.join(INSIGHT_TYPES)}\n"
        f"- severity is one of: {', '.join(INSIGHT_SEVERITIES)}\n"
        "- title is a short headline of at most 10 words.\n"
        "- description is 1-2 specific, data-driven sentences.\n\n"
        "QUALITY RULES:\n"
        "- Cross-reference weekly mood averages with weekly habit completions.\n"
        "- Call out habits with 0 completions in weeks where mood was below 3.0.\n"
        "- Quote actual numbers from the data and use habit titles by name.\n"
        "- Skip insights the data does not support. Be empathetic, never judgmental."
    )


def build_user_prompt(summary: dict, window_days: int) -> str:
    low_weeks = ", ".join(summary["mood"]["low_mood_weeks"]) or "none"
    return (
        f"Analyze this user's behavioral data from the past {window_days} days.\n\n"
        f"MOOD DATA:\n{json.dumps(summary['mood'], indent=2)}\n\n"
        f"HABIT DATA:\n{json.dumps(summary['habits'], indent=2)}\n\n"
        f"Cross-reference the low mood weeks ({low_weeks}) with habit completions.\n"
        "Return 3-6 insights as a JSON array only."
    )


# ---------------------------------------------------------------------------
# Output parsing
# ---------------------------------------------------------------------------

def _normalize_item(item: Any) -> Optional[dict]:
    if not isinstance(item, dict):
        return None
    if not all(isinstance(item.get(k), str) for k in ("type", "title", "description")):
        return None
    severity = item.get("severity")
    return {
        "type": item["type"] if item["type"] in INSIGHT_TYPES else DEFAULT_TYPE,
        "title": item["title"][:MAX_TITLE_CHARS],
        "description": item["description"][:MAX_DESCRIPTION_CHARS],
        "severity": severity if severity in INSIGHT_SEVERITIES else DEFAULT_SEVERITY,
    }


def parse_insights(raw: str) -> ParsedInsights:
    """
    Recover insight cards from free-form model output.

    Strips markdown fences, takes the first [...] block, drops items missing
    a string type/title/description and coerces unknown type/severity to
    the defaults. Unparseable output yields an empty list tagged
    MALFORMED_OUTPUT; it is logged, never raised.
    """
    cleaned = _FENCE_CLOSE_RE.sub("", _FENCE_OPEN_RE.sub("", (raw or "").strip())).strip()
    match = _ARRAY_RE.search(cleaned)
    if match:
        cleaned = match.group(0)

    try:
        parsed = json.loads(cleaned)
    except (ValueError, TypeError):
        logger.warning("Could not parse insight output: %r", cleaned[:200])
        return ParsedInsights(items=[], kind=ErrorKind.MALFORMED_OUTPUT)

    if not isinstance(parsed, list):
        logger.warning("Insight output is not a JSON array (got %s)", type(parsed).__name__)
        return ParsedInsights(items=[], kind=ErrorKind.MALFORMED_OUTPUT)

    items = [n for n in (_normalize_item(i) for i in parsed) if n is not None]
    return ParsedInsights(items=items[:MAX_INSIGHTS])


# ---------------------------------------------------------------------------
# Generator adapter
# ---------------------------------------------------------------------------

class GroqInsightGenerator:
    """OpenAI-compatible chat completions client (Groq by default)."""

    def __init__(
        self,
        api_key: str,
        api_url: str = settings.GROQ_API_URL,
        model: str = settings.GROQ_MODEL,
        timeout: float = settings.INSIGHT_TIMEOUT_SECONDS,
        temperature: float = 0.3,
        max_tokens: int = 1200,
    ):
        self.api_key = api_key
        self.api_url = api_url
        self.model = model
        self.timeout = timeout
        self.temperature = temperature
        self.max_tokens = max_tokens

    def __call__(self, system_prompt: str, user_prompt: str) -> str:
        body = {
            "model": self.model,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}
        try:
            with httpx.Client(timeout=self.timeout) as client:
                resp = client.post(self.api_url, json=body, headers=headers)
                resp.raise_for_status()
                data = resp.json()
        except httpx.HTTPError as exc:
            raise InsightGenerationError(str(exc)) from exc
        except ValueError as exc:
            raise InsightGenerationError("response body is not JSON") from exc

        try:
            return data["choices"][0]["message"]["content"] or ""
        except (KeyError, IndexError, TypeError):
            return ""


# ---------------------------------------------------------------------------
# Orchestration
# ---------------------------------------------------------------------------

def _fetch(db: Session, user_id: str, since: datetime) -> tuple[list[MoodPoint], list[HabitHistory]]:
    moods = [
        MoodPoint(score=row.mood_score, created_at=row.created_at)
        for row in (
            db.query(MoodEntry)
            .filter(MoodEntry.user_id == user_id, MoodEntry.created_at >= since)
            .order_by(MoodEntry.created_at.asc(), MoodEntry.id.asc())
            .all()
        )
    ]

    habits = (
        db.query(Habit)
        .filter(Habit.user_id == user_id, Habit.is_archived.is_(False))
        .order_by(Habit.id.asc())
        .all()
    )
    histories: list[HabitHistory] = []
    for habit in habits:
        logs = (
            db.query(HabitLog)
            .filter(HabitLog.habit_id == habit.id, HabitLog.period_date >= since.date())
            .order_by(HabitLog.period_date.asc())
            .all()
        )
        histories.append(HabitHistory(
            id=habit.id,
            title=habit.title,
            frequency=habit.frequency.value,
            category=habit.category.value if habit.category else "custom",
            target_per_week=habit.target_per_week,
            completions=[
                datetime.combine(log.period_date, datetime.min.time(), tzinfo=timezone.utc)
                for log in logs
            ],
        ))
    return moods, histories


def _dataset(moods: list[MoodPoint], habits: list[HabitHistory]) -> dict:
    return {
        "moods": [{"score": m.score, "created_at": m.created_at} for m in moods],
        "habits": [
            {
                "id": h.id,
                "title": h.title,
                "frequency": h.frequency,
                "category": h.category,
                "target_per_week": h.target_per_week,
                "completions": h.completions,
            }
            for h in habits
        ],
    }


def get_insights(
    db: Session,
    user_id: str,
    generator: Optional[InsightGenerator],
    force_refresh: bool = False,
    now: Optional[datetime] = None,
    window_days: Optional[int] = None,
    tz: Optional[tzinfo] = None,
) -> InsightReport | InsufficientData:
    now = now or datetime.now(tz=timezone.utc)
    window_days = window_days or settings.INSIGHT_WINDOW_DAYS
    tz = tz or settings.tz
    since = to_local(now, timezone.utc) - timedelta(days=window_days)

    moods, habits = _fetch(db, user_id, since)
    if not has_enough_data(moods, habits):
        return InsufficientData(
            required=MIN_MOOD_ENTRIES,
            received=len(moods),
            message=(
                "Not enough data yet. Keep logging your mood and habits for at "
                "least a week to unlock insights."
            ),
        )

    dataset = _dataset(moods, habits)
    gate = FingerprintGate(db)
    if not force_refresh:
        cached = gate.lookup(user_id)
        if cached is not None and not should_recompute(dataset, cached.fingerprint):
            return InsightReport(
                insights=cached.payload,
                cached=True,
                generated_at=cached.fingerprint.computed_at,
                message="Insights served from cache",
            )

    if generator is None:
        raise InsightGeneratorUnavailableError()

    summary = build_behavioral_summary(moods, habits, window_days, tz)
    raw = generator(build_system_prompt(), build_user_prompt(summary, window_days))
    parsed = parse_insights(raw)
    if parsed.kind is ErrorKind.MALFORMED_OUTPUT:
        logger.warning("Insight generator returned malformed output for user %s", user_id)

    fingerprint = gate.commit(user_id, dataset, parsed.items, now=now)
    return InsightReport(
        insights=parsed.items,
        cached=False,
        generated_at=fingerprint.computed_at,
        message=f"Generated {len(parsed.items)} insights",
    )
