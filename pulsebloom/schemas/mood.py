"""
Mood request / response schemas.

POST  /mood                   → MoodCreate → MoodResponse
GET   /mood                   → MoodListResponse
PATCH /mood/{id}              → MoodUpdate → MoodResponse
GET   /mood/insights/daily    → DailyPatternsResponse
GET   /mood/analytics         → MoodAnalyticsResponse
GET   /mood/trends/weekly     → WeeklyTrendResponse
GET   /mood/trends/rolling    → RollingAverageResponse
GET   /mood/burnout-risk      → BurnoutRiskResponse
"""
from datetime import datetime
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class MoodCreate(BaseModel):
    mood_score: Annotated[int, Field(ge=1, le=5, description="1 (very low) to 5 (great).")]
    emoji: Annotated[str, Field(min_length=1, max_length=16, examples=["🙂"])]
    journal_id: Optional[str] = Field(default=None, max_length=64)
    created_at: Optional[datetime] = Field(
        default=None,
        description="When the mood was felt. Defaults to now. Naive values are read as UTC.",
    )

    @field_validator("emoji", mode="before")
    @classmethod
    def strip_emoji(cls, v: str) -> str:
        if isinstance(v, str):
            v = v.strip()
        return v


class MoodResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    mood_score: int
    emoji: str
    journal_id: Optional[str] = None
    created_at: str


class MoodListResponse(BaseModel):
    total: int = Field(description="Entries matching the range, across all pages.")
    limit: int
    offset: int
    items: list[MoodResponse] = Field(description="Newest first.")


class MoodUpdate(BaseModel):
    """Partial update. Only the fields sent are changed; journal_id: null unlinks."""

    mood_score: Optional[int] = Field(default=None, ge=1, le=5)
    emoji: Optional[str] = Field(default=None, min_length=1, max_length=16)
    journal_id: Optional[str] = Field(default=None, max_length=64)
    created_at: Optional[datetime] = None

    @field_validator("emoji", mode="before")
    @classmethod
    def strip_emoji(cls, v: Optional[str]) -> Optional[str]:
        if isinstance(v, str):
            v = v.strip()
        return v

    @model_validator(mode="after")
    def required_fields_not_null(self) -> "MoodUpdate":
        for name in ("mood_score", "emoji", "created_at"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self


class PatternBucketResponse(BaseModel):
    label: str
    average: Optional[float]
    count: int


class DailyPatternsResponse(BaseModel):
    total_entries: int
    by_weekday: list[PatternBucketResponse] = Field(description="Monday first.")
    by_time_of_day: list[PatternBucketResponse] = Field(
        description="Morning 05-12, Afternoon 12-17, Evening 17-21, Night 21-05."
    )
    best_weekday: Optional[str]
    worst_weekday: Optional[str]
    most_consistent_weekday: Optional[str]
    best_time_of_day: Optional[str]


class MoodAnalyticsResponse(BaseModel):
    total_entries: int
    average: Optional[float]
    highest: Optional[float]
    lowest: Optional[float]
    most_frequent: Optional[float]
    distribution: dict[str, int] = Field(description='Count per score, "1" through "5".')


class WeeklyTrendPoint(BaseModel):
    week: str = Field(examples=["2026-W07"])
    average: Optional[float]
    count: int


class WeeklyTrendResponse(BaseModel):
    total_weeks: int
    weeks: list[WeeklyTrendPoint]


class RollingPointResponse(BaseModel):
    date: str
    daily_average: float
    rolling_average: float
    days_in_window: int


class RollingAverageResponse(BaseModel):
    window_days: int
    points: list[RollingPointResponse]


class BurnoutRiskResponse(BaseModel):
    risk_score: float
    risk_level: str = Field(description='"Low" | "Moderate" | "High"')
    total_entries: int
    average: float
    low_count: int = Field(description="Entries scoring 2 or lower.")
    volatility: float = Field(description="Highest minus lowest score in the window.")
    components: dict[str, float]
