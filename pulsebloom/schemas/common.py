"""
Shared schema primitives used across the API.

Streak, heatmap and monthly calendar shapes are shared by the mood and
habit routers.
"""
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field


class ErrorDetail(BaseModel):
    """A single field-level validation error."""
    field: str
    message: str
    type: str


class ErrorResponse(BaseModel):
    """Standard error envelope returned for all 4xx/5xx responses."""
    model_config = ConfigDict(from_attributes=True)

    code: str
    message: str
    details: Optional[dict[str, Any]] = None


class InsufficientDataResponse(BaseModel):
    """Returned with 200 when there is too little data for a metric."""
    kind: str = Field(default="insufficient_data")
    required: int = Field(description="Minimum number of entries needed.")
    received: int = Field(description="Number of entries found.")
    message: str


class StreakResponse(BaseModel):
    current: int = Field(description="Consecutive logged periods ending now or in the previous period.")
    longest: int = Field(description="Longest run anywhere in the history.")
    anchor: Optional[str] = Field(
        default=None,
        description='Period key the live streak counts from ("2026-02-16" or "2026-W08").',
    )
    last_logged: Optional[str] = Field(default=None, description="Start date of the newest logged period.")


class HeatmapDayResponse(BaseModel):
    date: str
    average: Optional[float] = Field(description="null when nothing was logged that day.")
    count: int


class HeatmapResponse(BaseModel):
    total_days: int
    logged_days: int
    days: list[HeatmapDayResponse] = Field(description="Exactly total_days entries, oldest first.")


class CalendarDayResponse(BaseModel):
    date: str
    day: int
    average: Optional[float]
    count: int


class DayScoreResponse(BaseModel):
    date: str
    average: float


class MonthlySummaryResponse(BaseModel):
    month: str = Field(examples=["2026-02"])
    total_entries: int
    logged_days: int
    average: Optional[float]
    best_day: Optional[DayScoreResponse] = None
    worst_day: Optional[DayScoreResponse] = None
    days: list[CalendarDayResponse] = Field(description="One entry per calendar day of the month.")
