"""
Habit request / response schemas.

POST   /habits                    → HabitCreate → HabitResponse
GET    /habits                    → HabitListResponse
PATCH  /habits/{id}               → HabitUpdate → HabitResponse
PATCH  /habits/{id}/reminder      → HabitReminderUpdate → HabitResponse
PATCH  /habits/reorder            → HabitReorderRequest → HabitListResponse
POST   /habits/{id}/complete      → HabitCompleteRequest → HabitLogResponse
DELETE /habits/{id}/complete      → HabitUndoResponse
GET    /habits/{id}/analytics     → HabitAnalyticsResponse
"""
import re
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from pulsebloom.models.habit import HabitCategory, HabitFrequency
from pulsebloom.schemas.common import StreakResponse

_HHMM_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class HabitCreate(BaseModel):
    title: Annotated[str, Field(min_length=1, max_length=128, examples=["Morning meditation"])]
    description: Optional[str] = Field(default=None, max_length=2_000)
    frequency: HabitFrequency = HabitFrequency.daily
    category: HabitCategory = HabitCategory.custom
    target_per_week: Optional[int] = Field(default=None, ge=1, le=7)
    reminder_on: bool = False
    reminder_time: Optional[str] = Field(
        default=None,
        description='Zero-padded 24h "HH:MM" in the app timezone.',
        examples=["08:05"],
    )

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, v: str) -> str:
        if isinstance(v, str):
            v = v.strip()
            if not v:
                raise ValueError("title must not be blank")
        return v

    @field_validator("reminder_time")
    @classmethod
    def check_hhmm(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not _HHMM_RE.match(v):
            raise ValueError('reminder_time must be "HH:MM" (24h, zero-padded)')
        return v


class HabitUpdate(BaseModel):
    """Partial update of the descriptive fields. Frequency is fixed at creation."""

    title: Optional[str] = Field(default=None, min_length=1, max_length=128)
    description: Optional[str] = Field(default=None, max_length=2_000)
    category: Optional[HabitCategory] = None
    target_per_week: Optional[int] = Field(default=None, ge=1, le=7)

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, v: Optional[str]) -> Optional[str]:
        if isinstance(v, str):
            v = v.strip()
            if not v:
                raise ValueError("title must not be blank")
        return v

    @model_validator(mode="after")
    def required_fields_not_null(self) -> "HabitUpdate":
        for name in ("title", "category"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self


class HabitReminderUpdate(BaseModel):
    reminder_on: bool
    reminder_time: Optional[str] = Field(
        default=None,
        description='Zero-padded 24h "HH:MM". Required when turning the reminder on.',
        examples=["21:30"],
    )

    @field_validator("reminder_time")
    @classmethod
    def check_hhmm(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not _HHMM_RE.match(v):
            raise ValueError('reminder_time must be "HH:MM" (24h, zero-padded)')
        return v

    @model_validator(mode="after")
    def time_required_when_on(self) -> "HabitReminderUpdate":
        if self.reminder_on and self.reminder_time is None:
            raise ValueError("reminder_time is required when reminder_on is true")
        return self


class HabitReorderRequest(BaseModel):
    habit_ids: list[int] = Field(min_length=1, description="Habit ids in the new display order.")

    @field_validator("habit_ids")
    @classmethod
    def no_duplicates(cls, v: list[int]) -> list[int]:
        if len(set(v)) != len(v):
            raise ValueError("habit_ids must not repeat")
        return v


class HabitResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: Optional[str] = None
    frequency: str
    category: str
    target_per_week: Optional[int] = None
    reminder_on: bool
    reminder_time: Optional[str] = None
    is_archived: bool
    sort_order: int
    created_at: str


class HabitListResponse(BaseModel):
    total: int
    items: list[HabitResponse]


class HabitCompleteRequest(BaseModel):
    note: Optional[str] = Field(default=None, max_length=2_000)


class HabitLogResponse(BaseModel):
    id: int
    habit_id: int
    period_date: str = Field(description="Normalized period start: the day, or the ISO-week Monday.")
    note: Optional[str] = None
    completed_at: str


class HabitUndoResponse(BaseModel):
    habit_id: int
    period_date: str = Field(description="Period start of the completion that was removed.")


class ConsistencyResponse(BaseModel):
    value: float = Field(description="Weighted score in [0, 100].")
    components: dict[str, float]


class HabitAnalyticsResponse(BaseModel):
    habit_id: int
    total_completions: int
    total_possible_periods: int
    completion_rate: float = Field(description="Percentage, 2 decimals.")
    missed_periods: int
    current_streak: int
    longest_streak: int
    consistency: ConsistencyResponse
    streak: StreakResponse
