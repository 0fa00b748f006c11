"""
Reminder schemas.

POST /reminders/sweep    → SweepResponse
GET  /reminders/failures → FailedDeliveryListResponse
"""
from typing import Optional

from pydantic import BaseModel, Field


class SweepResponse(BaseModel):
    reminder_time: str = Field(description='"HH:MM" tick that was processed.', examples=["08:05"])
    sent: int
    skipped: int = Field(description="Due habits already completed this period.")
    failed: int


class FailedDeliveryResponse(BaseModel):
    user_id: str
    habit_id: Optional[int] = None
    subject: str
    attempts: int
    error: str
    failed_at: str


class FailedDeliveryListResponse(BaseModel):
    total: int
    items: list[FailedDeliveryResponse] = Field(description="Most recent first.")
