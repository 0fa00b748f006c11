"""
Insight schemas.

GET /insights → InsightListResponse
"""
from typing import Optional

from pydantic import BaseModel, Field

from pulsebloom.schemas.common import InsufficientDataResponse


class InsightItem(BaseModel):
    type: str = Field(description='"correlation" | "streak" | "warning" | "positive" | "suggestion"')
    title: str = Field(max_length=100)
    description: str = Field(max_length=500)
    severity: str = Field(description='"info" | "warning" | "success"')


class InsightListResponse(BaseModel):
    insights: list[InsightItem]
    cached: bool
    generated_at: Optional[str] = None
    message: str
    insufficient: Optional[InsufficientDataResponse] = Field(
        default=None,
        description="Present when there is not enough data to generate insights.",
    )
