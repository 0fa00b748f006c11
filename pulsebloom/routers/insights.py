"""
Insights router: cached language-model insights over the last 90 days.

GET /insights - cached when the data fingerprint is unchanged
GET /insights?refresh=1 - always regenerate
"""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from pulsebloom.core.deps import CurrentUser, get_insight_generator
from pulsebloom.db.base import get_db
from pulsebloom.routers._serializers import insufficient_to_response, iso_utc
from pulsebloom.schemas.common import ErrorResponse
from pulsebloom.schemas.insight import InsightItem, InsightListResponse
from pulsebloom.services.insights import InsightGenerator, get_insights
from pulsebloom.services.outcomes import InsufficientData

router = APIRouter(prefix="/insights", tags=["insights"])


@router.get(
    "",
    response_model=InsightListResponse,
    summary="Behavioral insights",
    responses={
        502: {"model": ErrorResponse, "description": "The language model call failed."},
        503: {"model": ErrorResponse, "description": "No language model is configured."},
    },
)
def list_insights(
    user_id: CurrentUser,
    refresh: bool = Query(default=False, description="Skip the cache and regenerate."),
    db: Session = Depends(get_db),
    generator: Optional[InsightGenerator] = Depends(get_insight_generator),
):
    """
    Needs at least 7 mood entries, or one habit with 5+ completions, in the
    window. With less data the response carries `insufficient` and an
    empty list.
    """
    result = get_insights(db, user_id, generator, force_refresh=refresh)
    if isinstance(result, InsufficientData):
        return InsightListResponse(
            insights=[],
            cached=False,
            generated_at=None,
            message=result.message,
            insufficient=insufficient_to_response(result),
        )
    return InsightListResponse(
        insights=[InsightItem(**i) for i in result.insights],
        cached=result.cached,
        generated_at=iso_utc(result.generated_at),
        message=result.message,
    )
