"""
Reminders router.

POST /reminders/sweep: run one reminder tick; meant for an external
scheduler firing once a minute.
GET  /reminders/failures: deliveries the dispatcher gave up on.
"""
from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from pulsebloom.core.deps import get_dispatcher
from pulsebloom.db.base import get_db
from pulsebloom.routers._serializers import iso_utc
from pulsebloom.schemas.reminder import (
    FailedDeliveryListResponse,
    FailedDeliveryResponse,
    SweepResponse,
)
from pulsebloom.services.notifications import FailedDelivery, NotificationDispatcher
from pulsebloom.services.reminders import run_reminder_sweep

router = APIRouter(prefix="/reminders", tags=["reminders"])


def _failure_to_response(f: FailedDelivery) -> FailedDeliveryResponse:
    return FailedDeliveryResponse(
        user_id=f.notification.user_id,
        habit_id=f.notification.habit_id,
        subject=f.notification.subject,
        attempts=f.attempts,
        error=f.error,
        failed_at=iso_utc(f.failed_at),
    )


@router.post("/sweep", response_model=SweepResponse, summary="Run one reminder tick")
def sweep(
    db: Session = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    result = run_reminder_sweep(db, dispatcher)
    return SweepResponse(
        reminder_time=result.reminder_time,
        sent=result.sent,
        skipped=result.skipped,
        failed=result.failed,
    )


@router.get(
    "/failures",
    response_model=FailedDeliveryListResponse,
    summary="Recent failed reminder deliveries",
)
def list_failures(
    limit: int = Query(default=50, ge=1, le=500),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    recent = list(dispatcher.failures)[::-1][:limit]
    return FailedDeliveryListResponse(
        total=len(dispatcher.failures),
        items=[_failure_to_response(f) for f in recent],
    )
