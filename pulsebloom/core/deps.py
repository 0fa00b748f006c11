"""
FastAPI dependencies shared by the routers.

Authentication lives upstream; the gateway forwards the caller's id in
the X-User-Id header. The notification dispatcher is shared by
the whole process so its failure log outlives a single request. Tests
override the generator and dispatcher through app.dependency_overrides.
"""
from functools import lru_cache
from typing import Annotated, Optional

from fastapi import Depends, Header

from pulsebloom.core.config import settings
from pulsebloom.services.insights import GroqInsightGenerator, InsightGenerator
from pulsebloom.services.notifications import NotificationDispatcher


def get_current_user_id(
    x_user_id: Annotated[str, Header(min_length=1, max_length=64, description="Caller's user id.")],
) -> str:
    return x_user_id.strip()


def get_insight_generator() -> Optional[InsightGenerator]:
    if not settings.GROQ_API_KEY:
        return None
    return GroqInsightGenerator(api_key=settings.GROQ_API_KEY)


@lru_cache(maxsize=1)
def get_dispatcher() -> NotificationDispatcher:
    return NotificationDispatcher(max_attempts=settings.REMINDER_MAX_ATTEMPTS)


CurrentUser = Annotated[str, Depends(get_current_user_id)]
