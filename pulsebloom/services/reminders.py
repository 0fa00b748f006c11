"""
Reminder sweep: one tick of the habit reminder job.

An external scheduler calls POST /reminders/sweep once a minute. Each tick:

  1. Formats `now` in the configured zone as zero-padded "HH:MM".
  2. Selects habits with reminder_on, reminder_time == "HH:MM", not archived.
  3. For each habit, point-looks-up habit_logs on (habit_id, period_date)
     for the current period. A hit means already completed: skipped.
  4. Otherwise hands a reminder to the notification dispatcher.

Habits are processed independently; one failure is counted and logged
and never stops the rest of the sweep.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from typing import Optional

from sqlalchemy.orm import Session

from pulsebloom.core.config import settings
from pulsebloom.models.habit import Habit, HabitLog
from pulsebloom.services.habits import period_kind
from pulsebloom.services.notifications import NotificationDispatcher, reminder_notification
from pulsebloom.services.periods import normalize, to_local

logger = logging.getLogger(__name__)


@dataclass
class SweepResult:
    reminder_time: str
    sent: int = 0
    skipped: int = 0
    failed: int = 0

    @property
    def total(self) -> int:
        return self.sent + self.skipped + self.failed


def format_hhmm(now: datetime, tz: Optional[tzinfo] = None) -> str:
    return to_local(now, tz).strftime("%H:%M")


def _is_completed(db: Session, habit: Habit, now: datetime, tz: tzinfo) -> bool:
    period_date = normalize(now, period_kind(habit), tz).start_date
    hit = (
        db.query(HabitLog.id)
        .filter(HabitLog.habit_id == habit.id, HabitLog.period_date == period_date)
        .first()
    )
    return hit is not None


def run_reminder_sweep(
    db: Session,
    dispatcher: NotificationDispatcher,
    now: Optional[datetime] = None,
    tz: Optional[tzinfo] = None,
) -> SweepResult:
    tz = tz or settings.tz
    now = now or datetime.now(tz=timezone.utc)
    hhmm = format_hhmm(now, tz)
    result = SweepResult(reminder_time=hhmm)

    habits = (
        db.query(Habit)
        .filter(
            Habit.reminder_on.is_(True),
            Habit.reminder_time == hhmm,
            Habit.is_archived.is_(False),
        )
        .order_by(Habit.id.asc())
        .all()
    )
    if not habits:
        logger.debug("Reminder sweep %s: no habits due", hhmm)
        return result

    for habit in habits:
        try:
            if _is_completed(db, habit, now, tz):
                result.skipped += 1
                continue
            note = reminder_notification(habit.user_id, habit.id, habit.title, hhmm)
            if dispatcher.dispatch(note):
                result.sent += 1
            else:
                result.failed += 1
        except Exception:
            logger.exception("Reminder for habit %s failed", habit.id)
            result.failed += 1

    logger.info(
        "Reminder sweep %s: sent=%d skipped=%d failed=%d",
        hhmm, result.sent, result.skipped, result.failed,
    )
    return result
