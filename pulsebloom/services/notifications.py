"""
Notification dispatcher: best-effort delivery of reminder messages.

Delivery is fire-and-forget from the caller's point of view. `dispatch`
never raises for a sender failure: it retries up to `max_attempts` times,
then records the failure in `failures` and logs it. `failures` keeps the
most recent `failure_log_size` entries. Analytics requests never wait on
a notification.

The sender is any callable taking a Notification. It signals failure by
raising; the return value is ignored.
"""
from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Optional

logger = logging.getLogger(__name__)

MAX_ATTEMPTS_DEFAULT = 3
FAILURE_LOG_SIZE = 500

Sender = Callable[["Notification"], None]


@dataclass(frozen=True)
class Notification:
    user_id: str
    subject: str
    body: str
    habit_id: Optional[int] = None


@dataclass
class FailedDelivery:
    notification: Notification
    attempts: int
    error: str
    failed_at: datetime = field(default_factory=lambda: datetime.now(tz=timezone.utc))


def log_sender(notification: Notification) -> None:
    """Default sender: writes the reminder to the application log."""
    logger.info(
        "Reminder for user %s: %s",
        notification.user_id,
        notification.subject,
    )


def reminder_notification(user_id: str, habit_id: int, habit_title: str, reminder_time: str) -> Notification:
    return Notification(
        user_id=user_id,
        habit_id=habit_id,
        subject=f"Reminder: {habit_title}",
        body=(
            f"It's {reminder_time}, time for \"{habit_title}\". "
            "You haven't completed it for this period yet."
        ),
    )


class NotificationDispatcher:
    def __init__(
        self,
        sender: Sender = log_sender,
        max_attempts: int = MAX_ATTEMPTS_DEFAULT,
        failure_log_size: int = FAILURE_LOG_SIZE,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.sender = sender
        self.max_attempts = max_attempts
        self.failures: deque[FailedDelivery] = deque(maxlen=failure_log_size)

    def dispatch(self, notification: Notification) -> bool:
        """Deliver with bounded retries. Returns True once a send succeeds."""
        last_error = ""
        for attempt in range(1, self.max_attempts + 1):
            try:
                self.sender(notification)
                return True
            except Exception as exc:
                last_error = f"{type(exc).__name__}: {exc}"
                logger.warning(
                    "Notification to %s failed (attempt %d/%d): %s",
                    notification.user_id, attempt, self.max_attempts, last_error,
                )

        self.failures.append(FailedDelivery(
            notification=notification,
            attempts=self.max_attempts,
            error=last_error,
        ))
        logger.error(
            "Giving up on notification to %s after %d attempts",
            notification.user_id, self.max_attempts,
        )
        return False
