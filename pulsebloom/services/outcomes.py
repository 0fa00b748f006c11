"""
Non-exceptional result variants shared by the analytics services.

A computation that cannot produce a meaningful number returns an
`InsufficientData` instead of raising, so callers can render a
"keep logging" message rather than an error page.
"""
from __future__ import annotations

from dataclasses import dataclass, field

from pulsebloom.core.errors import ErrorKind


@dataclass(frozen=True)
class InsufficientData:
    required: int
    received: int
    message: str
    kind: ErrorKind = field(default=ErrorKind.INSUFFICIENT_DATA)

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "required": self.required,
            "received": self.received,
            "message": self.message,
        }


def safe_mean(values: list[float]) -> float | None:
    """Arithmetic mean, or None for an empty list (never NaN)."""
    if not values:
        return None
    return sum(values) / len(values)


def round2(value: float | None) -> float | None:
    return None if value is None else round(value, 2)
