"""
Tests for error handling: structured error responses, HTTP status codes,
and the custom exception classes.
"""
from datetime import date

from pulsebloom.core.errors import (
    DateRangeReversedError,
    ErrorKind,
    HabitAlreadyCompletedError,
    HabitArchivedError,
    HabitNotFoundError,
    InsightGenerationError,
    InsightGeneratorUnavailableError,
    InvalidRangeError,
    WindowTooLargeError,
)
from pulsebloom.services.outcomes import InsufficientData


# ---------------------------------------------------------------------------
# Unit tests on exception classes
# ---------------------------------------------------------------------------

class TestExceptionClasses:
    def test_window_too_large(self):
        err = WindowTooLargeError(requested=900, maximum=730)
        assert isinstance(err, InvalidRangeError)
        assert err.http_status == 400
        assert err.code == "INVALID_RANGE"
        assert err.kind is ErrorKind.INVALID_RANGE
        assert "730" in err.message
        assert err.to_dict()["details"] == {"requested": 900, "maximum": 730}

    def test_reversed_range(self):
        err = DateRangeReversedError(start=date(2026, 2, 20), end=date(2026, 2, 1))
        assert err.http_status == 400
        assert err.details["start_date"] == "2026-02-20"

    def test_habit_not_found(self):
        err = HabitNotFoundError(habit_id=42)
        assert err.http_status == 404
        assert err.code == "HABIT_NOT_FOUND"
        assert err.details == {"habit_id": 42}

    def test_habit_already_completed(self):
        err = HabitAlreadyCompletedError(habit_id=3, period_date=date(2026, 2, 16))
        assert err.http_status == 409
        assert err.kind is ErrorKind.CONFLICT
        assert err.to_dict()["details"]["period_date"] == "2026-02-16"

    def test_habit_archived(self):
        assert HabitArchivedError(habit_id=1).http_status == 400

    def test_upstream_errors(self):
        assert InsightGenerationError("timeout").http_status == 502
        assert InsightGenerationError("timeout").kind is ErrorKind.UPSTREAM_ERROR
        assert InsightGeneratorUnavailableError().http_status == 503

    def test_to_dict_omits_empty_details(self):
        assert "details" not in InsightGeneratorUnavailableError().to_dict()

    def test_insufficient_data_is_a_value(self):
        r = InsufficientData(required=3, received=1, message="Keep logging")
        assert r.to_dict() == {
            "kind": "insufficient_data",
            "required": 3,
            "received": 1,
            "message": "Keep logging",
        }


# ---------------------------------------------------------------------------
# HTTP envelope
# ---------------------------------------------------------------------------

class TestErrorResponses:
    def test_validation_error_envelope(self, client, headers):
        r = client.post("/mood", json={"mood_score": 9, "emoji": "🙂"}, headers=headers)
        assert r.status_code == 422
        body = r.json()
        assert body["code"] == "VALIDATION_ERROR"
        assert any(e["field"] == "mood_score" for e in body["details"]["errors"])

    def test_missing_user_header(self, client):
        r = client.get("/mood/streak")
        assert r.status_code == 422
        assert r.json()["code"] == "VALIDATION_ERROR"

    def test_invalid_range_envelope(self, client, headers):
        r = client.get("/mood/heatmap?days=5000", headers=headers)
        assert r.status_code == 400
        assert r.json()["code"] == "INVALID_RANGE"
        assert r.json()["details"]["maximum"] == 730

    def test_not_found_envelope(self, client, headers):
        r = client.get("/habits/999999/streak", headers=headers)
        assert r.status_code == 404
        assert r.json() == {
            "code": "HABIT_NOT_FOUND",
            "message": "Habit 999999 not found.",
            "details": {"habit_id": 999999},
        }
