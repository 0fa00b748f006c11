"""
Integration tests for GET /insights and the /reminders endpoints.
"""
import json
from datetime import datetime, timedelta, timezone

from pulsebloom.services.notifications import reminder_notification

UTC = timezone.utc

_CARD = {"type": "positive", "title": "Steady week", "description": "Seven check-ins in a row.", "severity": "success"}


def _seed(client, headers, count: int):
    now = datetime.now(tz=UTC)
    for i in range(count):
        client.post(
            "/mood",
            json={"mood_score": 4, "emoji": "🙂", "created_at": (now - timedelta(days=i)).isoformat()},
            headers=headers,
        )


class TestInsightsEndpoint:
    def test_insufficient_data(self, client, headers, generator):
        _seed(client, headers, 3)
        body = client.get("/insights", headers=headers).json()
        assert body["insights"] == []
        assert body["cached"] is False
        assert body["insufficient"]["required"] == 7
        assert generator.calls == []

    def test_generate_then_cache_then_refresh(self, client, headers, generator):
        generator.response = "```json\n" + json.dumps([_CARD]) + "\n```"
        _seed(client, headers, 7)

        first = client.get("/insights", headers=headers).json()
        assert first["cached"] is False
        assert first["insights"] == [_CARD]
        assert first["generated_at"] is not None

        second = client.get("/insights", headers=headers).json()
        assert second["cached"] is True
        assert second["insights"] == [_CARD]

        third = client.get("/insights?refresh=true", headers=headers).json()
        assert third["cached"] is False
        assert len(generator.calls) == 2

    def test_prompt_contains_weekly_summary_only(self, client, headers, generator):
        _seed(client, headers, 7)
        client.get("/insights", headers=headers)
        _, user_prompt = generator.calls[0]
        assert "MOOD DATA" in user_prompt
        assert "weekly_averages" in user_prompt
        assert "🙂" not in user_prompt


class TestReminderSweepEndpoint:
    def test_sweep_shape(self, client):
        r = client.post("/reminders/sweep")
        assert r.status_code == 200
        body = r.json()
        assert len(body["reminder_time"]) == 5
        assert set(body) == {"reminder_time", "sent", "skipped", "failed"}

    def test_failures_lists_given_up_deliveries_newest_first(self, client, dispatcher, sender):
        sender.fail_times = 10
        dispatcher.dispatch(reminder_notification("u1", 1, "Stretch", "08:05"))
        dispatcher.dispatch(reminder_notification("u2", 2, "Read", "08:06"))

        body = client.get("/reminders/failures").json()
        assert body["total"] == 2
        assert [item["habit_id"] for item in body["items"]] == [2, 1]
        assert body["items"][0]["attempts"] == 1
        assert "ConnectionError" in body["items"][0]["error"]

    def test_failures_empty(self, client):
        assert client.get("/reminders/failures").json() == {"total": 0, "items": []}


class TestHealth:
    def test_health(self, client):
        r = client.get("/health")
        assert r.status_code == 200
        assert r.json()["status"] == "ok"
