"""
Integration tests for the /mood endpoints.
"""
from datetime import date, datetime, timedelta, timezone

from pulsebloom.services import moods

UTC = timezone.utc


def _post(client, headers, score, at: datetime, emoji="🙂"):
    r = client.post(
        "/mood",
        json={"mood_score": score, "emoji": emoji, "created_at": at.isoformat()},
        headers=headers,
    )
    assert r.status_code == 201, r.text
    return r.json()


class TestCreateMood:
    def test_create_returns_entry(self, client, headers):
        at = datetime(2026, 2, 23, 9, 0, tzinfo=UTC)
        body = _post(client, headers, 4, at, emoji="  😊 ")
        assert body["mood_score"] == 4
        assert body["emoji"] == "😊"
        assert body["created_at"].startswith("2026-02-23T09:00:00")

    def test_offset_timestamp_stored_as_utc(self, client, headers):
        at = datetime(2026, 2, 23, 9, 0, tzinfo=timezone(timedelta(hours=5)))
        body = _post(client, headers, 3, at)
        assert body["created_at"].startswith("2026-02-23T04:00:00")

    def test_score_out_of_range(self, client, headers):
        r = client.post("/mood", json={"mood_score": 0, "emoji": "x"}, headers=headers)
        assert r.status_code == 422


class TestMoodStreak:
    def test_streak_counts_today_and_yesterday(self, client, headers):
        now = datetime.now(tz=UTC)
        _post(client, headers, 3, now - timedelta(days=1))
        _post(client, headers, 4, now)
        body = client.get("/mood/streak", headers=headers).json()
        assert body["current"] == 2
        assert body["longest"] == 2

    def test_no_entries(self, client, headers):
        body = client.get("/mood/streak", headers=headers).json()
        assert body == {"current": 0, "longest": 0, "anchor": None, "last_logged": None}

    def test_users_are_isolated(self, client, headers):
        _post(client, headers, 3, datetime.now(tz=UTC))
        other = client.get("/mood/streak", headers={"X-User-Id": headers["X-User-Id"] + "-other"}).json()
        assert other["current"] == 0


class TestMoodHeatmap:
    def test_default_window_length(self, client, headers):
        body = client.get("/mood/heatmap", headers=headers).json()
        assert body["total_days"] == 365
        assert len(body["days"]) == 365

    def test_logged_day_has_average(self, client, headers):
        now = datetime.now(tz=UTC)
        _post(client, headers, 2, now)
        _post(client, headers, 4, now)
        body = client.get("/mood/heatmap?days=7", headers=headers).json()
        assert len(body["days"]) == 7
        assert body["days"][-1]["average"] == 3.0
        assert body["days"][-1]["count"] == 2
        assert body["days"][0]["average"] is None

    def test_zero_days_rejected(self, client, headers):
        r = client.get("/mood/heatmap?days=0", headers=headers)
        assert r.status_code == 400


class TestMonthlySummary:
    def test_empty_month(self, client, headers):
        body = client.get("/mood/summary/monthly?month=2026-02", headers=headers).json()
        assert len(body["days"]) == 28
        assert all(d["average"] is None for d in body["days"])
        assert body["average"] is None
        assert body["best_day"] is None

    def test_best_and_worst(self, client, headers):
        _post(client, headers, 5, datetime(2026, 2, 10, 12, tzinfo=UTC))
        _post(client, headers, 1, datetime(2026, 2, 11, 12, tzinfo=UTC))
        _post(client, headers, 3, datetime(2026, 3, 1, 12, tzinfo=UTC))
        body = client.get("/mood/summary/monthly?month=2026-02", headers=headers).json()
        assert body["total_entries"] == 2
        assert body["best_day"] == {"date": "2026-02-10", "average": 5.0}
        assert body["worst_day"] == {"date": "2026-02-11", "average": 1.0}

    def test_invalid_month(self, client, headers):
        r = client.get("/mood/summary/monthly?month=2026-13", headers=headers)
        assert r.status_code == 400
        assert r.json()["code"] == "INVALID_RANGE"

    def test_year_zero_rejected(self, client, headers):
        r = client.get("/mood/summary/monthly?month=0000-01", headers=headers)
        assert r.status_code == 400
        assert r.json()["code"] == "INVALID_RANGE"

    def test_last_representable_month(self, client, headers):
        r = client.get("/mood/summary/monthly?month=9999-12", headers=headers)
        assert r.status_code == 200
        assert len(r.json()["days"]) == 31


class TestPatternsAndAnalytics:
    def test_daily_insights_need_five_entries(self, client, headers):
        _post(client, headers, 3, datetime(2026, 2, 10, 9, tzinfo=UTC))
        body = client.get("/mood/insights/daily", headers=headers).json()
        assert body["kind"] == "insufficient_data"
        assert body["required"] == 5
        assert body["received"] == 1

    def test_daily_insights(self, client, headers):
        for day, score in ((16, 5), (17, 4), (18, 2), (19, 3), (23, 5)):
            _post(client, headers, score, datetime(2026, 2, day, 9, tzinfo=UTC))
        body = client.get("/mood/insights/daily", headers=headers).json()
        assert body["total_entries"] == 5
        assert body["best_weekday"] == "Monday"
        assert body["best_time_of_day"] == "Morning"

    def test_analytics_distribution_zero_filled(self, client, headers):
        for score in (4, 4, 2):
            _post(client, headers, score, datetime(2026, 2, 5, 12, tzinfo=UTC))
        body = client.get("/mood/analytics", headers=headers).json()
        assert body["distribution"] == {"1": 0, "2": 1, "3": 0, "4": 2, "5": 0}
        assert body["most_frequent"] == 4
        assert body["average"] == 3.33

    def test_analytics_date_range(self, client, headers):
        _post(client, headers, 5, datetime(2026, 2, 1, 23, 59, tzinfo=UTC))
        _post(client, headers, 1, datetime(2026, 2, 2, 0, 1, tzinfo=UTC))
        body = client.get(
            "/mood/analytics?start_date=2026-02-01&end_date=2026-02-01", headers=headers
        ).json()
        assert body["total_entries"] == 1
        assert body["highest"] == 5

    def test_calendar_edge_dates_are_open_bounds(self, client, headers):
        _post(client, headers, 4, datetime(2026, 2, 5, 12, tzinfo=UTC))
        r = client.get(
            "/mood/analytics?start_date=0001-01-01&end_date=9999-12-31", headers=headers
        )
        assert r.status_code == 200
        assert r.json()["total_entries"] == 1

    def test_reversed_range_rejected(self, client, headers):
        r = client.get(
            "/mood/analytics?start_date=2026-02-10&end_date=2026-02-01", headers=headers
        )
        assert r.status_code == 400
        assert r.json()["code"] == "INVALID_RANGE"


class TestTrends:
    def test_weekly_trend(self, client, headers):
        _post(client, headers, 2, datetime(2026, 2, 9, 12, tzinfo=UTC))
        _post(client, headers, 4, datetime(2026, 2, 10, 12, tzinfo=UTC))
        _post(client, headers, 5, datetime(2026, 2, 16, 12, tzinfo=UTC))
        body = client.get("/mood/trends/weekly", headers=headers).json()
        assert body["total_weeks"] == 2
        assert body["weeks"][0] == {"week": "2026-W07", "average": 3.0, "count": 2}

    def test_rolling_average(self, client, headers):
        for day, score in ((1, 2), (2, 4), (9, 5)):
            _post(client, headers, score, datetime(2026, 2, day, 12, tzinfo=UTC))
        body = client.get("/mood/trends/rolling?window_days=7", headers=headers).json()
        assert body["window_days"] == 7
        assert [p["rolling_average"] for p in body["points"]] == [2.0, 3.0, 5.0]

    def test_rolling_window_must_be_positive(self, client, headers):
        assert client.get("/mood/trends/rolling?window_days=0", headers=headers).status_code == 400


class TestBurnoutRisk:
    def test_high_risk(self, client, headers):
        for score in (1, 1, 2):
            _post(client, headers, score, datetime(2026, 2, 20, 12, tzinfo=UTC))
        body = client.get("/mood/burnout-risk", headers=headers).json()
        assert body["risk_score"] == 12.51
        assert body["risk_level"] == "High"
        assert body["low_count"] == 3

    def test_insufficient(self, client, headers):
        _post(client, headers, 4, datetime(2026, 2, 20, 12, tzinfo=UTC))
        body = client.get("/mood/burnout-risk", headers=headers).json()
        assert body["kind"] == "insufficient_data"
        assert body["required"] == 3


class TestMoodEntries:
    def test_list_newest_first_with_paging(self, client, headers):
        base = datetime(2026, 4, 1, 12, tzinfo=UTC)
        ids = [_post(client, headers, 3, base + timedelta(days=i))["id"] for i in range(3)]

        body = client.get("/mood", params={"limit": 2}, headers=headers).json()
        assert body["total"] == 3
        assert body["limit"] == 2
        assert [e["id"] for e in body["items"]] == [ids[2], ids[1]]

        rest = client.get("/mood", params={"limit": 2, "offset": 2}, headers=headers).json()
        assert [e["id"] for e in rest["items"]] == [ids[0]]

    def test_list_date_range(self, client, headers):
        _post(client, headers, 2, datetime(2026, 4, 1, 12, tzinfo=UTC))
        inside = _post(client, headers, 4, datetime(2026, 4, 2, 23, 30, tzinfo=UTC))
        _post(client, headers, 5, datetime(2026, 4, 3, 0, 30, tzinfo=UTC))
        body = client.get(
            "/mood",
            params={"start_date": "2026-04-02", "end_date": "2026-04-02"},
            headers=headers,
        ).json()
        assert body["total"] == 1
        assert body["items"][0]["id"] == inside["id"]

    def test_get_by_id(self, client, headers):
        entry = _post(client, headers, 4, datetime(2026, 4, 1, 12, tzinfo=UTC))
        r = client.get(f"/mood/{entry['id']}", headers=headers)
        assert r.status_code == 200
        assert r.json() == entry

    def test_other_users_entry_is_not_found(self, client, headers):
        entry = _post(client, headers, 4, datetime(2026, 4, 1, 12, tzinfo=UTC))
        r = client.get(f"/mood/{entry['id']}", headers={"X-User-Id": "intruder"})
        assert r.status_code == 404
        assert r.json()["code"] == "MOOD_ENTRY_NOT_FOUND"
        r = client.delete(f"/mood/{entry['id']}", headers={"X-User-Id": "intruder"})
        assert r.status_code == 404

    def test_patch_score_and_time(self, client, headers):
        entry = _post(client, headers, 2, datetime(2026, 4, 1, 12, tzinfo=UTC))
        moved = datetime(2026, 4, 1, 9, tzinfo=timezone(timedelta(hours=2)))
        r = client.patch(
            f"/mood/{entry['id']}",
            json={"mood_score": 5, "created_at": moved.isoformat()},
            headers=headers,
        )
        assert r.status_code == 200
        body = r.json()
        assert body["mood_score"] == 5
        assert body["emoji"] == entry["emoji"]
        assert body["created_at"].startswith("2026-04-01T07:00:00")

    def test_patch_unlinks_journal(self, client, headers):
        r = client.post(
            "/mood",
            json={"mood_score": 3, "emoji": "x", "journal_id": "j-1"},
            headers=headers,
        )
        entry = r.json()
        body = client.patch(f"/mood/{entry['id']}", json={"journal_id": None}, headers=headers).json()
        assert body["journal_id"] is None

    def test_patch_null_score_rejected(self, client, headers):
        entry = _post(client, headers, 2, datetime(2026, 4, 1, 12, tzinfo=UTC))
        r = client.patch(f"/mood/{entry['id']}", json={"mood_score": None}, headers=headers)
        assert r.status_code == 422

    def test_patch_empty_body(self, client, headers):
        entry = _post(client, headers, 2, datetime(2026, 4, 1, 12, tzinfo=UTC))
        r = client.patch(f"/mood/{entry['id']}", json={}, headers=headers)
        assert r.status_code == 400
        assert r.json()["code"] == "EMPTY_UPDATE"

    def test_delete(self, client, headers):
        entry = _post(client, headers, 2, datetime(2026, 4, 1, 12, tzinfo=UTC))
        r = client.delete(f"/mood/{entry['id']}", headers=headers)
        assert r.status_code == 204
        assert r.content == b""
        assert client.get(f"/mood/{entry['id']}", headers=headers).status_code == 404
        assert client.get("/mood", headers=headers).json()["total"] == 0


class TestResolveRange:
    def test_end_of_calendar_is_open(self):
        assert moods.resolve_range(None, date.max, tz=UTC) == (None, None)

    def test_start_before_utc_epoch_edge_is_open(self):
        plus_five = timezone(timedelta(hours=5))
        start, end = moods.resolve_range(date.min, date(2026, 2, 1), tz=plus_five)
        assert start is None
        assert end == datetime(2026, 2, 1, 19, tzinfo=UTC)

    def test_end_is_inclusive_through_local_midnight(self):
        start, end = moods.resolve_range(date(2026, 2, 1), date(2026, 2, 1), tz=UTC)
        assert start == datetime(2026, 2, 1, tzinfo=UTC)
        assert end == datetime(2026, 2, 2, tzinfo=UTC)
