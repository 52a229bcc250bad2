# ==============================================================================
# Tests for the Reports API
# ==============================================================================
"""
Endpoint tests for /api/reports using FastAPI's TestClient.

The clock is frozen at Monday 2024-06-10 18:00 UTC by the client fixture.
"""

from datetime import datetime, timedelta

import pytest

from popular_clicks.api.reports import get_popular_clicks
from popular_clicks.main import app
from popular_clicks.services.popular_clicks import NO_RESULTS_MESSAGE, PopularClicks
from popular_clicks.services.store import StoreError

from conftest import NOW


class BrokenStore:
    def count_clicks(self, since, until=None, limit=None):
        raise StoreError("Could not count clicks: disk I/O error")

    def recent_clicks(self, limit):
        raise StoreError("Could not read the click log: disk I/O error")


@pytest.fixture()
def seeded(add_link, add_clicks):
    add_link("abc", "https://example.com/a", "Alpha")
    add_link("xyz", "https://example.com/x", "Xray")
    add_clicks("abc", *[datetime(2024, 6, 10, 9, minute) for minute in range(5)])
    add_clicks("xyz", *[datetime(2024, 6, 10, 14, minute) for minute in range(3)])
    add_clicks("xyz", NOW - timedelta(minutes=10), country_code="DE")


@pytest.fixture()
def broken_client(client, test_settings):
    app.dependency_overrides[get_popular_clicks] = lambda: PopularClicks(BrokenStore(), test_settings)
    yield client
    app.dependency_overrides.pop(get_popular_clicks, None)


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


# ==============================================================================
# Whole page
# ==============================================================================


class TestPage:
    """GET /api/reports"""

    def test_catalog(self, client, seeded):
        response = client.get("/api/reports")

        assert response.status_code == 200
        data = response.json()
        assert data["generated_at"] == "2024-06-10T18:00:00"
        assert len(data["reports"]) == 12
        assert [r["label"] for r in data["reports"][:2]] == ["the last hour", "the last 24 hours"]

        today = data["reports"][4]
        assert today["label"] == "today (10th June 2024) (so far)"
        assert [(e["link_id"], e["click_count"]) for e in today["entries"]] == [("abc", 5), ("xyz", 4)]
        assert today["total_clicks"] == 9

    def test_last_hour_only_sees_recent_click(self, client, seeded):
        last_hour = client.get("/api/reports").json()["reports"][0]

        assert [(e["link_id"], e["click_count"]) for e in last_hour["entries"]] == [("xyz", 1)]
        assert last_hour["window"] == {"from": "2024-06-10T17:00:00", "to": "2024-06-10T18:00:00"}

    def test_limit_applies_to_every_report(self, client, seeded):
        reports = client.get("/api/reports", params={"limit": 1}).json()["reports"]

        assert all(len(r["entries"]) <= 1 for r in reports)
        assert not any(r["used_default_limit"] for r in reports)

    def test_failures_stay_inside_their_report(self, broken_client):
        response = broken_client.get("/api/reports")

        assert response.status_code == 200
        reports = response.json()["reports"]
        assert all(r["error"] == "Could not count clicks: disk I/O error" for r in reports)
        assert not any(r["no_results"] for r in reports)


# ==============================================================================
# Single reports
# ==============================================================================


class TestFixedReport:
    """GET /api/reports/fixed/{granularity}"""

    def test_today(self, client, seeded):
        response = client.get("/api/reports/fixed/day")

        assert response.status_code == 200
        data = response.json()
        assert data["kind"] == "fixed"
        assert data["granularity"] == "day"
        assert data["periods_ago"] == 0
        assert data["window"] == {"from": "2024-06-10T00:00:00", "to": "2024-06-10T23:59:59"}
        assert data["entries"][0] == {
            "link_id": "abc",
            "click_count": 5,
            "destination_url": "https://example.com/a",
            "title": "Alpha",
            "short_url": "https://sho.rt/abc",
        }

    def test_last_month_is_empty(self, client, seeded):
        data = client.get("/api/reports/fixed/month", params={"periods_ago": 1}).json()

        assert data["label"] == "last month (May 2024)"
        assert data["window"] == {"from": "2024-05-01T00:00:00", "to": "2024-05-31T23:59:59"}
        assert data["entries"] == []
        assert data["no_results"] is True
        assert data["message"] == NO_RESULTS_MESSAGE
        assert data["error"] is None

    def test_all_time(self, client, seeded):
        data = client.get("/api/reports/fixed/all").json()

        assert data["label"] == "all time"
        assert data["window"]["to"] == "2038-01-19T03:14:07"
        assert data["total_clicks"] == 9

    @pytest.mark.parametrize("limit", ["-1", "0", "ten"])
    def test_bad_limits_fall_back_to_default(self, client, seeded, limit):
        response = client.get("/api/reports/fixed/day", params={"limit": limit})

        assert response.status_code == 200
        assert response.json()["used_default_limit"] is True
        assert len(response.json()["entries"]) == 2

    def test_unknown_granularity_is_rejected(self, client):
        assert client.get("/api/reports/fixed/fortnight").status_code == 422

    def test_negative_periods_ago_is_rejected(self, client):
        assert client.get("/api/reports/fixed/day", params={"periods_ago": -1}).status_code == 422

    def test_store_failure(self, broken_client):
        response = broken_client.get("/api/reports/fixed/day")

        assert response.status_code == 503
        assert "disk I/O error" in response.json()["detail"]


class TestRollingReport:
    """GET /api/reports/rolling"""

    def test_five_minutes(self, client, add_link, add_clicks):
        add_link("abc")
        add_clicks("abc", NOW - timedelta(seconds=600), NOW - timedelta(seconds=100))

        data = client.get("/api/reports/rolling", params={"seconds": 300}).json()

        assert data["label"] == "the last 5 minutes"
        assert data["kind"] == "rolling"
        assert data["seconds"] == 300
        assert data["periods_ago"] is None
        assert [(e["link_id"], e["click_count"]) for e in data["entries"]] == [("abc", 1)]

    def test_seconds_must_be_positive(self, client):
        assert client.get("/api/reports/rolling", params={"seconds": 0}).status_code == 422


# ==============================================================================
# Click log
# ==============================================================================


class TestClickLog:
    """GET /api/reports/log"""

    def test_newest_first(self, client, seeded):
        data = client.get("/api/reports/log", params={"limit": 2}).json()

        assert data["used_default_limit"] is False
        assert [e["short_code"] for e in data["entries"]] == ["xyz", "xyz"]
        assert data["entries"][0]["ip_origin"] == "203.0.113.7 | (DE)"
        assert data["entries"][0]["short_url"] == "https://sho.rt/xyz"

    def test_empty(self, client):
        data = client.get("/api/reports/log").json()

        assert data["entries"] == []
        assert data["message"] == "No logs to display."

    def test_store_failure(self, broken_client):
        assert broken_client.get("/api/reports/log").status_code == 503
