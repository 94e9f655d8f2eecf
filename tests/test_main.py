"""
Tests for the FastAPI surface.

get_tracker is overridden with a tracker on the fake client and an
in-memory repository; the TestClient is not entered, so the app lifespan
(and the module-level tracker) stays untouched.
"""

import pytest
from fastapi.testclient import TestClient

from weather_history.main import app, get_tracker
from weather_history.schemas import HistoryRecord
from weather_history.tracker import WeatherHistoryTracker


@pytest.fixture
def tracker(fake_client, repository):
    t = WeatherHistoryTracker(fake_client, repository, limit=10)
    t.start_listening()
    yield t
    t.stop_listening()


@pytest.fixture
def client(tracker):
    app.dependency_overrides[get_tracker] = lambda: tracker
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_index(client):
    r = client.get("/")
    assert r.status_code == 200
    assert "history_limit" in r.json()


def test_search_returns_state(client):
    r = client.post("/api/search", json={"city": "Cairo"})
    assert r.status_code == 200

    body = r.json()
    assert body["current_weather"]["city"] == "Cairo"
    assert body["current_weather"]["country"] == "EG"
    assert body["is_night"] is False
    assert body["error_message"] is None
    assert body["analytics"]["average"] == 35.0
    assert body["analytics"]["hottest"]["city"] == "Cairo"
    assert body["top_city"] == "Cairo"


def test_blank_search_changes_nothing(client, fake_client):
    r = client.post("/api/search", json={"city": "   "})
    assert r.status_code == 200
    assert r.json()["current_weather"] is None
    assert fake_client.calls == []


def test_failed_search_reports_message(client):
    r = client.post("/api/search", json={"city": "Atlantis"})
    assert r.status_code == 200
    assert r.json()["error_message"] == "Could not fetch weather for 'Atlantis'."

    r = client.delete("/api/error")
    assert r.json()["error_message"] is None
    assert client.get("/api/state").json()["error_message"] is None


def test_history_and_analytics_endpoints(client):
    for city in ("Paris", "Cairo", "Paris"):
        client.post("/api/search", json={"city": city})

    history = client.get("/api/history").json()
    assert len(history) == 3
    assert {h["city"] for h in history} == {"Paris", "Cairo"}

    analytics = client.get("/api/analytics").json()
    assert analytics["city_counts"] == [
        {"city": "Paris", "count": 2},
        {"city": "Cairo", "count": 1},
    ]
    assert analytics["hottest"]["temperature"] == 35.0


def test_history_websocket_pushes_updates(client, tracker):
    with client.websocket_connect("/ws/history") as ws:
        first = ws.receive_json()
        assert first["history"] == []
        assert first["analytics"]["average"] == 0

        tracker.repository.add(HistoryRecord(city="Paris", temperature=10.0, condition="light rain"))

        update = ws.receive_json()
        assert [h["city"] for h in update["history"]] == ["Paris"]
        assert update["analytics"]["city_counts"] == [{"city": "Paris", "count": 1}]

    # only the tracker's own subscription is left once the socket is gone
    assert len(tracker.repository._subscriptions) == 1


def test_history_websocket_ignores_binary_frames(client, tracker):
    with client.websocket_connect("/ws/history") as ws:
        assert ws.receive_json()["history"] == []

        ws.send_bytes(b"ping")
        ws.send_text("hello")

        tracker.repository.add(HistoryRecord(city="Cairo", temperature=35.0))
        update = ws.receive_json()
        assert [h["city"] for h in update["history"]] == ["Cairo"]

    assert len(tracker.repository._subscriptions) == 1
