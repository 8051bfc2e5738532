from __future__ import annotations

import time
from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from hubb.app import CLIENT_TTL, _clients, app
from hubb.geo.coords import FALLBACK_ANCHOR, Coordinate
from hubb.llm.groq_client import CompletionError
from hubb.navigation.session import ARRIVAL_MESSAGE
from hubb.routing.models import Maneuver, RawRoute, RouteError
from hubb.routing.resolver import RouteResolver

DESTINATION = Coordinate(lat=13.7409, lng=100.5262)


class FakeService:
    def __init__(self, raw=None, error=None):
        self.raw = raw
        self.error = error

    async def fetch(self, origin, destination, profile):
        if self.error is not None:
            raise self.error
        return self.raw


def _raw_route() -> RawRoute:
    return RawRoute(
        distance=900.0,
        duration=120.0,
        geometry=[FALLBACK_ANCHOR, DESTINATION],
        maneuvers=[
            Maneuver(type="depart", road="Banthat Thong Road", distance=900.0, duration=120.0),
            Maneuver(type="arrive", distance=0.0, duration=0.0),
        ],
    )


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def routed():
    with patch("hubb.app._resolver", RouteResolver(FakeService(_raw_route()))):
        yield


# ── Catalog ──────────────────────────────────────────────────────────────


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_metadata(client):
    body = client.get("/metadata").json()
    assert "Thai" in body["cuisines"]
    assert body["transport_modes"] == ["walk", "drive", "transit"]


def test_venues(client):
    venues = client.get("/venues").json()
    assert len(venues) == 12
    assert client.get("/venues/r1").json()["name"] == "Jeh O Chula"
    assert client.get("/venues/nope").status_code == 404


def test_landmarks_filter(client):
    temples = client.get("/landmarks", params={"category": "Temple"}).json()
    assert [lm["name"] for lm in temples] == ["Wat Hua Lamphong"]

    by_text = client.get("/landmarks", params={"q": "silk"}).json()
    assert [lm["name"] for lm in by_text] == ["Jim Thompson House"]


# ── Recommendations ──────────────────────────────────────────────────────


def test_recommendations_cheap(client):
    body = client.post("/recommendations", json={"query": "Cheap eats"}).json()
    assert body["parsed_intent"] == {"price": "cheap"}
    assert not body["fallback"]
    assert 0 < len(body["results"]) <= 3
    assert all(r["venue"]["price_tier"] == "low" for r in body["results"])


def test_recommendations_fallback(client):
    body = client.post("/recommendations", json={"query": "cheap korean bbq"}).json()
    assert body["fallback"]
    assert body["total_candidates"] == 0
    assert len(body["results"]) == 3


def test_recommendations_rejects_empty_query(client):
    assert client.post("/recommendations", json={"query": ""}).status_code == 422


# ── Itinerary ────────────────────────────────────────────────────────────


def test_itinerary_plan_and_remove_stop(client):
    resp = client.post("/itinerary", json={"budget": "low", "stops": 3})
    assert resp.status_code == 200
    stops = resp.json()["stops"]
    assert len(stops) == 3
    assert stops[0]["estimated_arrival"] == "11:00"
    assert all(s["venue"]["price_tier"] == "low" for s in stops)

    resp = client.delete("/itinerary/stops/0")
    assert [s["order"] for s in resp.json()["stops"]] == [1, 2]
    assert client.delete("/itinerary/stops/9").status_code == 404


def test_itinerary_stop_bounds(client):
    assert client.post("/itinerary", json={"budget": "mid", "stops": 6}).status_code == 422
    assert client.post("/itinerary", json={"budget": "mid", "stops": 1}).status_code == 422


def test_remove_stop_before_planning(client):
    assert client.delete("/itinerary/stops/0").status_code == 404


@patch("hubb.app.generate_trip_plan", new_callable=AsyncMock)
def test_generate_itinerary(mock_plan, client):
    mock_plan.return_value = {"days": [{"day": 1}]}
    resp = client.post("/itinerary/generate", json={"location": "Bantadthong", "days": 1})
    assert resp.status_code == 200
    assert resp.json()["plan"] == {"days": [{"day": 1}]}


@patch("hubb.app.generate_trip_plan", new_callable=AsyncMock)
def test_generate_itinerary_failure(mock_plan, client):
    mock_plan.side_effect = CompletionError("malformed")
    resp = client.post("/itinerary/generate", json={"location": "Bantadthong", "days": 2})
    assert resp.status_code == 502


# ── Chat ─────────────────────────────────────────────────────────────────


def test_chat_creates_session(client):
    resp = client.post("/chat", json={"message": "cheap eats"})
    assert resp.status_code == 200
    assert resp.json()["type"] == "results"

    sessions = client.get("/chat/sessions").json()
    assert len(sessions) == 1
    assert sessions[0]["title"] == "cheap eats"
    assert sessions[0]["active"]


def test_sessions_are_per_client():
    first, second = TestClient(app), TestClient(app)
    first.post("/chat/sessions", json={"mode": "chat"})
    assert second.get("/chat/sessions").json() == []


def test_switch_and_delete_sessions(client):
    first = client.post("/chat/sessions", json={"mode": "landmark"}).json()
    second = client.post("/chat/sessions", json={"mode": "chat"}).json()

    resp = client.post(f"/chat/sessions/{first['id']}/switch")
    assert resp.json()["mode"] == "landmark"

    resp = client.delete(f"/chat/sessions/{first['id']}")
    assert resp.json()["active_session_id"] == second["id"]

    assert client.delete(f"/chat/sessions/{first['id']}").status_code == 404
    assert client.post("/chat/sessions/missing/switch").status_code == 404


def test_chat_rejects_empty_message(client):
    assert client.post("/chat", json={"message": ""}).status_code == 422


def test_switch_mode(client):
    client.post("/chat/sessions", json={"mode": "chat"})
    assert client.post("/chat/mode", json={"mode": "landmark"}).json() == {"mode": "landmark"}
    assert client.get("/chat/sessions").json()[0]["mode"] == "landmark"
    assert client.post("/chat/mode", json={}).status_code == 422


def _start_live_navigation(client):
    resp = client.post("/navigation/start", json={"venue_id": "r1", "simulate": False})
    assert resp.json()["status"] == "active"


def _watching(client) -> bool:
    return client.post("/position", json={"fix": FALLBACK_ANCHOR.model_dump()}).json()["is_tracking"]


def test_creating_a_session_closes_navigation(client, routed):
    client.post("/chat/sessions", json={"mode": "chat"})
    _start_live_navigation(client)
    assert _watching(client)

    client.post("/chat/sessions", json={"mode": "landmark"})
    assert client.get("/navigation").status_code == 404
    assert not _watching(client)


def test_first_chat_message_closes_navigation(client, routed):
    _start_live_navigation(client)
    client.post("/chat", json={"message": "cheap eats"})
    assert client.get("/navigation").status_code == 404
    assert not _watching(client)


def test_chat_in_active_session_keeps_navigation(client, routed):
    client.post("/chat/sessions", json={"mode": "chat"})
    _start_live_navigation(client)
    client.post("/chat", json={"message": "cheap eats"})
    assert client.get("/navigation").json()["status"] == "active"
    assert _watching(client)


def test_switching_sessions_closes_navigation(client, routed):
    first = client.post("/chat/sessions", json={"mode": "chat"}).json()
    client.post("/chat/sessions", json={"mode": "chat"})
    _start_live_navigation(client)

    client.post(f"/chat/sessions/{first['id']}/switch")
    assert client.get("/navigation").status_code == 404
    assert not _watching(client)


def test_deleting_active_session_closes_navigation(client, routed):
    session = client.post("/chat/sessions", json={"mode": "chat"}).json()
    _start_live_navigation(client)

    client.delete(f"/chat/sessions/{session['id']}")
    assert client.get("/navigation").status_code == 404
    assert not _watching(client)


def test_deleting_inactive_session_keeps_navigation(client, routed):
    older = client.post("/chat/sessions", json={"mode": "chat"}).json()
    client.post("/chat/sessions", json={"mode": "chat"})
    _start_live_navigation(client)

    client.delete(f"/chat/sessions/{older['id']}")
    assert client.get("/navigation").json()["status"] == "active"


# ── Position & routes ────────────────────────────────────────────────────


def test_position_out_of_region(client):
    body = client.post("/position", json={"fix": {"lat": 51.5, "lng": -0.12}}).json()
    assert body["position"] == {"lat": FALLBACK_ANCHOR.lat, "lng": FALLBACK_ANCHOR.lng}
    assert body["notice"]


def test_position_requires_fix_or_error(client):
    assert client.post("/position", json={}).status_code == 422


def test_position_rejects_impossible_coordinates(client):
    assert client.post("/position", json={"fix": {"lat": 95.0, "lng": 100.5}}).status_code == 422
    assert client.post("/position", json={"fix": {"lat": 13.7, "lng": 181.0}}).status_code == 422


def test_route_to_venue(client, routed):
    resp = client.post("/routes", json={"venue_id": "r1", "mode": "walk"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["mode"] == "walk"
    assert body["duration"] == pytest.approx(720.0)
    assert body["duration_text"] == "12 min"
    assert body["distance_text"] == "900 m"
    assert body["steps"][0]["instruction"] == "Head out on Banthat Thong Road"
    assert body["steps"][0]["duration_text"] == "12 min"


def test_route_cache_stats(client, routed):
    client.post("/routes", json={"venue_id": "r1", "mode": "walk"})
    client.post("/routes", json={"venue_id": "r1", "mode": "walk"})
    stats = client.get("/routes/cache/stats").json()
    assert stats["size"] == 1
    assert stats["hits"] == 1
    assert stats["misses"] == 1


def test_route_transit_is_synthesized(client, routed):
    resp = client.post("/routes", json={"destination": DESTINATION.model_dump(), "mode": "transit"})
    assert resp.json()["synthesized"]


def test_route_requires_destination(client, routed):
    assert client.post("/routes", json={"mode": "walk"}).status_code == 422
    assert client.post("/routes", json={"venue_id": "nope"}).status_code == 404


def test_route_not_found(client):
    with patch("hubb.app._resolver", RouteResolver(FakeService(None))):
        resp = client.post("/routes", json={"venue_id": "r1", "mode": "drive"})
    assert resp.status_code == 404


def test_route_service_down(client):
    with patch("hubb.app._resolver", RouteResolver(FakeService(error=RouteError("down")))):
        resp = client.post("/routes", json={"venue_id": "r1", "mode": "drive"})
    assert resp.status_code == 502
    assert resp.json()["detail"] == {
        "message": "Routing service unavailable. Please try again.",
        "retryable": True,
    }


def test_route_unusable_answer_is_not_retryable(client):
    error = RouteError("Malformed routing response", retryable=False)
    with patch("hubb.app._resolver", RouteResolver(FakeService(error=error))):
        resp = client.post("/routes", json={"venue_id": "r1", "mode": "drive"})
    assert resp.status_code == 502
    assert resp.json()["detail"] == {"message": "Routing service unavailable.", "retryable": False}


def test_all_routes(client):
    with patch("hubb.app._resolver", RouteResolver(FakeService(error=RouteError("down")))):
        body = client.post("/routes/all", json={"venue_id": "r1"}).json()
    assert body["walk"] is None
    assert body["drive"] is None
    assert body["transit"]["synthesized"]


# ── Navigation ───────────────────────────────────────────────────────────


def test_live_navigation_arrives_on_position_fix(client, routed):
    resp = client.post("/navigation/start", json={"venue_id": "r1", "simulate": False})
    assert resp.status_code == 200
    assert resp.json()["status"] == "active"
    assert resp.json()["live"]

    client.post("/position", json={"fix": DESTINATION.model_dump()})
    state = client.get("/navigation").json()
    assert state["status"] == "arrived"

    events = [e["type"] for e in client.get("/navigation/events").json()]
    assert events.count("arrived") == 1


def test_navigation_pause_resume_reset(client, routed):
    client.post("/navigation/start", json={"venue_id": "r1", "simulate": False})

    assert client.post("/navigation/pause").json()["status"] == "paused"
    assert client.post("/navigation/pause").status_code == 409
    assert client.post("/navigation/resume").json()["status"] == "active"
    assert client.post("/navigation/reset").json()["status"] == "idle"


def test_live_navigation_resumes_live_after_reset(client, routed):
    _start_live_navigation(client)
    client.post("/navigation/reset")
    assert not _watching(client)

    state = client.post("/navigation/resume").json()
    assert state["status"] == "active"
    assert state["live"]
    assert _watching(client)

    client.post("/position", json={"fix": DESTINATION.model_dump()})
    assert client.get("/navigation").json()["status"] == "arrived"


def test_navigation_reports_remaining_distance(client, routed):
    _start_live_navigation(client)
    assert client.get("/navigation").json()["remaining_meters"] > 100

    client.post("/position", json={"fix": DESTINATION.model_dump()})
    assert client.get("/navigation").json()["remaining_meters"] == 0.0


def test_arrival_is_announced_in_notifications(client, routed):
    _start_live_navigation(client)
    client.post("/position", json={"fix": DESTINATION.model_dump()})

    feed = client.get("/notifications").json()
    assert feed["current"]["type"] == "arrival"
    assert feed["current"]["restaurant_name"] == "Jeh O Chula"
    assert feed["current"]["text"] == ARRIVAL_MESSAGE
    assert [n["type"] for n in feed["notifications"]] == ["arrival"]


def test_close_navigation(client, routed):
    client.post("/navigation/start", json={"venue_id": "r1", "simulate": False})
    assert client.delete("/navigation").json() == {"status": "closed"}
    assert client.get("/navigation").status_code == 404


def test_navigation_without_route(client):
    with patch("hubb.app._resolver", RouteResolver(FakeService(None))):
        resp = client.post("/navigation/start", json={"venue_id": "r1"})
    assert resp.status_code == 404
    assert client.get("/navigation").status_code == 404


def test_navigation_position_reports_progress(client, routed):
    client.post("/navigation/start", json={"venue_id": "r1", "simulate": False})

    body = client.post("/navigation/position", json={"lat": 13.7415, "lng": 100.5268}).json()
    assert body["status"] == "active"
    assert body["position"] == {"lat": 13.7415, "lng": 100.5268}

    body = client.post("/navigation/position", json=DESTINATION.model_dump()).json()
    assert body["status"] == "arrived"


def test_navigation_position_without_session(client):
    assert client.post("/navigation/position", json={"lat": 13.74, "lng": 100.52}).status_code == 404


def test_navigation_position_rejects_impossible_coordinates(client, routed):
    _start_live_navigation(client)
    assert client.post("/navigation/position", json={"lat": 95.0, "lng": 100.52}).status_code == 422
    assert client.get("/navigation").json()["status"] == "active"


# ── Notifications ────────────────────────────────────────────────────────


def _wait_until_idle(client, timeout: float = 2.0) -> dict:
    deadline = time.time() + timeout
    body = client.get("/notifications").json()
    while body["running"] and time.time() < deadline:
        time.sleep(0.02)
        body = client.get("/notifications").json()
    return body


def test_notifications_start_empty(client):
    assert client.get("/notifications").json() == {
        "running": False,
        "current": None,
        "notifications": [],
    }


def test_notification_feed_runs_until_exhausted():
    with patch.dict("hubb.app._clients", clear=True), TestClient(app) as client:
        client.get("/notifications")
        (state,) = _clients.values()
        state.notifications.initial_delay = 0.0
        state.notifications.interval_range = (0.01, 0.01)
        total = len(state.notifications.pending)

        assert client.post("/notifications/start").json()["running"]
        body = _wait_until_idle(client)

    assert not body["running"]
    assert len(body["notifications"]) == total
    assert body["notifications"][0]["time_ago"] == "just now"


def test_notification_feed_stops():
    with patch.dict("hubb.app._clients", clear=True), TestClient(app) as client:
        client.get("/notifications")
        (state,) = _clients.values()
        state.notifications.initial_delay = 60.0

        assert client.post("/notifications/start").json()["running"]
        assert client.delete("/notifications").json() == {"status": "stopped"}
        body = client.get("/notifications").json()

    assert not body["running"]
    assert body["notifications"] == []


# ── Per-client state lifetime ────────────────────────────────────────────


def test_client_state_is_bounded():
    with patch.dict("hubb.app._clients", clear=True), patch("hubb.app.MAX_CLIENTS", 3):
        for _ in range(10):
            TestClient(app).get("/chat/sessions")
        assert len(_clients) == 3


def test_recently_seen_client_is_kept():
    with patch.dict("hubb.app._clients", clear=True), patch("hubb.app.MAX_CLIENTS", 2):
        regular = TestClient(app)
        regular.post("/chat/sessions", json={"mode": "landmark"})
        for _ in range(3):
            TestClient(app).get("/chat/sessions")
            regular.get("/chat/sessions")
        assert len(regular.get("/chat/sessions").json()) == 1


def test_stale_client_is_evicted_and_closed(routed):
    with patch.dict("hubb.app._clients", clear=True):
        idle = TestClient(app)
        _start_live_navigation(idle)
        (state,) = _clients.values()
        assert state.position.is_tracking
        state.last_seen -= CLIENT_TTL + 1

        TestClient(app).get("/chat/sessions")

        assert all(s is not state for s in _clients.values())
        assert state.navigation is None
        assert not state.position.is_tracking
        assert idle.get("/navigation").status_code == 404
