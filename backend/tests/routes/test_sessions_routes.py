"""Route tests for /api/v1/sessions."""

from datetime import timedelta
import re

from fastapi.testclient import TestClient
import pytest

from athena.api.dependencies import get_clock, get_room_provisioner
from athena.database import get_db
from athena.main import app
from athena.models.session import SessionStatus
from tests.helpers.scenario import NOW, at

BASE = "/api/v1/sessions"


def _headers(user_id: str) -> dict:
    return {"X-User-Id": user_id}


@pytest.fixture
def client(db, clock, provisioner):
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_room_provisioner] = lambda: provisioner
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def _book(client, user_id="U1", **overrides):
    body = {
        "creator_id": "C1",
        "scheduled_at": at(14).isoformat(),
        "duration_minutes": 60,
    }
    body.update(overrides)
    return client.post(f"{BASE}/book", json=body, headers=_headers(user_id))


class TestBookRoute:
    def test_book_returns_pending_session(self, client):
        response = _book(client, price=25, student_notes="hello")
        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "pending"
        assert data["consumer_id"] == "U1"
        assert data["currency"] == "USD"
        assert data["price"] == 25.0
        assert data["video_room_url"] is None
        assert data["ends_at"].startswith("2030-06-02T15:00:00")

    def test_missing_user_header(self, client):
        response = client.post(
            f"{BASE}/book",
            json={"creator_id": "C1", "scheduled_at": at(14).isoformat(), "duration_minutes": 60},
        )
        assert response.status_code == 422

    def test_past_start_is_400(self, client):
        response = _book(client, scheduled_at=(NOW - timedelta(hours=1)).isoformat())
        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "SCHEDULED_IN_PAST"

    def test_conflict_is_409(self, client, make_session):
        make_session(scheduled_at=at(14))
        response = _book(client, user_id="U2", scheduled_at=at(14, 30).isoformat(), duration_minutes=30)
        assert response.status_code == 409
        assert response.json()["detail"]["code"] == "SESSION_CONFLICT"

    def test_extra_fields_rejected(self, client):
        assert _book(client, status="confirmed").status_code == 422


class TestLifecycleRoutes:
    def test_confirm_start_complete(self, client, clock):
        session_id = _book(client).json()["id"]

        response = client.patch(
            f"{BASE}/{session_id}/status", json={"status": "confirmed"}, headers=_headers("C1")
        )
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "confirmed"
        assert re.match(r"^https://meet\.jit\.si/athena-session-[0-9a-f]{16}$", data["video_room_url"])

        clock.set(at(14))
        assert client.patch(f"{BASE}/{session_id}/start", headers=_headers("C1")).json()["status"] == "in_progress"
        clock.set(at(15))
        assert client.patch(f"{BASE}/{session_id}/complete", headers=_headers("C1")).json()["status"] == "completed"

        again = client.patch(f"{BASE}/{session_id}/start", headers=_headers("C1"))
        assert again.status_code == 422
        assert again.json()["detail"]["code"] == "INVALID_SESSION_TRANSITION"

    def test_cancel_with_reason_query(self, client):
        session_id = _book(client).json()["id"]
        response = client.patch(
            f"{BASE}/{session_id}/cancel", params={"reason": "Sick"}, headers=_headers("U1")
        )
        assert response.status_code == 200
        assert response.json()["cancellation_reason"] == "Sick"

    def test_cancel_by_stranger_is_403(self, client):
        session_id = _book(client).json()["id"]
        response = client.patch(f"{BASE}/{session_id}/cancel", headers=_headers("U9"))
        assert response.status_code == 403

    def test_notes_by_creator(self, client, make_session):
        session = make_session(status=SessionStatus.COMPLETED)
        response = client.patch(
            f"{BASE}/{session.id}/notes", json={"notes": "Well done"}, headers=_headers("C1")
        )
        assert response.status_code == 200
        assert response.json()["creator_notes"] == "Well done"

    def test_unknown_session_is_404(self, client):
        response = client.get(f"{BASE}/01HZZZZZZZZZZZZZZZZZZZZZZZ", headers=_headers("U1"))
        assert response.status_code == 404

    def test_malformed_session_id_is_422(self, client):
        assert client.get(f"{BASE}/not-a-ulid", headers=_headers("U1")).status_code == 422


class TestListRoutes:
    def test_me_upcoming_and_creator(self, client, make_session):
        make_session(consumer_id="U1", creator_id="C1", scheduled_at=at(10))
        make_session(consumer_id="U1", creator_id="C2", scheduled_at=at(12), status="pending")

        me = client.get(f"{BASE}/me", headers=_headers("U1")).json()
        assert [s["creator_id"] for s in me] == ["C2", "C1"]

        upcoming = client.get(f"{BASE}/upcoming", headers=_headers("U1")).json()
        assert [s["creator_id"] for s in upcoming] == ["C1"]

        creator = client.get(f"{BASE}/creator/C1", headers=_headers("U5")).json()
        assert len(creator) == 1

    def test_calendar_and_next_available(self, client, make_session):
        make_session(scheduled_at=at(14))
        calendar = client.get(
            f"{BASE}/creator/C1/calendar",
            params={"start": at(13).isoformat(), "end": at(16).isoformat()},
            headers=_headers("U1"),
        )
        assert calendar.status_code == 200
        assert len(calendar.json()) == 1

        suggestion = client.get(
            f"{BASE}/creator/C1/next-available",
            params={"duration_minutes": 30, "earliest": at(14, 30).isoformat()},
            headers=_headers("U1"),
        )
        assert suggestion.status_code == 200
        assert suggestion.json()["next_available_start"].startswith("2030-06-02T15:00:00")


def test_metrics_endpoint(client):
    _book(client)
    response = client.get("/internal/metrics")
    assert response.status_code == 200
    assert "athena_service_operations_total" in response.text
