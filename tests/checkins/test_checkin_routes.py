from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from src.readiness_system.readiness_system.core.enums import ReadinessStatus

METRICS = {"mood": 8, "stress": 3, "sleep": 8, "physicalHealth": 8}


@pytest.fixture
def monday_morning(world):
    world.clock = lambda: datetime(2026, 2, 2, 8, 20, tzinfo=timezone.utc)
    world.add_worker(100)
    return world


def test_submit_checkin(monday_morning, make_client):
    resp = make_client(monday_morning, user_id=100).post("/api/checkins", json=dict(METRICS, notes="ok"))

    body = resp.get_json()
    assert resp.status_code == 201
    assert body["data"]["date"] == "2026-02-02"
    assert body["data"]["readinessScore"] == 80
    assert body["data"]["attendanceStatus"] == "YELLOW"
    assert body["data"]["minutesLate"] == 5
    assert body["data"]["notes"] == "ok"


def test_duplicate_checkin_is_409(monday_morning, make_client):
    client = make_client(monday_morning, user_id=100)
    client.post("/api/checkins", json=METRICS)

    resp = client.post("/api/checkins", json=METRICS)

    assert resp.status_code == 409
    assert resp.get_json()["code"] == "ALREADY_CHECKED_IN"


@pytest.mark.parametrize(
    "payload",
    [
        dict(METRICS, mood=11),
        dict(METRICS, stress="3"),
        {k: v for k, v in METRICS.items() if k != "sleep"},
        dict(METRICS, notes=5),
    ],
)
def test_invalid_metrics_are_400(monday_morning, make_client, payload):
    resp = make_client(monday_morning, user_id=100).post("/api/checkins", json=payload)

    assert resp.status_code == 400
    assert resp.get_json()["code"] == "INVALID_INPUT"


def test_anonymous_checkin_is_401(monday_morning, make_client):
    assert make_client(monday_morning).post("/api/checkins", json=METRICS).status_code == 401


def test_low_score_reason_patch(monday_morning, make_client):
    checkin = monday_morning.add_checkin(100, date(2026, 2, 2), readiness_score=45, readiness_status=ReadinessStatus.RED)
    client = make_client(monday_morning, user_id=100)

    resp = client.patch(
        f"/api/checkins/{checkin.checkin_id}/low-score-reason",
        json={"reason": "OTHER", "details": "Long commute"},
    )

    assert resp.status_code == 200
    assert resp.get_json()["data"]["lowScoreReason"] == "OTHER"
    assert resp.get_json()["data"]["lowScoreDetails"] == "Long commute"


def test_low_score_reason_on_missing_checkin_is_404(monday_morning, make_client):
    resp = make_client(monday_morning, user_id=100).patch(
        "/api/checkins/999/low-score-reason", json={"reason": "POOR_SLEEP"}
    )

    assert resp.status_code == 404


def test_unexpected_errors_are_500(monday_morning, make_client, monkeypatch):
    client = make_client(monday_morning, user_id=100)
    monkeypatch.setattr(monday_morning.checkins, "create", lambda record: 1 / 0)

    resp = client.post("/api/checkins", json=METRICS)

    assert resp.status_code == 500
    assert resp.get_json()["code"] == "INTERNAL"


def test_leave_status_and_returning_checkin(monday_morning, make_client):
    monday_morning.add_exemption(100, date(2026, 1, 29), date(2026, 1, 30))
    client = make_client(monday_morning, user_id=100)

    status = client.get("/api/checkins/leave-status").get_json()["data"]
    submitted = client.post("/api/checkins", json=METRICS).get_json()["data"]
    later = client.get("/api/checkins/leave-status").get_json()["data"]

    assert status["isOnLeave"] is False
    assert status["isReturning"] is True
    assert status["lastException"]["endDate"] == "2026-01-30"
    assert status["currentException"] is None
    assert submitted["isReturning"] is True
    assert later["isReturning"] is False
