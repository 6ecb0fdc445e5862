# tests/api/test_attendance_api.py

from datetime import timedelta

from fastapi.testclient import TestClient

from app.utils.clock import utcnow
from tests.utils.helpers import checkin, create_session, from_address


def test_cs101_scenario(test_client: TestClient, auth_headers):
    session_id = create_session(test_client, auth_headers, title="CS101")

    response = checkin(test_client, session_id, "S1", "Alice", "10.0.0.1")
    assert response.status_code == 201
    assert response.json() == {
        "status": "success",
        "message": "Attendance securely logged!",
        "data": {"studentId": "S1", "sessionId": session_id},
    }

    response = checkin(test_client, session_id, "S1", "Alice", "10.0.0.2")
    assert response.status_code == 409
    assert response.json()["code"] == "DUPLICATE_STUDENT"

    response = test_client.patch(f"/sessions/{session_id}", json={"status": "closed"}, headers=auth_headers)
    assert response.status_code == 200

    response = checkin(test_client, session_id, "S2", "Bob", "10.0.0.3")
    assert response.status_code == 403
    assert response.json()["code"] == "SESSION_CLOSED"

    response = test_client.patch(f"/sessions/{session_id}", json={"status": "active"}, headers=auth_headers)
    assert response.status_code == 200

    response = checkin(test_client, session_id, "S2", "Bob", "10.0.0.4")
    assert response.status_code == 201


def test_expired_session_scenario(monkeypatch, test_client: TestClient, auth_headers):
    session_id = create_session(test_client, auth_headers, title="Quiz", expiresInMinutes=1)

    later = utcnow() + timedelta(minutes=2)
    monkeypatch.setattr("app.services.admission.utcnow", lambda: later)

    response = checkin(test_client, session_id, "S9", "Zed", "10.0.0.9")
    assert response.status_code == 403
    body = response.json()
    assert body["status"] == "error"
    assert body["code"] == "SESSION_CLOSED"
    assert "expired" in body["message"]

    stored = test_client.get(f"/sessions/{session_id}").json()["session"]
    assert stored["status"] == "active"


def test_unknown_session_is_404(test_client: TestClient):
    response = checkin(test_client, "no-such-session", "S1", "Alice", "10.0.0.1")

    assert response.status_code == 404
    assert response.json()["code"] == "SESSION_NOT_FOUND"


def test_blank_fields_are_invalid_input(test_client: TestClient, auth_headers):
    session_id = create_session(test_client, auth_headers)

    response = checkin(test_client, session_id, "S1", "   ", "10.0.0.1")

    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_INPUT"


def test_missing_fields_are_invalid_input(test_client: TestClient):
    response = test_client.post("/attendance/mark", json={"studentId": "S1"}, headers=from_address("10.0.0.1"))

    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_INPUT"


def test_same_phone_cannot_check_in_two_students(test_client: TestClient, auth_headers):
    session_id = create_session(test_client, auth_headers)

    assert checkin(test_client, session_id, "S1", "Alice", "10.0.0.5").status_code == 201
    response = checkin(test_client, session_id, "S2", "Mallory", "10.0.0.5")

    assert response.status_code == 429
    assert response.json()["code"] == "DUPLICATE_ORIGIN"


def test_origin_tracking_can_be_disabled(monkeypatch, test_client: TestClient, auth_headers):
    monkeypatch.setattr("app.core.config.settings.ENFORCE_UNIQUE_ORIGIN", False)
    session_id = create_session(test_client, auth_headers)

    assert checkin(test_client, session_id, "S1", "Alice", "10.0.0.5").status_code == 201
    assert checkin(test_client, session_id, "S2", "Bob", "10.0.0.5").status_code == 201


def test_rate_limit_applies_before_other_checks(test_client: TestClient):
    for _ in range(5):
        response = checkin(test_client, "no-such-session", "S1", "Alice", "10.9.9.9")
        assert response.status_code == 404

    response = checkin(test_client, "no-such-session", "S1", "Alice", "10.9.9.9")
    assert response.status_code == 429
    assert response.json()["code"] == "RATE_LIMITED"

    # other addresses are unaffected
    response = checkin(test_client, "no-such-session", "S1", "Alice", "10.9.9.10")
    assert response.status_code == 404


def test_attend_by_path_uses_path_session(test_client: TestClient, auth_headers):
    session_id = create_session(test_client, auth_headers)

    response = test_client.post(
        f"/sessions/{session_id}/attend",
        json={"studentId": "S1", "studentName": "Alice", "deviceFingerprint": "fp-123"},
        headers=from_address("10.0.0.1"),
    )

    assert response.status_code == 201
    assert response.json()["data"] == {"studentId": "S1", "sessionId": session_id}
    detail = test_client.get(f"/sessions/{session_id}").json()
    assert detail["attendee_count"] == 1


def test_over_long_student_name_is_invalid_input(test_client: TestClient, auth_headers):
    session_id = create_session(test_client, auth_headers)

    response = checkin(test_client, session_id, "S1", "A" * 256, "10.0.0.1")

    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_INPUT"


def test_long_user_agent_does_not_block_checkin(test_client: TestClient, auth_headers):
    session_id = create_session(test_client, auth_headers)

    response = test_client.post(
        "/attendance/mark",
        json={"studentId": "S1", "studentName": "Alice", "sessionId": session_id},
        headers={**from_address("10.0.0.1"), "User-Agent": "Mozilla/5.0 " + "x" * 600},
    )

    assert response.status_code == 201
