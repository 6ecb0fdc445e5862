from fastapi.testclient import TestClient


def register(client: TestClient, email: str, name: str = "Teacher", password: str = "pass1234") -> dict:
    """Registers an account and returns bearer auth headers for it."""
    response = client.post("/auth/register", json={"name": name, "email": email, "password": password})
    assert response.status_code == 201, response.text
    # use the bearer header, not the cookie the register call left behind
    client.cookies.clear()
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


def create_session(client: TestClient, headers: dict, title: str = "CS101", **extra) -> str:
    response = client.post("/sessions", json={"title": title, **extra}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["session"]["id"]


def from_address(address: str) -> dict:
    """Request headers that make the check-in appear to come from `address`."""
    return {"X-Forwarded-For": address}


def checkin(client: TestClient, session_id: str, student_id: str, name: str, address: str):
    return client.post(
        "/attendance/mark",
        json={"studentId": student_id, "studentName": name, "sessionId": session_id},
        headers=from_address(address),
    )
