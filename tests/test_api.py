# tests/test_api.py

from conftest import AsyncRecorder, auth_headers


def test_root(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "service": "Doctor Platform API"}


def test_not_found_uses_error_envelope(client, monkeypatch):
    monkeypatch.setattr("app.routers.doctor.get_doctor", AsyncRecorder(None))

    response = client.get("/api/doctors/64b7f0c2e4b0a1a2b3c4d5e6")
    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Doctor not found"}


def test_invalid_query_is_a_bad_request(client):
    response = client.get("/api/doctors", params={"page": 0})
    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["message"] == "Invalid request data"
    assert isinstance(body["error"], list)


def test_unexpected_error_returns_500_with_message(client, monkeypatch):
    monkeypatch.setattr("app.routers.doctor.find_doctors", AsyncRecorder(RuntimeError("database unavailable")))

    response = client.get("/api/doctors")
    assert response.status_code == 500
    assert response.json() == {"success": False, "message": "Server error", "error": "database unavailable"}


def test_bad_token_is_rejected(client):
    response = client.put(
        "/api/doctors/toggle-availability",
        headers={"Authorization": "Bearer not-a-token"},
    )
    assert response.status_code == 403
    assert response.json()["message"] == "Could not validate credentials"


def test_admin_routes_require_admin_role(client):
    response = client.put(
        "/api/doctors/64b7f0c2e4b0a1a2b3c4d5e6/verify",
        headers=auth_headers("64b7f0c2e4b0a1a2b3c4d5e7", "doctor"),
    )
    assert response.status_code == 403
    assert response.json()["message"] == "Admin access required"
