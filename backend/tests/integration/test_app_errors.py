"""
Integration tests for health checks, error shapes, role checks and rate limits.
"""

import pytest
from starlette.requests import Request

from backend.src.middleware.rate_limit import limiter
from backend.src.services.exceptions import ConflictError, NotFoundError, PermissionDeniedError


pytestmark = pytest.mark.integration


def test_health(test_client):
    response = test_client.get("/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["environment"] == "test"


def test_ready(test_client):
    response = test_client.get("/ready")
    assert response.status_code == 200
    assert response.json() == {"status": "ready", "database": "ok"}


def test_not_ready_when_database_unreachable(test_client, monkeypatch):
    monkeypatch.setattr("backend.src.main.check_connection", lambda: False)
    response = test_client.get("/ready")
    assert response.status_code == 503
    assert response.json()["database"] == "unreachable"


def test_unknown_route_names_path(test_client):
    response = test_client.get("/api/nothing-here")
    assert response.status_code == 404
    assert response.json() == {"detail": "Not Found - /api/nothing-here"}


def test_resource_404_keeps_its_message(test_client, planner_user, auth_headers):
    response = test_client.get("/api/vendors/vnd_missing", headers=auth_headers(planner_user))
    assert response.status_code == 404
    assert response.json()["detail"] == "Vendor vnd_missing not found"


def test_missing_token(test_client):
    response = test_client.get("/api/events")
    assert response.status_code == 401
    assert response.headers["WWW-Authenticate"] == "Bearer"


@pytest.mark.parametrize("path", ["/api/users", "/api/realtime/presence"])
def test_admin_only_routes(test_client, planner_user, path, auth_headers):
    response = test_client.get(path, headers=auth_headers(planner_user))
    assert response.status_code == 403
    assert response.json()["detail"] == "User role PLANNER is not authorized to access this route"


@pytest.mark.parametrize("path", ["/api/clients", "/api/reports/events", "/api/reports/dashboard"])
def test_staff_only_routes(test_client, client_user, path, auth_headers):
    response = test_client.get(path, headers=auth_headers(client_user))
    assert response.status_code == 403


def test_request_validation_error(test_client, planner_user, auth_headers):
    response = test_client.post("/api/vendors", json={"categories": "not-a-list"}, headers=auth_headers(planner_user))
    assert response.status_code == 422


@pytest.mark.parametrize("error,expected", [
    (NotFoundError("Event", "evt_x"), 404),
    (ConflictError("taken"), 409),
    (PermissionDeniedError(), 403),
])
async def test_service_errors_map_to_status(error, expected):
    from backend.src.main import service_exception_handler

    request = Request({"type": "http", "method": "GET", "path": "/x", "headers": []})
    response = await service_exception_handler(request, error)
    assert response.status_code == expected


def test_auth_endpoints_are_rate_limited(test_client):
    limiter.enabled = True
    headers = {"X-Forwarded-For": "203.0.113.77"}
    body = {"email": "nobody@example.com", "password": "whatever-123"}

    codes = [test_client.post("/api/auth/login", json=body, headers=headers).status_code for _ in range(11)]
    assert codes[:10] == [401] * 10
    assert codes[10] == 429


def test_repeated_bad_tokens_block_ip(test_client):
    headers = {"Authorization": "Bearer nonsense", "X-Forwarded-For": "198.51.100.9"}
    for _ in range(20):
        assert test_client.get("/api/auth/me", headers=headers).status_code == 401

    assert test_client.get("/api/auth/me", headers=headers).status_code == 429


def test_reports(test_client, planner_user, sample_event, auth_headers):
    sample_event()
    headers = auth_headers(planner_user)

    events = test_client.get("/api/reports/events", headers=headers)
    assert events.status_code == 200
    assert events.json()["total"] == 1

    assert test_client.get("/api/reports/payments", headers=headers).status_code == 200
    assert test_client.get("/api/reports/clients", headers=headers).json()["total_clients"] == 1
    assert test_client.get(
        "/api/reports/events?start_date=2026-05-01&end_date=2026-04-01", headers=headers,
    ).status_code == 400

    dashboard = test_client.get("/api/reports/dashboard", headers=headers).json()
    assert dashboard["online_users"] == 0
