"""Tests for health endpoints."""

from unittest.mock import AsyncMock, patch

from fastapi.testclient import TestClient


def test_liveness(client: TestClient) -> None:
    response = client.get("/health/live")
    assert response.status_code == 200
    assert response.json() == {"status": "alive"}


def test_readiness_without_cassandra(client: TestClient) -> None:
    """No session wired: not ready, and the checks say why."""
    response = client.get("/health/ready")
    assert response.status_code == 503
    data = response.json()
    assert data["status"] == "unavailable"
    assert data["checks"] == {"cassandra": False, "redis": False}


def test_readiness_with_cassandra(client: TestClient) -> None:
    """Redis being down does not make the instance unready."""
    client.app.state.cassandra_session = object()
    try:
        with patch(
            "edulearn.health.router.ping_cassandra", AsyncMock(return_value=True)
        ):
            response = client.get("/health/ready")
    finally:
        client.app.state.cassandra_session = None

    assert response.status_code == 200
    assert response.json() == {
        "status": "ready",
        "checks": {"cassandra": True, "redis": False},
    }


def test_health(client: TestClient) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["app_name"] == "edulearn"
    assert data["environment"] == "testing"


def test_root(client: TestClient) -> None:
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["message"] == "EduLearn API"


def test_unknown_route_uses_error_envelope(client: TestClient) -> None:
    response = client.get("/nope", headers={"X-Request-ID": "req-123"})
    assert response.status_code == 404
    body = response.json()
    assert body["success"] is False
    assert body["request_id"] == "req-123"
