"""Tests for admin endpoints."""

from fastapi.testclient import TestClient

from ble_attendance.api.app import create_app


def test_admin_requires_token(container) -> None:
    client = TestClient(create_app(container))

    missing = client.get("/admin/health")
    wrong = client.get("/admin/health", headers={"X-Admin-Token": "nope"})

    assert missing.status_code == 401
    assert wrong.status_code == 401


def test_admin_health_endpoint(container) -> None:
    client = TestClient(create_app(container))

    response = client.get("/admin/health", headers={"X-Admin-Token": "admin-token"})

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_collision_report_endpoint(container) -> None:
    client = TestClient(create_app(container))

    response = client.get(
        "/admin/tokens/collision-report",
        params={"sample_size": 2000},
        headers={"X-Admin-Token": "admin-token"},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["sample_size"] == 2000
    assert data["collisions"] == 0
    assert data["keyspace_size"] == 32**12
    assert data["collision_resistance"] == "excellent"


def test_collision_report_rejects_oversized_sample(container) -> None:
    client = TestClient(create_app(container))

    response = client.get(
        "/admin/tokens/collision-report",
        params={"sample_size": 500_000},
        headers={"X-Admin-Token": "admin-token"},
    )

    assert response.status_code == 400
    assert response.json()["error"] == "invalid_input"
