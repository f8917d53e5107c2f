"""Application wiring: health probe, request ids and route registration."""
from fastapi.routing import APIRoute
from fastapi.testclient import TestClient


def _get_client() -> TestClient:
    from teamplanner.main import app

    return TestClient(app)


def test_health_endpoint_returns_ok() -> None:
    response = _get_client().get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_request_id_generated_and_echoed() -> None:
    client = _get_client()

    assert client.get("/health").headers.get("X-Request-Id")
    assert client.get("/health", headers={"X-Request-Id": "abc-123"}).headers["X-Request-Id"] == "abc-123"


def test_planning_routes_registered_once() -> None:
    from teamplanner.main import app

    posts = [
        route.path
        for route in app.routes
        if isinstance(route, APIRoute) and "POST" in route.methods
    ]
    for path in ("/plans", "/plans/schedule", "/plans/balance", "/plans/feasibility"):
        assert posts.count(path) == 1
