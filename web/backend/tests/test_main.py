"""Tests for FastAPI application."""

from fastapi.testclient import TestClient
from web.backend.main import app

client = TestClient(app)


def test_root_greeting():
    """Test root endpoint greets."""
    response = client.get("/")
    assert response.status_code == 200
    assert response.json() == "hello viber!"


def test_health_endpoint():
    """Test health check endpoint returns 200."""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


def test_cors_headers():
    """Test CORS headers are present."""
    response = client.options(
        "/health",
        headers={
            "Origin": "http://localhost:3000",
            "Access-Control-Request-Method": "GET",
        },
    )
    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "http://localhost:3000"
