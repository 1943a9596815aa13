"""Tests for the /api/health endpoint."""

from fastapi.testclient import TestClient

from clinilex import __version__
from clinilex.api.server import app


def test_health_endpoint_structure():
    with TestClient(app) as client:
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok", "version": __version__}


def test_health_head():
    with TestClient(app) as client:
        assert client.head("/api/health").status_code == 200


def test_security_headers():
    with TestClient(app) as client:
        response = client.get("/api/health")
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["Permissions-Policy"] == "microphone=(self)"


def test_health_endpoint_multiple_calls():
    with TestClient(app) as client:
        for _ in range(5):
            response = client.get("/api/health")
            assert response.status_code == 200
            assert response.json()["status"] == "ok"
