"""Tests for API endpoints."""

import pytest
from fastapi.testclient import TestClient


class TestAPIEndpoints:
    """Tests for main API endpoints."""

    @pytest.fixture
    def client(self):
        from reapply.main import app

        return TestClient(app, raise_server_exceptions=False)

    def test_api_info_endpoint(self, client):
        """Test API info endpoint."""
        response = client.get("/api")
        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "ReApply API"
        assert "version" in data
        assert "docs" in data

    def test_health_check_endpoint(self, client):
        """Test health check endpoint."""
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_routes_registered(self, client):
        paths = {route.path for route in client.app.routes}
        assert {
            "/auth/login",
            "/auth/callback",
            "/pipeline/send",
            "/applications/{job_id}/follow-ups",
        } <= paths
