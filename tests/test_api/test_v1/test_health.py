"""Tests for Health Check Endpoint"""

from vod_dashboard.api.v1.dependencies import directory_dependency
from vod_dashboard.main import app


class TestHealthEndpoint:
    """Test GET /api/v1/health endpoint"""

    def test_health_check_success(self, client):
        """Test successful health check"""
        response = client.get("/api/v1/health")

        assert response.status_code == 200
        data = response.json()

        assert data["status"] == "healthy"
        assert "timestamp" in data
        assert data["version"] == "1.0.0"
        assert data["storage"]["connected"] is True
        assert data["storage"]["servers"] == 0

    def test_health_counts_servers(self, client, server_id):
        response = client.get("/api/v1/health")
        assert response.json()["storage"]["servers"] == 1

    def test_health_check_storage_failure(self, client):
        """Storage errors report unhealthy through the injected directory"""

        class BrokenDirectory:
            def list_servers(self):
                raise OSError("disk unavailable")

        app.dependency_overrides[directory_dependency] = lambda: BrokenDirectory()

        response = client.get("/api/v1/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "unhealthy"
        assert data["storage"]["connected"] is False
        assert data["storage"]["error"] == "disk unavailable"

    def test_health_check_response_headers(self, client):
        """Test health check includes request ID header"""
        response = client.get("/api/v1/health")

        assert response.status_code == 200
        assert "X-Request-ID" in response.headers

        # Request ID should be a valid UUID format
        request_id = response.headers["X-Request-ID"]
        assert len(request_id) == 36
        assert request_id.count("-") == 4

    def test_root_page(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert "VOD Dashboard" in response.text
