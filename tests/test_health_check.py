from unittest.mock import patch

from django.db import DatabaseError


class TestHealthCheck:
    def test_health_check_returns_200(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert "timestamp" in data
        assert "services" in data

    def test_health_check_reports_database_status(self, client):
        data = client.get("/health").json()
        assert data["services"]["database"]["status"] == "up"
        assert "response_time_ms" in data["services"]["database"]

    def test_health_check_reports_cache_status(self, client):
        data = client.get("/health").json()
        assert data["services"]["cache"]["status"] == "up"
        assert "response_time_ms" in data["services"]["cache"]

    def test_health_check_is_public(self, client):
        assert client.get("/health").status_code == 200

    def test_database_down_returns_503(self, client):
        with patch(
            "modules.core.views._probe_database", side_effect=DatabaseError("gone")
        ):
            response = client.get("/health")

        assert response.status_code == 503
        data = response.json()
        assert data["status"] == "unhealthy"
        assert data["services"]["database"] == {"status": "down"}

    def test_cache_down_returns_503(self, client):
        with patch(
            "modules.core.views._probe_cache", side_effect=ConnectionError("redis down")
        ):
            response = client.get("/health")

        assert response.status_code == 503
        assert response.json()["services"]["cache"] == {"status": "down"}
