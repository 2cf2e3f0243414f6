import pytest

pytestmark = pytest.mark.integration


class TestHealthCheck:
    def test_health_check_returns_200(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert "timestamp" in data
        assert set(data["services"]) == {"database", "cache"}

    @pytest.mark.parametrize("service", ["database", "cache"])
    def test_health_check_reports_service_status(self, client, service):
        data = client.get("/health").json()
        assert data["services"][service]["status"] == "up"
        assert "response_time_ms" in data["services"][service]

    def test_cache_failure_is_unhealthy(self, client, monkeypatch):
        def broken():
            raise ConnectionError("cache down")

        monkeypatch.setattr("modules.core.views._probe_cache", broken)

        response = client.get("/health")

        assert response.status_code == 503
        data = response.json()
        assert data["status"] == "unhealthy"
        assert data["services"]["cache"] == {"status": "down"}
        assert data["services"]["database"]["status"] == "up"
