"""Integration tests for health monitoring endpoints."""

from models import HealthCheck


class TestHealthChecksEndpoint:
    def test_run_healthy(self, client, db, tenant_config):
        response = client.post("/api/health-checks/run")

        assert response.status_code == 200
        data = response.json()
        assert data["configs_checked"] == 1
        assert data["healthy"] + data["degraded"] == 1
        assert data["down"] == 0
        assert db.query(HealthCheck).count() == 1

    def test_run_down_raises_alert(self, client_with_failing_pms, tenant_config):
        response = client_with_failing_pms.post("/api/health-checks/run")

        assert response.json()["down"] == 1

        alerts = client_with_failing_pms.get("/api/health-checks/alerts").json()
        assert len(alerts) == 1
        assert alerts[0]["severity"] == "critical"
        assert alerts[0]["message"].startswith("PMS connection down for mock-practice")
        assert alerts[0]["is_acknowledged"] is False

    def test_no_alerts(self, client):
        response = client.get("/api/health-checks/alerts")

        assert response.status_code == 200
        assert response.json() == []
