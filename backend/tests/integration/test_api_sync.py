"""Integration tests for sync API endpoints."""

from models import Patient, SyncJob
from services.sync_service import SyncService


class TestFullSyncEndpoint:
    """Tests for POST /api/sync/{tenant_id}/full."""

    def test_full_sync(self, client, db, tenant_config, mock_pms_client):
        response = client.post(f"/api/sync/{tenant_config.id}/full")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "completed"
        assert data["job_type"] == "full_sync"
        assert data["records_processed"] == 11
        assert data["errors"] == []
        assert data["completed_at"] is not None
        assert db.query(Patient).count() == 2
        assert mock_pms_client.closed

    def test_unknown_tenant(self, client):
        response = client.post("/api/sync/missing/full")

        assert response.status_code == 404

    def test_upstream_failure_returns_failed_job(self, client_with_failing_pms, tenant_config):
        response = client_with_failing_pms.post(f"/api/sync/{tenant_config.id}/full")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "failed"
        assert data["errors"] == ["Full sync failed: PMS API unavailable (HTTP 503)"]

    def test_sync_in_progress_returns_409(self, client, tenant_config):
        SyncService._sync_lock.acquire()
        try:
            response = client.post(f"/api/sync/{tenant_config.id}/full")
        finally:
            SyncService._sync_lock.release()

        assert response.status_code == 409
        assert "already in progress" in response.json()["detail"]


class TestIncrementalSyncEndpoint:
    def test_incremental(self, client, tenant_config, mock_pms_client):
        response = client.post("/api/sync/incremental")

        assert response.status_code == 200
        data = response.json()
        assert data["configs_processed"] == 1
        assert data["configs_failed"] == 0
        assert any(name == "patients" and "updated_since" in params for name, params in mock_pms_client.calls)

    def test_failing_tenant_reported(self, client_with_failing_pms, tenant_config):
        response = client_with_failing_pms.post("/api/sync/incremental")

        assert response.status_code == 200
        data = response.json()
        assert data["configs_failed"] == 1
        assert data["errors"] == [f"Config {tenant_config.id} failed: PMS API unavailable (HTTP 503)"]

    def test_no_tenants(self, client):
        response = client.post("/api/sync/incremental")

        assert response.json() == {
            "configs_processed": 0,
            "total_processed": 0,
            "total_failed": 0,
            "configs_failed": 0,
            "errors": [],
        }


class TestListJobs:
    def test_filter_by_tenant(self, client, db, tenant_config, second_tenant_config):
        client.post(f"/api/sync/{tenant_config.id}/full")
        client.post(f"/api/sync/{second_tenant_config.id}/full")

        response = client.get("/api/sync/jobs", params={"tenant_id": tenant_config.id})

        assert response.status_code == 200
        jobs = response.json()
        assert len(jobs) == 1
        assert jobs[0]["tenant_id"] == tenant_config.id
        assert db.query(SyncJob).count() == 2

    def test_limit_validated(self, client):
        assert client.get("/api/sync/jobs", params={"limit": 0}).status_code == 422
