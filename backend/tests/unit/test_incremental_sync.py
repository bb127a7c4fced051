"""Tests for incremental sync across tenants."""

from datetime import datetime, timedelta, timezone

from integrations.exceptions import PMSAPIError
from models import Patient, Payment, SyncJob
from services.sync_service import SyncService, format_cutoff
from tests.fixtures.mocks import MockPMSClient, factory_by_subdomain, failing_client

NOW = datetime(2026, 10, 16, 12, 0, tzinfo=timezone.utc)


def stamp(delta: timedelta) -> str:
    return format_cutoff(NOW - delta)


def patient(external_id: int, updated_ago: timedelta, **fields) -> dict:
    return {
        "id": external_id,
        "first_name": fields.get("first_name", f"Patient{external_id}"),
        "last_name": "Test",
        "updated_at": stamp(updated_ago),
    }


class TestIncrementalCutoff:
    def test_never_synced_uses_lookback(self, tenant_config):
        cutoff = SyncService.incremental_cutoff(tenant_config, NOW)

        assert cutoff == NOW - timedelta(hours=24)

    def test_last_sync_used_when_present(self, db, tenant_config):
        tenant_config.last_sync_at = datetime(2026, 10, 16, 6, 0)  # naive, as read back from SQLite
        db.flush()

        assert format_cutoff(SyncService.incremental_cutoff(tenant_config, NOW)) == "2026-10-16T06:00:00Z"


class TestIncrementalSync:
    """Tests for SyncService.run_incremental_sync."""

    def test_only_recent_changes_pulled(self, db, tenant_config):
        client = MockPMSClient(records={
            "patients": [patient(1, timedelta(hours=1)), patient(2, timedelta(hours=48))],
        })
        service = SyncService(client_factory=lambda config: client, now=lambda: NOW)

        summary = service.run_incremental_sync(db)

        assert summary.configs_processed == 1
        assert summary.total_processed == 1
        assert [p.external_id for p in db.query(Patient).all()] == ["1"]
        assert client.calls_for("patients")[0]["updated_since"] == "2026-10-15T12:00:00Z"

    def test_unfiltered_resources_pulled_in_full(self, db, tenant_config):
        client = MockPMSClient(records={
            "payments": [{"id": 901, "patient_id": 1, "amount": 10}],
        })
        service = SyncService(client_factory=lambda config: client, now=lambda: NOW)

        summary = service.run_incremental_sync(db)

        assert summary.total_processed == 1
        assert db.query(Payment).count() == 1
        assert "updated_since" not in client.calls_for("payments")[0]
        appointment_params = client.calls_for("appointments")[0]
        assert (appointment_params["start"], appointment_params["end"]) == ("2020-01-01", "2030-12-31")
        assert "updated_since" in appointment_params

    def test_record_errors_prefixed_with_config(self, db, tenant_config):
        client = MockPMSClient(records={
            "appointments": [{"id": 9, "updated_at": stamp(timedelta(hours=1))}],
        })
        service = SyncService(client_factory=lambda config: client, now=lambda: NOW)

        summary = service.run_incremental_sync(db)

        assert summary.total_failed == 1
        assert summary.errors == [f"Config {tenant_config.id} Appointment 9: appointment has no start_time"]
        job = db.query(SyncJob).one()
        assert job.job_type == "incremental_sync"
        assert job.status == "completed"

    def test_failing_tenant_does_not_stop_others(self, db, tenant_config, second_tenant_config):
        healthy = MockPMSClient(records={"patients": [patient(1, timedelta(hours=1))]})
        factory = factory_by_subdomain({
            tenant_config.subdomain: failing_client("PMS unavailable"),
            second_tenant_config.subdomain: healthy,
        })
        service = SyncService(client_factory=factory, now=lambda: NOW)

        summary = service.run_incremental_sync(db)

        assert summary.configs_processed == 2
        assert summary.configs_failed == 1
        assert summary.total_processed == 1
        assert summary.errors == [f"Config {tenant_config.id} failed: PMS unavailable (HTTP 503)"]

        db.refresh(tenant_config)
        db.refresh(second_tenant_config)
        assert tenant_config.connection_status == "error"
        assert second_tenant_config.connection_status == "connected"
        statuses = {job.tenant_id: job.status for job in db.query(SyncJob).all()}
        assert statuses == {tenant_config.id: "failed", second_tenant_config.id: "completed"}

    def test_mid_run_failure_excludes_partial_totals(self, db, tenant_config):
        client = MockPMSClient(
            records={"patients": [patient(1, timedelta(hours=1))]},
            fail_on={"charges": PMSAPIError("Server error", status_code=500)},
        )
        service = SyncService(client_factory=lambda config: client, now=lambda: NOW)

        summary = service.run_incremental_sync(db)

        assert summary.configs_failed == 1
        assert summary.total_processed == 0
        job = db.query(SyncJob).one()
        assert job.status == "failed"
        assert job.records_processed == 1
        assert job.errors[-1] == f"Config {tenant_config.id} failed: Server error (HTTP 500)"
        assert client.closed

    def test_inactive_tenants_skipped(self, db, tenant_config):
        tenant_config.is_active = False
        db.commit()
        client = MockPMSClient()

        summary = SyncService(client_factory=lambda config: client, now=lambda: NOW).run_incremental_sync(db)

        assert summary.configs_processed == 0
        assert client.calls == []

    def test_successful_run_advances_cutoff(self, db, tenant_config):
        client = MockPMSClient()
        service = SyncService(client_factory=lambda config: client, now=lambda: NOW)

        service.run_incremental_sync(db)

        db.refresh(tenant_config)
        assert tenant_config.last_sync_at is not None
        assert tenant_config.connection_status == "connected"
