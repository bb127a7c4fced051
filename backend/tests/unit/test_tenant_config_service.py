"""Tests for TenantConfigService."""

import pytest

from models import TenantSyncConfig
from services.tenant_config_service import TenantConfigService
from tests.fixtures.mocks import MockPMSClient, failing_client


def save(db, **overrides):
    values = {
        "practice_id": "practice-9",
        "api_key": "key-1",
        "subdomain": "smile-dental",
        "location_id": "7",
    }
    values.update(overrides)
    return TenantConfigService.save_config(db, **values)


class TestSaveConfig:
    def test_create(self, db):
        config = save(db)

        assert config.id is not None
        assert config.connection_status == "unconfigured"
        assert config.is_active is True
        assert config.environment == "production"

    def test_save_again_updates_in_place(self, db):
        first = save(db)
        first.connection_status = "connected"
        db.flush()

        second = save(db, webhook_secret="whsec")

        assert second.id == first.id
        assert second.webhook_secret == "whsec"
        assert second.connection_status == "connected"
        assert db.query(TenantSyncConfig).count() == 1

    def test_changed_credentials_reset_status(self, db):
        config = save(db)
        config.connection_status = "connected"
        db.flush()

        save(db, api_key="key-2")

        assert config.connection_status == "unconfigured"

    def test_save_reactivates(self, db):
        config = save(db)
        TenantConfigService.deactivate(db, config.id)

        save(db)

        assert config.is_active is True


class TestLookups:
    def test_get_by_subdomain_ignores_inactive(self, db, tenant_config):
        assert TenantConfigService.get_by_subdomain(db, "mock-practice").id == tenant_config.id

        TenantConfigService.deactivate(db, tenant_config.id)

        assert TenantConfigService.get_by_subdomain(db, "mock-practice") is None
        assert TenantConfigService.list_active(db) == []
        assert len(TenantConfigService.list_configs(db)) == 1

    def test_deactivate_unknown(self, db):
        assert TenantConfigService.deactivate(db, "missing") is None


class TestConnectionStatus:
    def test_connected_stamps_last_sync(self, db, tenant_config):
        TenantConfigService.update_connection_status(db, tenant_config, "connected")

        assert tenant_config.last_sync_at is not None

    def test_error_keeps_last_sync(self, db, tenant_config):
        TenantConfigService.update_connection_status(db, tenant_config, "error")

        assert tenant_config.connection_status == "error"
        assert tenant_config.last_sync_at is None

    def test_invalid_status_rejected(self, db, tenant_config):
        with pytest.raises(ValueError, match="Invalid connection status"):
            TenantConfigService.update_connection_status(db, tenant_config, "flaky")


class TestTestConnection:
    def test_success(self, db, tenant_config):
        client = MockPMSClient()

        result = TenantConfigService.test_connection(db, tenant_config, client_factory=lambda c: client)

        assert result.success
        assert tenant_config.connection_status == "connected"
        assert tenant_config.last_sync_at is None
        assert client.closed

    def test_failure(self, db, tenant_config):
        result = TenantConfigService.test_connection(
            db, tenant_config, client_factory=lambda c: failing_client("bad key", auth=True)
        )

        assert not result.success
        assert result.error == "bad key"
        assert tenant_config.connection_status == "error"
