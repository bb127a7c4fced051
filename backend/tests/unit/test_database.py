"""Tests for database session helpers."""

from models import TenantSyncConfig
from tests.fixtures import create_tenant_config


class TestSavepoints:
    """The db fixture's engine has enable_sqlite_savepoints applied."""

    def test_nested_rollback_keeps_outer_work(self, db):
        create_tenant_config(db, practice_id="kept", subdomain="kept")

        nested = db.begin_nested()
        create_tenant_config(db, practice_id="dropped", subdomain="dropped")
        nested.rollback()
        db.commit()

        assert [c.practice_id for c in db.query(TenantSyncConfig).all()] == ["kept"]

    def test_released_savepoint_undone_by_outer_rollback(self, db):
        with db.begin_nested():
            create_tenant_config(db, practice_id="released", subdomain="released")

        db.rollback()

        assert db.query(TenantSyncConfig).count() == 0
