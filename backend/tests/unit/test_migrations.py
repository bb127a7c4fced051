"""Tests for the Alembic migrations shipped with the service."""

import pytest
from alembic import command
from sqlalchemy import create_engine, inspect

import models  # noqa: F401
from database import Base, get_alembic_config, init_db


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite:///{tmp_path / 'migrated.db'}"


@pytest.fixture
def inspect_db(database_url):
    engines = []

    def _inspect():
        engine = create_engine(database_url)
        engines.append(engine)
        return inspect(engine)

    yield _inspect
    for engine in engines:
        engine.dispose()


class TestMigrations:
    def test_upgrade_creates_every_model_table(self, database_url, inspect_db):
        init_db(database_url)

        tables = set(inspect_db().get_table_names()) - {"alembic_version"}
        assert tables == set(Base.metadata.tables)

    def test_upgrade_columns_match_models(self, database_url, inspect_db):
        init_db(database_url)
        inspector = inspect_db()

        for name, table in Base.metadata.tables.items():
            migrated = {col["name"]: col for col in inspector.get_columns(name)}
            assert set(migrated) == set(table.columns.keys()), name
            for column in table.columns:
                assert migrated[column.name]["nullable"] == column.nullable, f"{name}.{column.name}"

    def test_external_id_unique_per_tenant(self, database_url, inspect_db):
        init_db(database_url)
        inspector = inspect_db()

        constraints = {
            uc["name"]: uc["column_names"] for uc in inspector.get_unique_constraints("appointments")
        }
        assert constraints["uix_appointments_tenant_external_id"] == ["tenant_id", "external_id"]

    def test_upgrade_is_idempotent(self, database_url, inspect_db):
        init_db(database_url)
        init_db(database_url)

        assert "patients" in inspect_db().get_table_names()

    def test_downgrade_to_base_drops_everything(self, database_url, inspect_db):
        init_db(database_url)
        command.downgrade(get_alembic_config(database_url), "base")

        assert set(inspect_db().get_table_names()) == {"alembic_version"}
