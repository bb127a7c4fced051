"""Pytest configuration and fixtures."""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import Base, enable_sqlite_savepoints, get_db
from main import app
from api.health_checks import get_health_service
from api.push import get_push_service
from api.sync import get_sync_service
from api.tenant_configs import get_client_factory
from services.health_service import HealthService
from services.push_service import PushService
from services.sync_service import SyncService
# Pytest fixtures - imported to make them available to tests
from tests.fixtures import (  # noqa: F401
    appointment,
    patient,
    provider,
    second_tenant_config,
    tenant_config,
)
from tests.fixtures.mocks import MockPMSClient, failing_client, sample_records


@pytest.fixture(name="db")
def db_fixture():
    """Create an in-memory SQLite database for testing."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_savepoints(engine)
    Base.metadata.create_all(bind=engine)

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(name="mock_pms_client")
def mock_pms_client_fixture():
    """Create a mock PMS client serving the sample practice."""
    return MockPMSClient(records=sample_records())


def _install_overrides(db, pms_client):
    def override_get_db():
        try:
            yield db
        finally:
            pass

    def factory(config):
        return pms_client

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_sync_service] = lambda: SyncService(client_factory=factory)
    app.dependency_overrides[get_push_service] = lambda: PushService(client_factory=factory)
    app.dependency_overrides[get_health_service] = lambda: HealthService(client_factory=factory)
    app.dependency_overrides[get_client_factory] = lambda: factory


@pytest.fixture(name="client")
def client_fixture(db, mock_pms_client):
    """Create a test client whose services talk to the mock PMS client."""
    _install_overrides(db, mock_pms_client)
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


@pytest.fixture(name="client_with_failing_pms")
def client_with_failing_pms_fixture(db):
    """Create a test client whose PMS client cannot authenticate."""
    _install_overrides(db, failing_client("PMS API unavailable"))
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()
