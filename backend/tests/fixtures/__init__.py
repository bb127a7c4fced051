"""Test fixtures and sample data."""
import pytest
from sqlalchemy.orm import Session

from models import Appointment, Patient, Provider, TenantSyncConfig


def create_tenant_config(
    db: Session,
    practice_id: str = "practice-1",
    subdomain: str = "mock-practice",
    **kwargs,
) -> TenantSyncConfig:
    """Create and flush an active tenant config.

    This is a helper function (not a fixture) for tests that need several
    tenants or non-default settings.
    """
    values = {
        "api_key": "test-api-key",
        "location_id": "42",
        "environment": "sandbox",
        "connection_status": "unconfigured",
        "is_active": True,
    }
    values.update(kwargs)
    config = TenantSyncConfig(practice_id=practice_id, subdomain=subdomain, **values)
    db.add(config)
    db.flush()
    return config


@pytest.fixture
def tenant_config(db) -> TenantSyncConfig:
    """Create an active, never-synced tenant config."""
    config = create_tenant_config(db)
    db.commit()
    return config


@pytest.fixture
def second_tenant_config(db) -> TenantSyncConfig:
    config = create_tenant_config(db, practice_id="practice-2", subdomain="second-practice")
    db.commit()
    return config


@pytest.fixture
def provider(db, tenant_config) -> Provider:
    row = Provider(
        tenant_id=tenant_config.id,
        external_id="101",
        first_name="Grace",
        last_name="Hopper",
        provider_type="dentist",
    )
    db.add(row)
    db.commit()
    return row


@pytest.fixture
def patient(db, tenant_config) -> Patient:
    """A patient already linked to upstream id 201."""
    row = Patient(
        tenant_id=tenant_config.id,
        external_id="201",
        first_name="Ada",
        last_name="Lovelace",
        date_of_birth="1985-12-10",
        email="ada@example.com",
    )
    db.add(row)
    db.commit()
    return row


@pytest.fixture
def appointment(db, tenant_config, patient, provider) -> Appointment:
    """A locally created appointment that has never been pushed."""
    row = Appointment(
        tenant_id=tenant_config.id,
        patient_id=patient.id,
        provider_id=provider.id,
        patient_external_id=patient.external_id,
        provider_external_id=provider.external_id,
        date="2026-10-20",
        start_time="15:00",
        end_time="16:00",
        duration=60,
        status="scheduled",
        notes="Cleaning",
    )
    db.add(row)
    db.commit()
    return row
