"""Tests for shared API helpers."""

import pytest
from fastapi import HTTPException

from api.helpers import get_or_404, get_tenant_or_404
from models import Provider


class TestGetOr404:
    """Tests for get_or_404."""

    def test_returns_entity(self, db, provider):
        """Returns the entity when it exists."""
        result = get_or_404(db, Provider, provider.id, "Provider not found")
        assert result.external_id == "101"

    def test_raises_404_when_missing(self, db):
        """Raises HTTPException 404 when the entity doesn't exist."""
        with pytest.raises(HTTPException) as exc_info:
            get_or_404(db, Provider, "nonexistent-id", "Provider not found")
        assert exc_info.value.status_code == 404
        assert exc_info.value.detail == "Provider not found"


class TestGetTenantOr404:
    def test_returns_config(self, db, tenant_config):
        assert get_tenant_or_404(db, tenant_config.id).subdomain == "mock-practice"

    def test_missing_config(self, db):
        with pytest.raises(HTTPException) as exc_info:
            get_tenant_or_404(db, "missing")
        assert exc_info.value.detail == "Tenant config not found"
