"""Tenant configuration API endpoints."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from api.helpers import get_tenant_or_404
from database import get_db
from integrations.pms_client import PMSClient
from schemas.tenant_config import ConnectionTestResponse, TenantConfigCreate, TenantConfigResponse
from services.sync_service import ClientFactory
from services.tenant_config_service import TenantConfigService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/tenant-configs", tags=["tenant-configs"])


def get_client_factory() -> ClientFactory:
    """Get the PMS client factory (dependency for injection in tests)."""
    return PMSClient.from_config


@router.post("", response_model=TenantConfigResponse, status_code=201)
def save_tenant_config(body: TenantConfigCreate, db: Session = Depends(get_db)):
    """Create a practice's upstream config, or update the existing one."""
    config = TenantConfigService.save_config(db, **body.model_dump())
    db.commit()
    db.refresh(config)
    return TenantConfigResponse.from_model(config)


@router.get("", response_model=list[TenantConfigResponse])
def list_tenant_configs(db: Session = Depends(get_db)):
    return [TenantConfigResponse.from_model(c) for c in TenantConfigService.list_configs(db)]


@router.delete("/{config_id}", response_model=TenantConfigResponse)
def deactivate_tenant_config(config_id: str, db: Session = Depends(get_db)):
    """Deactivate a config. The row and its sync history are kept."""
    get_tenant_or_404(db, config_id)
    config = TenantConfigService.deactivate(db, config_id)
    db.commit()
    db.refresh(config)
    return TenantConfigResponse.from_model(config)


@router.post("/{config_id}/test-connection", response_model=ConnectionTestResponse)
def test_tenant_connection(
    config_id: str,
    db: Session = Depends(get_db),
    client_factory: ClientFactory = Depends(get_client_factory),
):
    """Authenticate against the upstream with the stored credentials.

    Always returns 200; the outcome is in ``success``.
    """
    config = get_tenant_or_404(db, config_id)
    result = TenantConfigService.test_connection(db, config, client_factory=client_factory)
    db.commit()
    return ConnectionTestResponse(
        success=result.success,
        connection_status=config.connection_status,
        error=result.error,
    )
