"""Sync API endpoints."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from api.helpers import get_tenant_or_404
from database import get_db
from models import SyncJob
from schemas.sync import IncrementalSyncResponse, SyncJobResponse
from services.sync_service import SyncService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/sync", tags=["sync"])

SYNC_IN_PROGRESS_DETAIL = "Sync already in progress. Please wait for the current sync to complete."


def get_sync_service() -> SyncService:
    """Get SyncService instance (dependency for injection in tests)."""
    return SyncService()


@router.post("/incremental", response_model=IncrementalSyncResponse)
def trigger_incremental_sync(
    db: Session = Depends(get_db),
    sync_service: SyncService = Depends(get_sync_service),
):
    """Pull recently changed records for every active tenant.

    Tenant failures are reported in ``errors``; the call itself succeeds.

    Raises:
        HTTPException:
            - 409 Conflict: A sync is already in progress
            - 500 Internal Server Error: Unexpected sync error
    """
    if sync_service.is_sync_in_progress():
        raise HTTPException(status_code=409, detail=SYNC_IN_PROGRESS_DETAIL)

    try:
        summary = sync_service.run_incremental_sync(db)
    except ValueError as e:
        if "already in progress" in str(e).lower():
            raise HTTPException(status_code=409, detail=SYNC_IN_PROGRESS_DETAIL)
        raise
    except Exception:
        logger.error("Unexpected error during incremental sync", exc_info=True)
        raise HTTPException(status_code=500, detail="An unexpected error occurred during sync.")

    return IncrementalSyncResponse(
        configs_processed=summary.configs_processed,
        total_processed=summary.total_processed,
        total_failed=summary.total_failed,
        configs_failed=summary.configs_failed,
        errors=summary.errors,
    )


@router.post("/{tenant_id}/full", response_model=SyncJobResponse)
def trigger_full_sync(
    tenant_id: str,
    db: Session = Depends(get_db),
    sync_service: SyncService = Depends(get_sync_service),
):
    """Run a full sync for one tenant.

    Always returns 200 with the finalized job; upstream failures are
    reported through the job's ``status`` and ``errors``.

    Raises:
        HTTPException:
            - 404 Not Found: Unknown tenant
            - 409 Conflict: A sync is already in progress
            - 500 Internal Server Error: Unexpected sync error
    """
    get_tenant_or_404(db, tenant_id)
    if sync_service.is_sync_in_progress():
        raise HTTPException(status_code=409, detail=SYNC_IN_PROGRESS_DETAIL)

    try:
        job = sync_service.run_full_sync(db, tenant_id)
    except ValueError as e:
        if "already in progress" in str(e).lower():
            raise HTTPException(status_code=409, detail=SYNC_IN_PROGRESS_DETAIL)
        raise
    except Exception:
        logger.error("Unexpected error during full sync", exc_info=True)
        raise HTTPException(status_code=500, detail="An unexpected error occurred during sync.")

    db.refresh(job)
    return job


@router.get("/jobs", response_model=list[SyncJobResponse])
def list_sync_jobs(
    tenant_id: Optional[str] = None,
    limit: int = Query(default=50, ge=1, le=500),
    db: Session = Depends(get_db),
):
    """List sync jobs, newest first."""
    query = db.query(SyncJob)
    if tenant_id:
        query = query.filter(SyncJob.tenant_id == tenant_id)
    return query.order_by(SyncJob.started_at.desc()).limit(limit).all()
