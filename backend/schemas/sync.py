"""Pydantic schemas for sync runs."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class SyncJobResponse(BaseModel):
    """Response schema for a sync job."""

    id: str
    tenant_id: str
    job_type: str
    status: str
    records_processed: int
    records_failed: int
    errors: list[str] = []
    started_at: datetime
    completed_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class IncrementalSyncResponse(BaseModel):
    configs_processed: int
    total_processed: int
    total_failed: int
    configs_failed: int = 0
    errors: list[str] = []
