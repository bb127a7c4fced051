"""Pydantic schemas for health monitoring."""

from datetime import datetime

from pydantic import BaseModel


class HealthCheckSummaryResponse(BaseModel):
    configs_checked: int
    healthy: int
    degraded: int
    down: int

    model_config = {"from_attributes": True}


class HealthAlertResponse(BaseModel):
    id: str
    tenant_id: str
    service: str
    severity: str
    message: str
    is_acknowledged: bool
    created_at: datetime

    model_config = {"from_attributes": True}
