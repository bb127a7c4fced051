"""Pydantic schemas for tenant sync configurations."""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field


class TenantConfigCreate(BaseModel):
    """Request body for creating or updating a practice's upstream config."""

    practice_id: str = Field(min_length=1)
    api_key: str = Field(min_length=1)
    subdomain: str = Field(min_length=1)
    location_id: str = Field(min_length=1)
    environment: Literal["sandbox", "production"] = "production"
    webhook_secret: Optional[str] = None


class TenantConfigResponse(BaseModel):
    """Tenant config as returned by the API. Credentials are never echoed."""

    id: str
    practice_id: str
    subdomain: str
    location_id: str
    environment: str
    connection_status: str
    is_active: bool
    has_webhook_secret: bool = False
    last_sync_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}

    @classmethod
    def from_model(cls, config) -> "TenantConfigResponse":
        response = cls.model_validate(config)
        response.has_webhook_secret = bool(config.webhook_secret)
        return response


class ConnectionTestResponse(BaseModel):
    success: bool
    connection_status: str
    error: Optional[str] = None
