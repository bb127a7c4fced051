"""TenantSyncConfig model - one upstream connection per practice."""

from sqlalchemy import Boolean, Column, DateTime, String
from sqlalchemy.orm import relationship

from database import Base
from models.utils import generate_uuid, utc_now


class TenantSyncConfig(Base):
    """Upstream credentials and connection state for one practice.

    Configs are never hard-deleted while the integration exists;
    deactivation flips ``is_active`` and resets ``connection_status``.
    """

    __tablename__ = "tenant_sync_configs"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    practice_id = Column(String, unique=True, nullable=False, index=True)
    api_key = Column(String, nullable=False)
    subdomain = Column(String, unique=True, nullable=False, index=True)
    location_id = Column(String, nullable=False)
    environment = Column(String, nullable=False, default="production")  # "sandbox" | "production"
    webhook_secret = Column(String, nullable=True)
    connection_status = Column(String, nullable=False, default="unconfigured")  # "connected" | "error" | "unconfigured"
    is_active = Column(Boolean, nullable=False, default=True)
    last_sync_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utc_now)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now)

    # Relationships
    sync_jobs = relationship("SyncJob", back_populates="tenant")
