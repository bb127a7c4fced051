"""Health monitoring models - check results and operator alerts."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text

from database import Base
from models.utils import generate_uuid, utc_now


class HealthCheck(Base):
    """Result of one connectivity check against a tenant's upstream."""

    __tablename__ = "health_checks"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    tenant_id = Column(String(36), ForeignKey("tenant_sync_configs.id"), nullable=False, index=True)
    service = Column(String, nullable=False, default="pms")
    status = Column(String, nullable=False)  # "healthy" | "degraded" | "down"
    response_time_ms = Column(Integer, nullable=False, default=0)
    details = Column(Text, nullable=True)
    checked_at = Column(DateTime, nullable=False, default=utc_now)


class HealthAlert(Base):
    """Operator alert raised when a check is degraded or down."""

    __tablename__ = "health_alerts"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    tenant_id = Column(String(36), ForeignKey("tenant_sync_configs.id"), nullable=False, index=True)
    service = Column(String, nullable=False, default="pms")
    severity = Column(String, nullable=False)  # "warning" | "critical"
    message = Column(Text, nullable=False)
    is_acknowledged = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=utc_now)
