"""WebhookEvent model - append-only log of received webhook notifications."""

from sqlalchemy import Column, DateTime, ForeignKey, String, Text

from database import Base
from models.utils import generate_uuid, utc_now


class WebhookEvent(Base):
    """A received webhook event.

    Written as ``pending`` before processing starts, then patched once to
    ``processed`` or ``failed``.
    """

    __tablename__ = "webhook_events"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    tenant_id = Column(String(36), ForeignKey("tenant_sync_configs.id"), nullable=False, index=True)
    event_id = Column(String, nullable=False, index=True)
    event_type = Column(String, nullable=False)
    resource_id = Column(String, nullable=True)
    payload = Column(Text, nullable=True)  # raw JSON string as delivered
    status = Column(String, nullable=False, default="pending")  # "pending" | "processed" | "failed"
    error = Column(Text, nullable=True)
    received_at = Column(DateTime, nullable=False, default=utc_now)
    processed_at = Column(DateTime, nullable=True)
