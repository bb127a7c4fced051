"""Shared utilities for ORM models."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import declared_attr


def generate_uuid() -> str:
    """Generate a UUID string."""
    return str(uuid.uuid4())


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SyncedEntityMixin:
    """Columns shared by every table that mirrors an upstream resource.

    ``external_id`` is the upstream record id. It is unique per tenant and
    NULL for records created locally that have not been pushed upstream yet.
    """

    id = Column(String(36), primary_key=True, default=generate_uuid)
    external_id = Column(String, nullable=True, index=True)
    last_synced_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utc_now)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now)

    @declared_attr
    def tenant_id(cls):
        return Column(
            String(36), ForeignKey("tenant_sync_configs.id"), nullable=False, index=True
        )

    @declared_attr.directive
    def __table_args__(cls):
        return (
            UniqueConstraint(
                "tenant_id", "external_id",
                name=f"uix_{cls.__tablename__}_tenant_external_id",
            ),
        )
