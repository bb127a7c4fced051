"""Webhook service - applies upstream change notifications to the local store."""

import hashlib
import hmac
import json
import logging
from dataclasses import dataclass
from typing import Any, Optional

from sqlalchemy.orm import Session

from models import TenantSyncConfig, WebhookEvent
from models.utils import utc_now
from services.entity_store import RESOURCES
from services.tenant_config_service import TenantConfigService

logger = logging.getLogger(__name__)

# Event type prefix -> resource. Types with no entry are recorded only.
EVENT_ROUTES = {
    "patient.": "patients",
    "appointment.": "appointments",
    "payment.": "payments",
    "insurance.": "insurance_coverages",
    "charge.": "charges",
}


@dataclass
class WebhookEventPayload:
    """A webhook delivery as received, before any processing."""

    event_id: str
    event_type: str
    subdomain: str
    resource_id: Optional[str] = None
    data: Optional[str] = None  # raw JSON text of the changed record


@dataclass
class WebhookResult:
    success: bool
    event_id: Optional[str] = None  # local WebhookEvent id, when one was recorded
    error: Optional[str] = None


def verify_signature(body: bytes, signature: Optional[str], secret: str) -> bool:
    """Check a hex HMAC-SHA256 signature of the raw request body."""
    if not signature:
        return False
    expected = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()
    return hmac.compare_digest(expected, signature.strip().lower())


def route_for(event_type: str) -> Optional[str]:
    for prefix, resource in EVENT_ROUTES.items():
        if event_type.startswith(prefix):
            return resource
    return None


class WebhookService:
    """Records and applies webhook events.

    Every delivery for a known tenant is stored as a WebhookEvent before it
    is processed, so a failure still leaves an audit row. Redelivered events
    simply re-apply their values through the same upsert path as sync.
    """

    @staticmethod
    def find_tenant(db: Session, subdomain: str) -> TenantSyncConfig | None:
        return TenantConfigService.get_by_subdomain(db, subdomain)

    @staticmethod
    def handle_event(db: Session, event: WebhookEventPayload) -> WebhookResult:
        """Record, route and apply one event.

        Never raises for processing failures; they are stored on the event
        and returned. Commits the pending event before processing and the
        outcome afterwards.
        """
        config = WebhookService.find_tenant(db, event.subdomain)
        if config is None:
            logger.warning("Webhook for unknown subdomain %s ignored", event.subdomain)
            return WebhookResult(success=False, error="Unknown subdomain")

        record = WebhookEvent(
            tenant_id=config.id,
            event_id=event.event_id,
            event_type=event.event_type,
            resource_id=event.resource_id,
            payload=event.data,
            status="pending",
        )
        db.add(record)
        db.commit()

        try:
            WebhookService._apply(db, config, event)
        except Exception as e:
            logger.warning(
                "Webhook %s (%s) failed for %s: %s",
                event.event_id, event.event_type, config.subdomain, e,
            )
            db.rollback()
            record.status = "failed"
            record.error = str(e)
            record.processed_at = utc_now()
            db.commit()
            return WebhookResult(success=False, event_id=record.id, error=str(e))

        record.status = "processed"
        record.processed_at = utc_now()
        TenantConfigService.update_connection_status(db, config, "connected")
        db.commit()
        logger.info("Webhook %s (%s) processed for %s", event.event_id, event.event_type, config.subdomain)
        return WebhookResult(success=True, event_id=record.id)

    @staticmethod
    def _apply(db: Session, config: TenantSyncConfig, event: WebhookEventPayload) -> None:
        resource_name = route_for(event.event_type)
        if resource_name is None:
            logger.debug("Webhook type %s has no handler; recorded only", event.event_type)
            return

        raw = _parse_data(event.data)
        if raw is None:
            raise ValueError("Event has no data")
        if "id" not in raw and event.resource_id:
            raw = {**raw, "id": event.resource_id}

        RESOURCES[resource_name].apply(db, config.id, raw)
        db.flush()


def _parse_data(data: Optional[str]) -> Optional[dict[str, Any]]:
    """Decode the event's record, unwrapping a ``{"<type>": {...}}`` shell."""
    if not data:
        return None
    try:
        parsed = json.loads(data)
    except ValueError as e:
        raise ValueError(f"Invalid event data: {e}") from e
    if not isinstance(parsed, dict):
        raise ValueError("Event data is not an object")
    if "id" not in parsed and len(parsed) == 1:
        (inner,) = parsed.values()
        if isinstance(inner, dict):
            return inner
    return parsed
