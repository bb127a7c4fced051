"""Inbound webhook endpoint for upstream change notifications."""

import json
import logging
import time

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import ValidationError
from sqlalchemy.orm import Session

from config import settings
from database import get_db
from schemas.webhook import WebhookRequest, WebhookResponse
from services.webhook_service import WebhookEventPayload, WebhookService, verify_signature

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/webhooks", tags=["webhooks"])

SIGNATURE_HEADERS = ("x-nexhealth-signature", "x-signature")


def encode_event_data(data) -> str:
    """Return the event record as JSON text.

    Senders that JSON-encode the record themselves pass a string, which is
    kept as is.
    """
    if data is None:
        return "{}"
    if isinstance(data, str):
        return data
    return json.dumps(data)


@router.post("/pms", response_model=WebhookResponse)
async def receive_pms_webhook(request: Request, db: Session = Depends(get_db)):
    """Receive one upstream event.

    The signature is checked against the tenant's webhook secret (or the
    global ``WEBHOOK_SECRET``) when one is configured. Once the event is
    recorded the response is 200 even if processing failed, so the sender
    does not redeliver an event that is already in the log.

    Raises:
        HTTPException:
            - 400 Bad Request: Empty or malformed body, or no subdomain
            - 401 Unauthorized: Missing or invalid signature
            - 404 Not Found: No active tenant owns the subdomain
    """
    raw_body = await request.body()
    if not raw_body:
        raise HTTPException(status_code=400, detail="Empty body")
    try:
        payload = WebhookRequest.model_validate_json(raw_body)
    except ValidationError:
        raise HTTPException(status_code=400, detail="Invalid JSON")

    if not payload.subdomain:
        raise HTTPException(status_code=400, detail="Missing subdomain in event")

    config = WebhookService.find_tenant(db, payload.subdomain)
    if config is None:
        raise HTTPException(status_code=404, detail="Unknown subdomain")

    secret = config.webhook_secret or settings.WEBHOOK_SECRET
    if secret:
        signature = next(
            (request.headers[h] for h in SIGNATURE_HEADERS if request.headers.get(h)), None
        )
        if not signature:
            raise HTTPException(status_code=401, detail="Missing signature header")
        if not verify_signature(raw_body, signature, secret):
            logger.warning("Webhook signature mismatch for %s", payload.subdomain)
            raise HTTPException(status_code=401, detail="Invalid signature")

    event = WebhookEventPayload(
        event_id=payload.event_id or f"evt_{int(time.time() * 1000)}",
        event_type=payload.event_type or "unknown",
        subdomain=payload.subdomain,
        resource_id=payload.resource_id,
        data=encode_event_data(payload.data),
    )
    result = WebhookService.handle_event(db, event)
    if not result.success and result.event_id is None:
        raise HTTPException(status_code=404, detail=result.error or "Unknown subdomain")

    return WebhookResponse(
        received=True,
        success=result.success,
        event_id=event.event_id,
        error=result.error,
    )
