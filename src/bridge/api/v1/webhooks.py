"""SmartLead webhook receiver.

POST /webhooks/smartlead mirrors a SmartLead lead event into Twenty.

Response contract:
- 401 when a shared secret is configured and the request does not carry it
  (``x-smartlead-secret`` header or ``secret`` query parameter)
- 200 when processing completes, including partial CRM failures
- 200 without any CRM calls when the payload is unusable or has no lead
  email, so SmartLead does not keep retrying bad data
- 500 only for an unexpected fault that escaped the processor
"""

from __future__ import annotations

import hmac
from typing import Any

import structlog
from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError

from src.bridge.api.deps import get_app_settings, get_processor
from src.bridge.config import Settings
from src.bridge.core.monitoring import webhook_events_total
from src.bridge.leads.processor import LeadEventProcessor
from src.bridge.leads.schemas import SmartLeadWebhook

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/webhooks", tags=["webhooks"])

SECRET_HEADER = "x-smartlead-secret"
SECRET_QUERY_PARAM = "secret"

MESSAGE_PROCESSED = "Webhook processed successfully"
MESSAGE_MISSING_EMAIL = "Webhook acknowledged, but missing essential lead_data or email."
MESSAGE_UNPARSEABLE = "Webhook acknowledged, but payload could not be parsed."

# Event types reported as their own metric label; anything else is "other".
KNOWN_EVENT_TYPES = frozenset(
    {
        "EMAIL_SENT",
        "EMAIL_OPEN",
        "EMAIL_LINK_CLICK",
        "EMAIL_REPLY",
        "LEAD_UNSUBSCRIBED",
        "LEAD_CATEGORY_UPDATED",
    }
)


class WebhookAck(BaseModel):
    """Acknowledgment returned to SmartLead."""

    success: bool = True
    message: str


def event_type_label(event_type: str | None) -> str:
    """Bounded metric label for an event type taken from the request body."""
    if not event_type:
        return "unknown"
    return event_type if event_type in KNOWN_EVENT_TYPES else "other"


def _secret_is_valid(request: Request, expected: str) -> bool:
    provided = (
        request.headers.get(SECRET_HEADER)
        or request.query_params.get(SECRET_QUERY_PARAM)
        or ""
    )
    return hmac.compare_digest(provided.encode(), expected.encode())


@router.post("/smartlead", response_model=WebhookAck)
async def receive_smartlead_webhook(
    request: Request,
    settings: Settings = Depends(get_app_settings),
    processor: LeadEventProcessor = Depends(get_processor),
) -> Any:
    """SmartLead webhook receiver.

    Validates the optional shared secret, parses the event, and runs it
    through LeadEventProcessor. Secret validation is skipped when
    SMARTLEAD_WEBHOOK_SECRET is not configured.
    """
    if settings.SMARTLEAD_WEBHOOK_SECRET:
        if not _secret_is_valid(request, settings.SMARTLEAD_WEBHOOK_SECRET):
            logger.warning("webhook.invalid_secret")
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={"error": "Unauthorized: Invalid secret"},
            )

    try:
        payload = await request.json()
        event = SmartLeadWebhook.model_validate(payload)
    except (ValueError, ValidationError) as exc:
        logger.warning("webhook.unparseable_payload", error=str(exc))
        webhook_events_total.labels(event_type="unknown", outcome="unparseable").inc()
        return WebhookAck(message=MESSAGE_UNPARSEABLE)

    event_type = event_type_label(event.event_type)
    log = logger.bind(event_type=event.event_type, category=event.category)
    log.info("webhook.received")
    log.debug("webhook.payload", payload=payload)

    if not event.has_lead_email:
        log.warning("webhook.missing_lead_email")
        webhook_events_total.labels(event_type=event_type, outcome="missing_email").inc()
        return WebhookAck(message=MESSAGE_MISSING_EMAIL)

    try:
        outcome = await processor.process(event)
    except Exception as exc:
        log.exception("webhook.processing_error", error=str(exc))
        webhook_events_total.labels(event_type=event_type, outcome="error").inc()
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Internal Server Error", "message": str(exc)},
        )

    result = "partial" if outcome.failed_steps else "processed"
    webhook_events_total.labels(event_type=event_type, outcome=result).inc()
    log.info("webhook.processed", outcome=result, action=outcome.action)
    return WebhookAck(message=MESSAGE_PROCESSED)
