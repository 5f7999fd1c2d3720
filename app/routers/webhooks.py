# =============================================================================
# app/routers/webhooks.py - Stripe Webhook Endpoint
# =============================================================================
# Reads the raw body (signature verification needs the exact bytes).
# Exempt from CSRF and the body size limit.
# =============================================================================

import logging

from fastapi import APIRouter, Header, Request

from core.services.webhook_service import StripeWebhookService, construct_event
from app.middleware.rate_limit import limiter
from lib.stripe_client import field

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["Webhooks"])


@router.post("/stripe")
@limiter.exempt
async def stripe_webhook(
    request: Request,
    stripe_signature: str | None = Header(default=None, alias="stripe-signature"),
):
    """
    Receive Stripe events.

    Signature and configuration problems are rejected (400/500) so Stripe
    retries. Once verified, the event is acknowledged even if processing
    fails; the failure is logged for follow-up.
    """
    payload = await request.body()
    event = construct_event(payload, stripe_signature)

    try:
        StripeWebhookService.handle_event(event)
    except Exception as e:
        logger.exception(f"Error handling Stripe event {field(event, 'type')}: {e}")
        return {"received": True, "error": "Internal handler error"}

    return {"received": True}
