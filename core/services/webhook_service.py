# =============================================================================
# core/services/webhook_service.py - Stripe Webhook Processing
# =============================================================================
# Verifies Stripe webhook signatures and keeps the subscriptions table in
# sync with Stripe.
#
# Handled events:
# - checkout.session.completed        -> create/replace the member's row
# - customer.subscription.created     -> refresh status and periods
# - customer.subscription.updated     -> refresh status and periods
# - customer.subscription.deleted     -> mark canceled
# - invoice.payment_succeeded         -> refresh periods, store invoice id
# - invoice.payment_failed            -> mark past_due
# =============================================================================

import logging
from typing import Any, Callable

import stripe

from app.config import settings
from app.exceptions import ConfigurationError, WebhookSignatureError
from core.models.billing import SubscriptionStatus
from core.services.subscription_service import SubscriptionService, stripe_api
from lib.stripe_client import field
from lib.supabase_client import SupabaseClient
from lib.utils import from_unix, is_uuid, utc_now_iso

logger = logging.getLogger(__name__)


def construct_event(payload: bytes, signature: str | None) -> Any:
    """
    Verify and parse a webhook delivery.

    Raises:
        WebhookSignatureError: Missing body/signature or bad signature
        ConfigurationError: STRIPE_WEBHOOK_SECRET is not set
    """
    if not payload:
        raise WebhookSignatureError("Missing request body")
    if not signature:
        raise WebhookSignatureError("Missing stripe-signature header")
    if not settings.STRIPE_WEBHOOK_SECRET:
        raise ConfigurationError("STRIPE_WEBHOOK_SECRET")

    try:
        return stripe.Webhook.construct_event(payload, signature, settings.STRIPE_WEBHOOK_SECRET)
    except stripe.SignatureVerificationError as e:
        logger.warning(f"Stripe signature verification failed: {e}")
        raise WebhookSignatureError("Invalid signature")
    except ValueError as e:
        logger.warning(f"Invalid Stripe payload: {e}")
        raise WebhookSignatureError("Invalid payload")


def subscription_periods(subscription: Any) -> tuple[str, str]:
    """
    Current period start/end as ISO strings.

    Newer API versions put periods on the subscription items; older ones
    on the subscription itself. Falls back to now when neither has them.
    """
    item = field(subscription, "items", "data", 0)
    start = field(item, "current_period_start") or field(subscription, "current_period_start")
    end = field(item, "current_period_end") or field(subscription, "current_period_end")
    now = utc_now_iso()
    return from_unix(start) or now, from_unix(end) or now


def invoice_subscription_id(invoice: Any) -> str | None:
    """Find the subscription an invoice belongs to across API versions."""
    return (
        field(invoice, "subscription")
        or field(invoice, "parent", "subscription_details", "subscription")
        or field(invoice, "lines", "data", 0, "subscription")
        or field(invoice, "lines", "data", 0, "parent", "subscription_item_details", "subscription")
    )


def _status_fields(subscription: Any) -> dict[str, Any]:
    start, end = subscription_periods(subscription)
    return {
        "status": field(subscription, "status", default=SubscriptionStatus.ACTIVE.value),
        "current_period_start": start,
        "current_period_end": end,
        "cancel_at_period_end": bool(field(subscription, "cancel_at_period_end", default=False)),
        "cancel_at": from_unix(field(subscription, "cancel_at")),
        "canceled_at": from_unix(field(subscription, "canceled_at")),
        "ended_at": from_unix(field(subscription, "ended_at")),
        "updated_at": utc_now_iso(),
    }


class StripeWebhookService:
    """Applies Stripe events to the subscriptions table."""

    @staticmethod
    def _retrieve(subscription_id: str) -> Any:
        return stripe_api().Subscription.retrieve(subscription_id)

    @staticmethod
    def handle_checkout_completed(session: Any) -> None:
        user_id = field(session, "metadata", "userId") or field(session, "client_reference_id")
        subscription_id = field(session, "subscription")
        if not user_id or not subscription_id:
            logger.warning(f"Checkout session {field(session, 'id')} missing user or subscription")
            return

        plan_id = field(session, "metadata", "planId")
        if plan_id and not is_uuid(plan_id):
            plan_id = SubscriptionService.resolve_plan(plan_id)["id"]

        subscription = StripeWebhookService._retrieve(subscription_id)
        row = {
            "id": subscription_id,
            "user_id": user_id,
            "plan_id": plan_id,
            "stripe_customer_id": field(session, "customer"),
            **_status_fields(subscription),
        }
        SupabaseClient.upsert_subscription(row, on_conflict="user_id")
        logger.info(f"Checkout completed: subscription {subscription_id} for user {user_id}")

    @staticmethod
    def handle_subscription_changed(subscription_event: Any) -> None:
        subscription_id = field(subscription_event, "id")
        if not SupabaseClient.fetch_subscription(subscription_id):
            logger.info(f"Subscription {subscription_id} not in database yet; skipping")
            return

        subscription = StripeWebhookService._retrieve(subscription_id)
        SupabaseClient.update_subscription(subscription_id, _status_fields(subscription))
        logger.info(f"Subscription {subscription_id} now {field(subscription, 'status')}")

    @staticmethod
    def handle_subscription_deleted(subscription: Any) -> None:
        subscription_id = field(subscription, "id")
        now = utc_now_iso()
        SupabaseClient.update_subscription(subscription_id, {
            "status": SubscriptionStatus.CANCELED.value,
            "ended_at": from_unix(field(subscription, "ended_at")) or now,
            "canceled_at": from_unix(field(subscription, "canceled_at")) or now,
            "updated_at": now,
        })
        logger.info(f"Subscription {subscription_id} canceled")

    @staticmethod
    def handle_payment_succeeded(invoice: Any) -> None:
        subscription_id = invoice_subscription_id(invoice)
        paid = field(invoice, "paid") is True or field(invoice, "status") == "paid"
        if not subscription_id or not paid:
            logger.info(f"Invoice {field(invoice, 'id')} ignored (subscription={subscription_id}, paid={paid})")
            return

        subscription = StripeWebhookService._retrieve(subscription_id)
        start, end = subscription_periods(subscription)
        SupabaseClient.update_subscription(subscription_id, {
            "status": field(subscription, "status", default=SubscriptionStatus.ACTIVE.value),
            "current_period_start": start,
            "current_period_end": end,
            "latest_invoice_id": field(invoice, "id"),
            "updated_at": utc_now_iso(),
        })
        logger.info(f"Invoice {field(invoice, 'id')} paid for subscription {subscription_id}")

    @staticmethod
    def handle_payment_failed(invoice: Any) -> None:
        subscription_id = invoice_subscription_id(invoice)
        if not subscription_id:
            return
        SupabaseClient.update_subscription(subscription_id, {
            "status": SubscriptionStatus.PAST_DUE.value,
            "latest_invoice_id": field(invoice, "id"),
            "updated_at": utc_now_iso(),
        })
        logger.warning(f"Payment failed for subscription {subscription_id}")

    @staticmethod
    def handlers() -> dict[str, Callable[[Any], None]]:
        return {
            "checkout.session.completed": StripeWebhookService.handle_checkout_completed,
            "customer.subscription.created": StripeWebhookService.handle_subscription_changed,
            "customer.subscription.updated": StripeWebhookService.handle_subscription_changed,
            "customer.subscription.deleted": StripeWebhookService.handle_subscription_deleted,
            "invoice.payment_succeeded": StripeWebhookService.handle_payment_succeeded,
            "invoice.payment_failed": StripeWebhookService.handle_payment_failed,
        }

    @staticmethod
    def handle_event(event: Any) -> bool:
        """
        Dispatch an event to its handler.

        Returns:
            True if the event type is handled, False if ignored
        """
        event_type = field(event, "type")
        handler = StripeWebhookService.handlers().get(event_type)
        if handler is None:
            logger.info(f"Unhandled Stripe event type: {event_type}")
            return False

        logger.info(f"Processing Stripe event {field(event, 'id')} ({event_type})")
        handler(field(event, "data", "object"))
        return True
