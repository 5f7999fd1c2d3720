# =============================================================================
# core/services/subscription_service.py - Subscription Billing
# =============================================================================
# Stripe Checkout / Customer Portal / cancellation for members, plus the
# admin's manual ("comped") monthly subscriptions.
#
# Subscription rows are written by the Stripe webhook (see
# webhook_service.py); this service only reads them, except for
# cancellation and manual grants.
# =============================================================================

import logging
from datetime import timedelta
from typing import Any
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import stripe

from app.auth.models import AuthUser
from app.config import settings
from app.exceptions import (
    BillingError,
    ConfigurationError,
    ConflictError,
    ForbiddenError,
    PlanNotFoundError,
    SubscriptionNotFoundError,
    ValidationError,
)
from core.models.billing import PREMIUM_STATUSES, SubscriptionStatus
from lib.stripe_client import StripeNotConfiguredError, field, get_stripe
from lib.supabase_client import SupabaseClient
from lib.utils import from_unix, is_uuid, utc_now, utc_now_iso

logger = logging.getLogger(__name__)

MANUAL_PREFIX = "manual_"
# Manual grants never lapse on their own
MANUAL_PERIOD = timedelta(days=365 * 100)


def manual_subscription_id(user_id: str) -> str:
    return f"{MANUAL_PREFIX}{user_id}"


def is_manual_subscription(subscription_id: str | None) -> bool:
    return bool(subscription_id) and (
        subscription_id == "manual" or subscription_id.startswith(MANUAL_PREFIX)
    )


def with_query(url: str, **params: str) -> str:
    """Add query parameters to a URL, keeping its existing query and fragment."""
    parts = urlsplit(url)
    query = parse_qsl(parts.query, keep_blank_values=True) + list(params.items())
    return urlunsplit(parts._replace(query=urlencode(query)))


def stripe_api():
    try:
        return get_stripe()
    except StripeNotConfiguredError:
        raise ConfigurationError("STRIPE_SECRET_KEY")


class SubscriptionService:
    """Service for billing operations."""

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    @staticmethod
    def get_details(user: AuthUser, user_id: str | None) -> dict[str, Any] | None:
        """
        Latest subscription (any status) with its plan, for the account page.

        Raises:
            ForbiddenError: If user_id is someone else
        """
        if not user_id:
            raise ValidationError("userId is required")
        if user_id != str(user.id):
            raise ForbiddenError("Cannot view another user's subscription")
        return SupabaseClient.fetch_latest_subscription(user_id, with_plan=True)

    @staticmethod
    def resolve_plan(identifier: str) -> dict[str, Any]:
        """
        Find a plan by UUID, or by plan_type among active plans.

        Raises:
            PlanNotFoundError: If nothing matches
        """
        if is_uuid(identifier):
            plan = SupabaseClient.fetch_plan(identifier)
        else:
            plan = SupabaseClient.fetch_active_plan_by_type(identifier)
        if not plan:
            raise PlanNotFoundError(identifier)
        return plan

    @staticmethod
    def get_or_create_customer_id(user_id: str) -> str:
        """
        Stripe customer for the user.

        Reuses the customer stored on an earlier subscription row, otherwise
        creates one from the auth email. The new ID is persisted by the
        webhook once checkout completes.
        """
        customer_id = SupabaseClient.fetch_customer_id(user_id)
        if customer_id:
            return customer_id

        auth_user = SupabaseClient.get_auth_user(user_id)
        email = getattr(auth_user, "email", None)
        if not email:
            raise ValidationError("User not found or email is missing")

        try:
            customer = stripe_api().Customer.create(email=email, metadata={"userId": user_id})
        except stripe.StripeError as e:
            logger.error(f"Stripe customer creation failed for {user_id}: {e}")
            raise BillingError("Could not create billing customer")

        logger.info(f"Created Stripe customer {customer['id']} for user {user_id}")
        return customer["id"]

    # -------------------------------------------------------------------------
    # Checkout / Portal / Cancel
    # -------------------------------------------------------------------------

    @staticmethod
    def create_checkout_session(
        user: AuthUser,
        plan_identifier: str,
        return_url: str | None = None,
    ) -> dict[str, str]:
        """
        Start a Stripe Checkout session for a plan.

        Returns:
            {"sessionId", "url"}
        """
        user_id = str(user.id)
        plan = SubscriptionService.resolve_plan(plan_identifier)
        if not plan.get("stripe_price_id"):
            raise ConfigurationError(f"stripe_price_id for plan {plan['id']}")

        customer_id = SubscriptionService.get_or_create_customer_id(user_id)

        base = return_url or f"{settings.frontend_base_url}/account?tab=subscription"
        metadata = {"userId": user_id, "planId": plan["id"]}

        try:
            session = stripe_api().checkout.Session.create(
                mode="subscription",
                customer=customer_id,
                line_items=[{"price": plan["stripe_price_id"], "quantity": 1}],
                success_url=with_query(base, checkout="success"),
                cancel_url=with_query(base, checkout="cancelled"),
                client_reference_id=user_id,
                metadata=metadata,
                subscription_data={"metadata": metadata},
            )
        except stripe.StripeError as e:
            logger.error(f"Checkout session failed for {user_id}: {e}")
            raise BillingError("Could not start checkout")

        logger.info(f"Checkout session {session['id']} for user {user_id}, plan {plan['id']}")
        return {"sessionId": session["id"], "url": field(session, "url", default="")}

    @staticmethod
    def create_portal_session(user: AuthUser, user_id: str, return_url: str | None = None) -> dict[str, str]:
        """
        Open the Stripe Customer Portal.

        Raises:
            ForbiddenError: If user_id is someone else
            SubscriptionNotFoundError: If the user was never a Stripe customer
        """
        if user_id != str(user.id):
            raise ForbiddenError("Cannot manage another user's billing")

        customer_id = SupabaseClient.fetch_customer_id(user_id)
        if not customer_id:
            raise SubscriptionNotFoundError()

        try:
            session = stripe_api().billing_portal.Session.create(
                customer=customer_id,
                return_url=return_url or f"{settings.CLIENT_URL.rstrip('/')}/account?tab=subscription",
            )
        except stripe.StripeError as e:
            logger.error(f"Portal session failed for {user_id}: {e}")
            raise BillingError("Could not open billing portal")

        return {"url": session["url"]}

    @staticmethod
    def cancel(user: AuthUser, subscription_id: str) -> dict[str, Any]:
        """
        Cancel at period end.

        The member keeps access until the period ends; the row moves to
        cancel_pending and the webhook later records the final state.
        Manual subscriptions have no Stripe side and end immediately.
        """
        subscription = SupabaseClient.fetch_subscription(subscription_id)
        if not subscription:
            raise SubscriptionNotFoundError(subscription_id)
        if subscription.get("user_id") != str(user.id):
            raise ForbiddenError("Cannot cancel another user's subscription")

        if is_manual_subscription(subscription_id):
            now = utc_now_iso()
            SupabaseClient.update_subscription(subscription_id, {
                "status": SubscriptionStatus.CANCELED.value,
                "canceled_at": now,
                "ended_at": now,
                "updated_at": now,
            })
            return {"success": True, "status": SubscriptionStatus.CANCELED.value, "cancel_at": now}

        try:
            updated = stripe_api().Subscription.modify(subscription_id, cancel_at_period_end=True)
        except stripe.StripeError as e:
            logger.error(f"Stripe cancel failed for {subscription_id}: {e}")
            raise BillingError("Could not cancel subscription", details={"subscription_id": subscription_id})

        cancel_at = from_unix(field(updated, "cancel_at")) or subscription.get("current_period_end")
        SupabaseClient.update_subscription(subscription_id, {
            "status": SubscriptionStatus.CANCEL_PENDING.value,
            "cancel_at_period_end": True,
            "cancel_at": cancel_at,
            "updated_at": utc_now_iso(),
        })
        logger.info(f"Subscription {subscription_id} set to cancel at {cancel_at}")
        return {"success": True, "status": SubscriptionStatus.CANCEL_PENDING.value, "cancel_at": cancel_at}

    # -------------------------------------------------------------------------
    # Manual grants (admin)
    # -------------------------------------------------------------------------

    @staticmethod
    def grant_manual_monthly(user_id: str) -> dict[str, Any]:
        """
        Give a user a non-expiring monthly subscription without Stripe.

        Raises:
            ConflictError: If the user already has premium access
            PlanNotFoundError: If no active monthly plan exists
        """
        if SupabaseClient.fetch_latest_subscription(user_id, statuses=PREMIUM_STATUSES):
            raise ConflictError("User already has an active subscription", details={"user_id": user_id})

        plan = SubscriptionService.resolve_plan("monthly")
        now = utc_now()
        values = {
            "plan_id": plan["id"],
            "status": SubscriptionStatus.ACTIVE.value,
            "current_period_start": now.isoformat(),
            "current_period_end": (now + MANUAL_PERIOD).isoformat(),
            "cancel_at_period_end": False,
            "canceled_at": None,
            "ended_at": None,
            "updated_at": now.isoformat(),
        }

        subscription_id = manual_subscription_id(user_id)
        if SupabaseClient.fetch_subscription(subscription_id):
            row = SupabaseClient.update_subscription(subscription_id, values)
            logger.info(f"Reactivated manual subscription for {user_id}")
        else:
            row = SupabaseClient.insert_row(
                "subscriptions",
                {"id": subscription_id, "user_id": user_id, "created_at": now.isoformat(), **values},
            )
            logger.info(f"Granted manual subscription to {user_id}")
        return row

    @staticmethod
    def revoke_manual_monthly(user_id: str) -> dict[str, Any]:
        """
        End a manual subscription immediately.

        Raises:
            SubscriptionNotFoundError: If the user has no manual subscription
        """
        subscription_id = manual_subscription_id(user_id)
        if not SupabaseClient.fetch_subscription(subscription_id):
            raise SubscriptionNotFoundError(subscription_id)

        now = utc_now_iso()
        row = SupabaseClient.update_subscription(subscription_id, {
            "status": SubscriptionStatus.CANCELED.value,
            "canceled_at": now,
            "ended_at": now,
            "updated_at": now,
        })
        logger.info(f"Revoked manual subscription for {user_id}")
        return row
