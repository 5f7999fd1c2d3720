# =============================================================================
# app/routers/subscription.py - Subscription Billing Endpoints
# =============================================================================
# Stripe Checkout, Customer Portal and cancellation for the signed-in member.
# Subscription rows themselves are written by the Stripe webhook.
# =============================================================================

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from app.auth import get_current_user, AuthUser
from core.models.billing import CancelRequest, CheckoutRequest, PortalRequest
from core.services.subscription_service import SubscriptionService

router = APIRouter(prefix="/subscription", tags=["Subscription"])


@router.get("/get-details")
async def get_details(
    user_id: Annotated[str | None, Query(alias="userId", description="Must be the caller")] = None,
    user: AuthUser = Depends(get_current_user),
):
    """Latest subscription with its plan, or {"subscription": null}."""
    subscription = SubscriptionService.get_details(user, user_id)
    return {"subscription": subscription}


@router.post("/create-checkout")
async def create_checkout(
    request: CheckoutRequest,
    user: AuthUser = Depends(get_current_user),
):
    """
    Start Stripe Checkout for a plan.

    planType is a plan UUID or a plan_type such as "monthly".
    Returns {sessionId, url}; the client redirects to url.
    """
    return SubscriptionService.create_checkout_session(user, request.plan_type, request.return_url)


@router.post("/create-portal")
async def create_portal(
    request: PortalRequest,
    user: AuthUser = Depends(get_current_user),
):
    return SubscriptionService.create_portal_session(user, request.user_id, request.return_url)


@router.post("/cancel")
async def cancel_subscription(
    request: CancelRequest,
    user: AuthUser = Depends(get_current_user),
):
    """Cancel at the end of the current billing period."""
    return SubscriptionService.cancel(user, request.subscription_id)
