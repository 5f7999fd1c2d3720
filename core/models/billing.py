# =============================================================================
# core/models/billing.py - Subscription & Billing Schemas
# =============================================================================

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class SubscriptionStatus(str, Enum):
    """
    Subscription states.

    Most mirror Stripe's own statuses. cancel_pending is ours: the member
    asked to cancel and keeps access until the period ends.
    """
    ACTIVE = "active"
    TRIALING = "trialing"
    PAST_DUE = "past_due"
    CANCELED = "canceled"
    CANCEL_PENDING = "cancel_pending"
    INCOMPLETE = "incomplete"
    INCOMPLETE_EXPIRED = "incomplete_expired"
    UNPAID = "unpaid"


PREMIUM_STATUSES = (SubscriptionStatus.ACTIVE.value, SubscriptionStatus.TRIALING.value)


class SubscriptionSummary(BaseModel):
    """Compact view of the member's current premium subscription."""

    id: str
    status: str
    plan_name: str | None = None
    current_period_end: int | None = Field(
        default=None,
        description="Period end as Unix epoch seconds"
    )
    cancel_at_period_end: bool = False


class CheckoutRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # Plan UUID or plan_type such as "monthly" / "annual"
    plan_type: str = Field(..., min_length=1, alias="planType")
    return_url: str | None = Field(default=None, alias="returnUrl")


class PortalRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(..., alias="userId")
    return_url: str | None = Field(default=None, alias="returnUrl")


class CancelRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    subscription_id: str = Field(..., min_length=1, alias="subscriptionId")
