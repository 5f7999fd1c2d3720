# =============================================================================
# lib/stripe_client.py - Stripe SDK Access
# =============================================================================
# Configures the stripe module with the secret key on first use and offers
# small helpers for reading fields off Stripe objects.
#
# Usage:
#   from lib.stripe_client import get_stripe
#   stripe = get_stripe()
#   stripe.Customer.create(email=...)
# =============================================================================

import logging
from typing import Any

import stripe

from app.config import settings

logger = logging.getLogger(__name__)

_configured = False


class StripeNotConfiguredError(Exception):
    """Raised when STRIPE_SECRET_KEY is empty."""


def get_stripe():
    """
    Return the stripe module with api_key set.

    Raises:
        StripeNotConfiguredError: If STRIPE_SECRET_KEY is missing
    """
    global _configured
    if not settings.STRIPE_SECRET_KEY:
        raise StripeNotConfiguredError("STRIPE_SECRET_KEY is not set")
    if not _configured:
        stripe.api_key = settings.STRIPE_SECRET_KEY
        _configured = True
        logger.info("Stripe client configured")
    return stripe


def field(obj: Any, *path: str | int, default: Any = None) -> Any:
    """
    Read a nested field from a Stripe object or plain dict.

    Stripe objects support item access but not every dict method, so this
    walks the path with [] and returns default on any miss.

    Example:
        field(subscription, "items", "data")  # list of subscription items
    """
    current = obj
    for key in path:
        if current is None:
            return default
        try:
            current = current[key]
        except (KeyError, IndexError, TypeError):
            return default
    return default if current is None else current
