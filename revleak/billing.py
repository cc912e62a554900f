"""
Subscription checkout for the pricing plans.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from .config import PRICE_ENV_NAMES, Settings
from .errors import ConfigurationError, ValidationError
from .pricing import get_plan

LOG = logging.getLogger("revleak.billing")

SUCCESS_PATH = "/monitoring-enabled?session_id={CHECKOUT_SESSION_ID}"
CANCEL_PATH = "/billing"


def resolve_price_id(plan: Optional[str], settings: Settings) -> str:
    """
    Map a plan id to its Stripe price id.

    An unknown plan is the caller's mistake (ValidationError); a known plan
    with no price configured is ours (ConfigurationError).
    """
    if get_plan(plan) is None:
        raise ValidationError("Invalid plan selected")
    price_id = settings.price_id_for(plan)
    if not price_id:
        LOG.error("%s is not set; cannot start checkout for %s", PRICE_ENV_NAMES[plan], plan)
        raise ConfigurationError(f"Missing Price ID for plan: {plan}")
    return price_id


def create_checkout_session(plan: Optional[str], *, settings: Settings, gateway: Any) -> str:
    """Create a subscription checkout session and return its hosted URL."""
    price_id = resolve_price_id(plan, settings)
    app_url = settings.app_url
    url = gateway.create_subscription_checkout(
        price_id,
        success_url=f"{app_url}{SUCCESS_PATH}",
        cancel_url=f"{app_url}{CANCEL_PATH}",
    )
    LOG.info("Created checkout session for plan %s", plan)
    return url
