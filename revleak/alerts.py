"""
Revenue alert emails.

``compose_alert`` picks the normal or high-fee template from the stats alone;
``send_revenue_alert`` resolves the recipient, computes fresh stats and hands
the message to the mailer.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from textwrap import dedent
from typing import Any, Dict

from .errors import NotFoundError, ValidationError
from .revenue import RevenueStats, get_revenue_stats

LOG = logging.getLogger("revleak.alerts")

HIGH_FEE_THRESHOLD = Decimal("3.5")
NORMAL_SUBJECT = "RevLeak Alert – Revenue Check Complete"
HIGH_FEE_SUBJECT = "RevLeak Alert – High Stripe Fees Detected"


@dataclass(frozen=True)
class AlertMessage:
    subject: str
    text: str
    is_high_fee: bool


def _stats_block(stats: RevenueStats) -> str:
    return (
        f"Gross revenue: ${stats.gross:.2f}\n"
        f"Fees: ${stats.fees:.2f}\n"
        f"Net revenue: ${stats.net:.2f}\n"
        f"Effective fee rate: {stats.effective_fee_rate}%"
    )


def compose_alert(stats: RevenueStats, threshold: Decimal = HIGH_FEE_THRESHOLD) -> AlertMessage:
    is_high_fee = stats.effective_fee_rate > threshold

    if is_high_fee:
        text = dedent(
            """
            RevLeak found higher than expected Stripe fees on your account.

            {stats}

            Your effective fee rate is above {threshold}%. This usually comes from
            foreign exchange (FX) conversion on payments in other currencies,
            international or cross-border card surcharges, or premium card types.
            Review your recent international payments and consider presenting
            prices in your customers' local currency.

            RevLeak monitors these numbers daily and alerts you when unusual changes occur.
            """
        )
        subject = HIGH_FEE_SUBJECT
    else:
        text = dedent(
            """
            RevLeak completed a revenue check on your Stripe account.

            {stats}

            RevLeak monitors these numbers daily and alerts you when unusual changes occur.
            """
        )
        subject = NORMAL_SUBJECT

    body = text.strip().format(stats=_stats_block(stats), threshold=threshold)
    return AlertMessage(subject=subject, text=body, is_high_fee=is_high_fee)


def send_revenue_alert(account_id: str, *, directory: Any, gateway: Any, mailer: Any) -> Dict[str, Any]:
    """Email the current revenue summary for ``account_id`` to its stored address."""
    account_id = (account_id or "").strip()
    if not account_id:
        raise ValidationError("Missing stripeAccountId")

    record = directory.get(account_id)
    if record is None or not record.email:
        raise NotFoundError(f"No notification email found for account {account_id}")

    stats = get_revenue_stats(gateway, account_id)
    message = compose_alert(stats)
    LOG.info(
        "Sending %s alert for %s (rate=%s%%)",
        "high-fee" if message.is_high_fee else "summary",
        account_id,
        stats.effective_fee_rate,
    )
    return mailer.send(recipient_email=record.email, subject=message.subject, text_body=message.text)
