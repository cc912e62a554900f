"""
Revenue statistics over a window of Stripe balance transactions.

Sums are kept as integers in minor units (cents) and only converted to
``Decimal`` major units at the end. Gross, fee and net are three separate
accumulators: Stripe's reported ``net`` is trusted as given and never
recomputed from ``gross - fees``, since adjustments can make them differ.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Iterable, Mapping, Optional

LOG = logging.getLogger("revleak.revenue")

MINOR_UNITS_PER_MAJOR = 100
TWO_PLACES = Decimal("0.01")
ZERO = Decimal("0.00")


@dataclass(frozen=True)
class TransactionRecord:
    amount: int
    fee: int
    net: int

    @classmethod
    def from_stripe(cls, txn: Any) -> "TransactionRecord":
        """Build a record from a Stripe BalanceTransaction or a plain mapping."""
        if isinstance(txn, Mapping):
            return cls(int(txn["amount"]), int(txn["fee"]), int(txn["net"]))
        return cls(int(txn.amount), int(txn.fee), int(txn.net))


@dataclass(frozen=True)
class RevenueStats:
    gross: Decimal
    fees: Decimal
    net: Decimal
    effective_fee_rate: Decimal

    def to_dict(self) -> Dict[str, float]:
        return {
            "gross": float(self.gross),
            "fees": float(self.fees),
            "net": float(self.net),
            "effectiveFeeRate": float(self.effective_fee_rate),
        }


def _to_major(minor: int) -> Decimal:
    return (Decimal(minor) / MINOR_UNITS_PER_MAJOR).quantize(TWO_PLACES)


def effective_fee_rate(fee_sum: int, gross_sum: int) -> Decimal:
    """Fees as a percentage of gross, 2 places; zero unless gross is positive."""
    if gross_sum <= 0:
        return ZERO
    rate = Decimal(fee_sum) / Decimal(gross_sum) * 100
    return rate.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def aggregate_transactions(transactions: Iterable[Any]) -> RevenueStats:
    gross_sum = 0
    fee_sum = 0
    net_sum = 0
    count = 0

    for txn in transactions:
        record = txn if isinstance(txn, TransactionRecord) else TransactionRecord.from_stripe(txn)
        gross_sum += record.amount
        fee_sum += record.fee
        net_sum += record.net
        count += 1

    LOG.debug("Aggregated %d transactions (gross=%d fee=%d net=%d cents)", count, gross_sum, fee_sum, net_sum)
    return RevenueStats(
        gross=_to_major(gross_sum),
        fees=_to_major(fee_sum),
        net=_to_major(net_sum),
        effective_fee_rate=effective_fee_rate(fee_sum, gross_sum),
    )


def get_revenue_stats(gateway: Any, account_id: Optional[str] = None) -> RevenueStats:
    """Fetch the latest balance transactions and summarize them.

    Failures from the gateway are not caught here.
    """
    transactions = gateway.list_balance_transactions(account_id)
    return aggregate_transactions(transactions)
