from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Dict, List, Optional, Tuple


@dataclass(frozen=True)
class PricingPlan:
    id: str
    name: str
    price: str
    features: Tuple[str, ...]
    recommended: bool = False

    def to_dict(self) -> Dict[str, object]:
        data = asdict(self)
        data["features"] = list(self.features)
        return data


PRICING_PLANS: Tuple[PricingPlan, ...] = (
    PricingPlan(
        id="starter",
        name="Starter",
        price="$49/month",
        features=(
            "Weekly revenue monitoring",
            "Email alerts when Stripe fees or net revenue change",
            "Revenue snapshot & explanations",
        ),
    ),
    PricingPlan(
        id="growth",
        name="Growth",
        price="$99/month",
        features=(
            "Daily revenue monitoring",
            "More sensitive alerts for fee and FX spikes",
            "Clear explanations and suggested actions",
        ),
        recommended=True,
    ),
    PricingPlan(
        id="pro",
        name="Pro",
        price="$149/month",
        features=(
            "Advanced monitoring for global Stripe accounts",
            "Higher alert frequency",
            "Priority access to new leak detectors",
        ),
    ),
)


def get_plan(plan_id: Optional[str]) -> Optional[PricingPlan]:
    return next((plan for plan in PRICING_PLANS if plan.id == plan_id), None)


def plans_payload() -> List[Dict[str, object]]:
    return [plan.to_dict() for plan in PRICING_PLANS]
