"""Catalog of subscription plans offered to tenants."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

DEFAULT_PERIOD_DAYS = 30


@dataclass(frozen=True)
class SubscriptionPlan:
    id: str
    name: str


SUBSCRIPTION_PLANS: dict[str, SubscriptionPlan] = {
    "starter": SubscriptionPlan(id="starter", name="Starter"),
    "standard": SubscriptionPlan(id="standard", name="Standard"),
    "pro": SubscriptionPlan(id="pro", name="Professional"),
    "business": SubscriptionPlan(id="business", name="Business"),
    "enterprise": SubscriptionPlan(id="enterprise", name="Enterprise"),
}


def get_plan(plan_id: str) -> Optional[SubscriptionPlan]:
    return SUBSCRIPTION_PLANS.get(plan_id)
