"""Subscription billing cycles and monthly cost normalization."""

from enum import Enum


class BillingCycle(str, Enum):
    """Known subscription billing cycles."""

    ONE_MONTH = "1 month"
    THREE_MONTH = "3 month"
    SIX_MONTH = "6 month"
    TWELVE_MONTH = "12 month"

    @property
    def months(self) -> int:
        return int(self.value.split()[0])


_MONTHS_BY_LABEL: dict[str, int] = {cycle.value: cycle.months for cycle in BillingCycle}


def monthly_cost(billing_cycle: str | BillingCycle | None, cost_per_cycle: float) -> float:
    """Normalize a per-cycle cost to a monthly figure.

    Unknown or empty cycles, and non-positive costs, give 0.0 so that a
    response can always carry the field.
    """
    if isinstance(billing_cycle, BillingCycle):
        billing_cycle = billing_cycle.value
    if not billing_cycle or cost_per_cycle <= 0:
        return 0.0
    months = _MONTHS_BY_LABEL.get(billing_cycle.strip())
    if months is None:
        return 0.0
    return cost_per_cycle / months
