"""Budget allocation helpers."""
from __future__ import annotations

from typing import Dict

from itinerary_planner.schemas import BudgetBreakdown

# Percentages of the total budget; miscellaneous absorbs rounding remainder.
BUDGET_SHARES: Dict[str, int] = {
    "accommodation": 35,
    "transport": 25,
    "food": 20,
    "activities": 15,
    "miscellaneous": 5,
}


def _share(total: int, percent: int) -> int:
    return (total * percent) // 100


def allocate_budget(total: int) -> BudgetBreakdown:
    """Split ``total`` into the five category buckets.

    Each bucket is floored; whatever the flooring loses lands in
    ``miscellaneous`` so the buckets always add back up to ``total``.
    """
    if total < 0:
        raise ValueError("Budget total cannot be negative")

    buckets = {
        name: _share(total, percent)
        for name, percent in BUDGET_SHARES.items()
        if name != "miscellaneous"
    }
    buckets["miscellaneous"] = total - sum(buckets.values())
    return BudgetBreakdown(**buckets)


def daily_budget(total: int, duration: int) -> int:
    return total // max(1, duration)


def percent_of(amount: int, percent: int) -> int:
    return _share(amount, percent)
