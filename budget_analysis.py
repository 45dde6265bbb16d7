"""Budget analysis engine.

Pure functions that turn a monthly budget and a set of expense amounts into
utilization metrics. All arithmetic stays in Decimal; the percentage is the
only value converted to float, after rounding to one decimal place.
"""

from decimal import Decimal
from typing import Any, Iterable, Optional

from models.budget import (
    STATUS_CAUTION,
    STATUS_GOOD,
    STATUS_OVER_BUDGET,
    STATUS_WARNING,
    BudgetAnalysis,
    ProjectedAnalysis,
)
from money import ZERO, round1, round2, to_decimal

# Lower bounds (inclusive) of each status tier, checked in order
STATUS_THRESHOLDS = (
    (Decimal("100.0"), STATUS_OVER_BUDGET),
    (Decimal("90.0"), STATUS_WARNING),
    (Decimal("75.0"), STATUS_CAUTION),
)


def percentage_of(total: Decimal, budget: Decimal) -> Decimal:
    """total / budget * 100 rounded to one place, or 0.0 without a budget."""
    if budget <= 0:
        return Decimal("0.0")
    return round1(total / budget * 100)


def status_for(percentage: Decimal) -> str:
    """Map a utilization percentage to its status tier."""
    for threshold, status in STATUS_THRESHOLDS:
        if percentage >= threshold:
            return status
    return STATUS_GOOD


def analyze(monthly_budget: Any, amounts: Iterable[Any]) -> BudgetAnalysis:
    """Compute the budget analysis for a category.

    Args:
        monthly_budget: The category's monthly budget.
        amounts: Amounts of the expenses counted against the budget.

    Returns:
        BudgetAnalysis with cents-rounded money fields.
    """
    total = round2(sum((to_decimal(a) for a in amounts), Decimal("0")))
    budget = round2(monthly_budget)
    percentage = percentage_of(total, budget)

    over_budget_amount = round2(total - budget) if total > budget else ZERO
    remaining_budget = round2(budget - total) if budget > total else ZERO

    return BudgetAnalysis(
        total_expenses=total,
        budget=budget,
        percentage=float(percentage),
        status=status_for(percentage),
        over_budget_amount=over_budget_amount,
        remaining_budget=remaining_budget,
    )


def project(
    monthly_budget: Any,
    amounts: Iterable[Any],
    candidate_amount: Any,
    category_id: Optional[str] = None,
) -> ProjectedAnalysis:
    """Analyze the category as if candidate_amount were added to it.

    The candidate may be negative (an update that lowers an expense).
    Nothing is persisted.
    """
    amounts = list(amounts)
    candidate = to_decimal(candidate_amount)
    return ProjectedAnalysis(
        candidate_amount=candidate,
        current=analyze(monthly_budget, amounts),
        projected=analyze(monthly_budget, amounts + [candidate]),
        category_id=category_id,
    )
