"""Derived budget analysis values. Never persisted."""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

STATUS_GOOD = "good"
STATUS_CAUTION = "caution"
STATUS_WARNING = "warning"
STATUS_OVER_BUDGET = "over_budget"


@dataclass(frozen=True)
class BudgetAnalysis:
    """Spending-vs-budget metrics for one category at a point in time.

    Attributes:
        total_expenses: Sum of expense amounts, rounded to cents.
        budget: Monthly budget, rounded to cents.
        percentage: total / budget * 100 to one decimal place (0.0 if no budget).
        status: One of good, caution, warning, over_budget.
        over_budget_amount: max(0, total - budget).
        remaining_budget: max(0, budget - total).
    """

    total_expenses: Decimal
    budget: Decimal
    percentage: float
    status: str
    over_budget_amount: Decimal
    remaining_budget: Decimal

    @property
    def is_over_budget(self) -> bool:
        return self.status == STATUS_OVER_BUDGET


@dataclass(frozen=True)
class ProjectedAnalysis:
    """Budget analysis as if candidate_amount were added to the category."""

    candidate_amount: Decimal
    current: BudgetAnalysis
    projected: BudgetAnalysis
    category_id: Optional[str] = None

    @property
    def would_exceed(self) -> bool:
        return self.projected.percentage > 100.0
