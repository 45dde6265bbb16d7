"""Budget service: live budget analysis read from storage."""

from decimal import Decimal
from typing import Any, List, Mapping, Optional, Tuple, Union

import budget_analysis
from errors import NotFoundError, ValidationError
from models.budget import BudgetAnalysis, ProjectedAnalysis
from models.category import Category
from models.expense import ExpenseAttrs
from money import to_decimal
from services.categories import CategoryService
from validation import INVALID, MAX_EXPENSE_AMOUNT


class BudgetService:
    """Computes budget analyses from the current state of the database.

    Analyses are never cached; every call re-reads the category budget and
    its expense amounts.
    """

    def __init__(self, db_manager):
        """Initialize the budget service.

        Args:
            db_manager: Database manager instance for database operations.
        """
        self.db_manager = db_manager

    def expense_amounts(self, conn, category_id: str) -> List[Decimal]:
        """Amounts of every expense in a category, read on conn."""
        cursor = conn.execute(
            "SELECT amount FROM expenses WHERE category_id = ?", (str(category_id),)
        )
        return [to_decimal(row[0]) for row in cursor.fetchall()]

    def monthly_budget(self, conn, category_id: str) -> Optional[Decimal]:
        """The category's budget, or None if the category does not exist."""
        row = conn.execute(
            "SELECT monthly_budget FROM categories WHERE id = ?", (str(category_id),)
        ).fetchone()
        return to_decimal(row[0]) if row else None

    def total_for_category(self, category_id: str) -> Decimal:
        """Sum of expense amounts in a category (0 when it has none)."""
        with self.db_manager.connect() as conn:
            return sum(self.expense_amounts(conn, category_id), Decimal("0"))

    def analyze(self, category: Union[Category, str]) -> BudgetAnalysis:
        """Budget analysis for a category.

        Args:
            category: Category or category ID. The budget is re-read from
                      storage either way.

        Raises:
            NotFoundError: If the category does not exist.
        """
        category_id = category.id if isinstance(category, Category) else category
        with self.db_manager.connect() as conn:
            budget = self.monthly_budget(conn, category_id)
            if budget is None:
                raise NotFoundError("Category", category_id)
            return budget_analysis.analyze(budget, self.expense_amounts(conn, category_id))

    def analyze_all(self) -> List[Tuple[Category, BudgetAnalysis]]:
        """Analysis for every category, ordered by category name."""
        categories = CategoryService(self.db_manager).find_all()
        with self.db_manager.connect() as conn:
            return [
                (
                    category,
                    budget_analysis.analyze(
                        category.monthly_budget,
                        self.expense_amounts(conn, category.id),
                    ),
                )
                for category in categories
            ]

    def project_impact(
        self,
        candidate: Union[Decimal, str, int, ExpenseAttrs, Mapping[str, Any]],
        category_id: str,
    ) -> ProjectedAnalysis:
        """Projected analysis as if candidate were added to the category.

        Args:
            candidate: An amount, or expense attrs whose amount is used.
            category_id: Category to project against.

        Raises:
            NotFoundError: If the category does not exist.
            ValidationError: If the amount is not finite or larger than any
                             expense could be.
        """
        with self.db_manager.connect() as conn:
            return self.project_with(conn, category_id, _candidate_amount(candidate))

    def project_with(self, conn, category_id: str, amount: Any) -> ProjectedAnalysis:
        """project_impact on an existing connection, for use inside a transaction."""
        amount = to_decimal(amount)
        if not amount.is_finite():
            raise ValidationError({"amount": [INVALID]})
        if abs(amount) > MAX_EXPENSE_AMOUNT:
            raise ValidationError({"amount": ["cannot exceed $99,999,999.99"]})

        budget = self.monthly_budget(conn, category_id)
        if budget is None:
            raise NotFoundError("Category", category_id)
        return budget_analysis.project(
            budget,
            self.expense_amounts(conn, category_id),
            amount,
            category_id=str(category_id),
        )


def _candidate_amount(candidate) -> Decimal:
    if isinstance(candidate, ExpenseAttrs):
        return to_decimal(candidate.amount)
    if isinstance(candidate, Mapping):
        return to_decimal(candidate.get("amount"))
    return to_decimal(candidate)
