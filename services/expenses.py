"""Expense service: validated, budget-checked, transactional mutations.

Every create and update runs validate -> (budget check) -> persist inside one
write transaction, and only publishes a change event after that transaction
has committed. A failure at any step rolls the whole transaction back.
"""

import uuid
from dataclasses import replace
from datetime import date
from decimal import Decimal
from typing import Any, List, Mapping, Optional, Union

from db.manager import parse_timestamp, translate_errors, utc_now
from errors import BudgetExceededError, NotFoundError, ValidationError
from events import (
    EXPENSE_CREATED,
    EXPENSE_DELETED,
    EXPENSE_UPDATED,
    EXPENSE_UPDATES_TOPIC,
    Event,
)
from logger import get_logger
from models.expense import Expense, ExpenseAttrs
from money import round2, to_decimal, to_storage
from validation import CATEGORY_MISSING, validate_expense

logger = get_logger()

_EXPENSE_SELECT_FIELDS = (
    "id, description, amount, date, notes, category_id, inserted_at, updated_at"
)

_INTEGRITY_FIELDS = {"FOREIGN KEY": ("category_id", CATEGORY_MISSING)}


class ExpenseService:
    """Service for managing expenses."""

    def __init__(self, db_manager, budgets, events=None):
        """Initialize the expense service.

        Args:
            db_manager: Database manager instance for database operations.
            budgets: BudgetService used for the pre-commit budget check.
            events: Optional EventBus notified after each committed change.
        """
        self.db_manager = db_manager
        self.budgets = budgets
        self.events = events

    def find_all(self) -> List[Expense]:
        """Get all expenses, newest first."""
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"""
                SELECT {_EXPENSE_SELECT_FIELDS}
                FROM expenses
                ORDER BY date DESC, inserted_at DESC
                """
            )
            return [self._row_to_expense(row) for row in cursor.fetchall()]

    def find_by_category(self, category_id: str) -> List[Expense]:
        """Get all expenses in a category, newest first."""
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"""
                SELECT {_EXPENSE_SELECT_FIELDS}
                FROM expenses
                WHERE category_id = ?
                ORDER BY date DESC, inserted_at DESC
                """,
                (str(category_id),),
            )
            return [self._row_to_expense(row) for row in cursor.fetchall()]

    def find_by_notes(self, notes: str) -> Optional[Expense]:
        """Get the oldest expense whose notes are exactly notes, if any."""
        with self.db_manager.connect() as conn:
            row = conn.execute(
                f"""
                SELECT {_EXPENSE_SELECT_FIELDS}
                FROM expenses
                WHERE notes = ?
                ORDER BY inserted_at
                LIMIT 1
                """,
                (notes,),
            ).fetchone()
            return self._row_to_expense(row) if row else None

    def find(self, expense_id: str) -> Optional[Expense]:
        """Get a single expense by ID.

        Returns:
            Expense object if found, None otherwise.
        """
        with self.db_manager.connect() as conn:
            return self._find_with(conn, expense_id)

    def get(self, expense_id: str) -> Expense:
        """Like find, but raises NotFoundError when the expense is missing."""
        expense = self.find(expense_id)
        if expense is None:
            raise NotFoundError("Expense", expense_id)
        return expense

    def create(
        self,
        attrs: Union[ExpenseAttrs, Mapping[str, Any]],
        validate_budget: bool = False,
    ) -> Expense:
        """Validate and create an expense.

        Args:
            attrs: Candidate attributes.
            validate_budget: Reject the expense if it would push its category
                             over 100% of budget.

        Returns:
            The persisted Expense.

        Raises:
            ValidationError: On invalid fields or a missing category.
            BudgetExceededError: If validate_budget is set and the expense
                                 would exceed the budget. Nothing is saved.
            StorageError: If persistence fails for any other reason.
        """
        result = validate_expense(attrs)
        if not result.is_valid:
            raise ValidationError(result.errors)

        now = utc_now()
        expense = Expense(
            id=str(uuid.uuid4()),
            description=result.value["description"],
            amount=round2(result.value["amount"]),
            date=result.value["date"],
            notes=result.value["notes"],
            category_id=result.value["category_id"],
            inserted_at=now,
            updated_at=now,
        )

        with translate_errors(_INTEGRITY_FIELDS):
            with self.db_manager.transaction() as conn:
                self._require_category(conn, expense.category_id)

                if validate_budget:
                    self._check_budget(conn, expense.category_id, expense.amount)

                conn.execute(
                    f"""
                    INSERT INTO expenses ({_EXPENSE_SELECT_FIELDS})
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        expense.id,
                        expense.description,
                        to_storage(expense.amount),
                        expense.date.isoformat(),
                        expense.notes,
                        expense.category_id,
                        now.isoformat(),
                        now.isoformat(),
                    ),
                )

        logger.info(
            f"Created expense {expense.id} ({expense.amount}) in category {expense.category_id}"
        )
        self._publish(EXPENSE_CREATED, expense)
        return expense

    def update(
        self,
        expense: Expense,
        attrs: Union[ExpenseAttrs, Mapping[str, Any]],
        validate_budget: bool = False,
    ) -> Expense:
        """Validate and apply changes to an expense.

        With validate_budget, only a change of amount is checked, and only the
        net change counts: the stored amount is already part of the category
        total. If the expense also moves to another category, the full new
        amount is checked against that category instead.

        Args:
            expense: The expense being edited.
            attrs: Changed fields; anything not provided keeps its value.
            validate_budget: Veto amount increases that would exceed budget.

        Returns:
            The updated Expense.

        Raises:
            ValidationError: On invalid fields or a missing category.
            BudgetExceededError: If the change would exceed the budget. The
                                 stored expense is left unchanged.
            NotFoundError: If the expense was deleted in the meantime.
            StorageError: If persistence fails for any other reason.
        """
        result = validate_expense(attrs, previous=expense)
        if not result.is_valid:
            raise ValidationError(result.errors)

        updated = replace(
            expense,
            description=result.value["description"],
            amount=round2(result.value["amount"]),
            date=result.value["date"],
            notes=result.value["notes"],
            category_id=result.value["category_id"],
            updated_at=utc_now(),
        )

        with translate_errors(_INTEGRITY_FIELDS):
            with self.db_manager.transaction() as conn:
                stored = self._find_with(conn, expense.id)
                if stored is None:
                    raise NotFoundError("Expense", expense.id)

                if updated.category_id != stored.category_id:
                    self._require_category(conn, updated.category_id)

                if validate_budget and updated.amount != stored.amount:
                    if updated.category_id == stored.category_id:
                        candidate = updated.amount - stored.amount
                    else:
                        candidate = updated.amount
                    self._check_budget(conn, updated.category_id, candidate)

                conn.execute(
                    """
                    UPDATE expenses
                    SET description = ?, amount = ?, date = ?, notes = ?,
                        category_id = ?, updated_at = ?
                    WHERE id = ?
                    """,
                    (
                        updated.description,
                        to_storage(updated.amount),
                        updated.date.isoformat(),
                        updated.notes,
                        updated.category_id,
                        updated.updated_at.isoformat(),
                        updated.id,
                    ),
                )
                previous_category_id = stored.category_id

        logger.info(f"Updated expense {updated.id} ({updated.amount})")
        self._publish(
            EXPENSE_UPDATED,
            updated,
            previous_category_id=(
                previous_category_id
                if previous_category_id != updated.category_id
                else None
            ),
        )
        return updated

    def delete(self, expense: Expense) -> bool:
        """Delete an expense.

        Returns:
            True once the expense is deleted.

        Raises:
            NotFoundError: If the expense does not exist.
            StorageError: If the delete fails.
        """
        with translate_errors():
            with self.db_manager.transaction() as conn:
                cursor = conn.execute("DELETE FROM expenses WHERE id = ?", (expense.id,))
                if cursor.rowcount == 0:
                    raise NotFoundError("Expense", expense.id)

        logger.info(f"Deleted expense {expense.id}")
        self._publish(EXPENSE_DELETED, expense)
        return True

    def _require_category(self, conn, category_id: str) -> None:
        if self.budgets.monthly_budget(conn, category_id) is None:
            raise ValidationError({"category_id": [CATEGORY_MISSING]})

    def _check_budget(self, conn, category_id: str, candidate: Decimal) -> None:
        analysis = self.budgets.project_with(conn, category_id, candidate)
        if analysis.would_exceed:
            logger.info(
                f"Budget check rejected {candidate} for category {category_id}: "
                f"projected {analysis.projected.percentage}%"
            )
            raise BudgetExceededError(analysis)

    def _publish(
        self, name: str, expense: Expense, previous_category_id: Optional[str] = None
    ) -> None:
        if self.events is not None:
            self.events.publish(
                EXPENSE_UPDATES_TOPIC,
                Event(
                    name=name,
                    payload=expense,
                    category_id=expense.category_id,
                    previous_category_id=previous_category_id,
                ),
            )

    def _find_with(self, conn, expense_id: str) -> Optional[Expense]:
        cursor = conn.execute(
            f"SELECT {_EXPENSE_SELECT_FIELDS} FROM expenses WHERE id = ?",
            (str(expense_id),),
        )
        row = cursor.fetchone()
        return self._row_to_expense(row) if row else None

    def _row_to_expense(self, row: tuple) -> Expense:
        """Convert a database row to an Expense object."""
        return Expense(
            id=row[0],
            description=row[1],
            amount=to_decimal(row[2]),
            date=date.fromisoformat(row[3]),
            notes=row[4],
            category_id=row[5],
            inserted_at=parse_timestamp(row[6]),
            updated_at=parse_timestamp(row[7]),
        )
