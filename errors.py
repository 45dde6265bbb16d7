"""Exceptions raised by Spendwatch services."""

from typing import Dict, List


class SpendwatchError(Exception):
    """Base class for all domain errors."""


class ValidationError(SpendwatchError):
    """One or more fields failed validation.

    Attributes:
        errors: Mapping of field name to human-readable messages.
    """

    def __init__(self, errors: Dict[str, List[str]]):
        self.errors = errors
        details = "; ".join(
            f"{field} {', '.join(messages)}" for field, messages in errors.items()
        )
        super().__init__(f"Validation failed: {details}")


class BudgetExceededError(SpendwatchError):
    """A mutation was vetoed because it would push a category over budget.

    Attributes:
        analysis: The ProjectedAnalysis that triggered the veto.
    """

    def __init__(self, analysis):
        self.analysis = analysis
        super().__init__(
            f"Expense would put category at {analysis.projected.percentage}% of budget"
        )


class NotFoundError(SpendwatchError):
    """A referenced entity does not exist."""

    def __init__(self, entity: str, entity_id):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} with ID {entity_id} not found")


class StorageError(SpendwatchError):
    """Unexpected persistence failure. The transaction has been rolled back."""
