"""Category model for budgeted spending buckets."""

from dataclasses import dataclass, fields, replace
from datetime import datetime
from decimal import Decimal
from typing import Any, Mapping, Optional

from models.attrs import UNSET, blank_to_none, is_set
from money import to_decimal


@dataclass
class Category:
    """A named spending bucket with a monthly budget ceiling.

    Attributes:
        id: UUID string (auto-generated).
        name: Category name (unique, case-sensitive).
        description: What belongs in this category.
        monthly_budget: Budget ceiling, at most 2 decimal places.
        inserted_at: Creation timestamp (UTC).
        updated_at: Last modification timestamp (UTC).
    """

    id: str
    name: str
    description: str
    monthly_budget: Decimal
    inserted_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class CategoryAttrs:
    """Candidate attributes for creating or updating a category."""

    name: Any = UNSET
    description: Any = UNSET
    monthly_budget: Any = UNSET

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CategoryAttrs":
        """Build attrs from a loose mapping (form params, JSON, CLI input).

        Unknown keys are ignored. Budgets that fail to parse become 0.
        """
        attrs = cls()
        if "name" in data:
            attrs.name = blank_to_none(data["name"])
        if "description" in data:
            attrs.description = blank_to_none(data["description"])
        if "monthly_budget" in data:
            budget = blank_to_none(data["monthly_budget"])
            attrs.monthly_budget = None if budget is None else to_decimal(budget)
        return attrs

    def merged_with(self, previous: Optional[Category]) -> "CategoryAttrs":
        """Fill fields that were not provided from the stored category."""
        if previous is None:
            return self
        merged = {
            f.name: getattr(previous, f.name)
            for f in fields(self)
            if not is_set(getattr(self, f.name))
        }
        return replace(self, **merged)
