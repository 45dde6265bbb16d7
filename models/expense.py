"""Expense model for dated spending recorded against a category."""

from dataclasses import dataclass, fields, replace
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Mapping, Optional

from models.attrs import UNSET, blank_to_none, is_set, parse_date_value
from money import to_decimal


@dataclass
class Expense:
    id: str  # UUID
    description: str
    amount: Decimal  # always positive
    date: date
    notes: str
    category_id: str
    inserted_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class ExpenseAttrs:
    """Candidate attributes for creating or updating an expense."""

    description: Any = UNSET
    amount: Any = UNSET
    date: Any = UNSET
    notes: Any = UNSET
    category_id: Any = UNSET

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ExpenseAttrs":
        """Build attrs from a loose mapping.

        Amounts that fail to parse become 0 (and are rejected as not positive).
        Dates that fail to parse are kept as given and rejected as invalid.
        """
        attrs = cls()
        for key in ("description", "notes"):
            if key in data:
                setattr(attrs, key, blank_to_none(data[key]))
        if "amount" in data:
            amount = blank_to_none(data["amount"])
            attrs.amount = None if amount is None else to_decimal(amount)
        if "date" in data:
            attrs.date = parse_date_value(data["date"])
        if "category_id" in data:
            category_id = blank_to_none(data["category_id"])
            attrs.category_id = None if category_id is None else str(category_id)
        return attrs

    def merged_with(self, previous: Optional[Expense]) -> "ExpenseAttrs":
        """Fill fields that were not provided from the stored expense."""
        if previous is None:
            return self
        merged = {
            f.name: getattr(previous, f.name)
            for f in fields(self)
            if not is_set(getattr(self, f.name))
        }
        return replace(self, **merged)
