"""Field validation for categories and expenses.

Each validator checks every field independently and reports the first failing
rule per field. Rules that need storage (name uniqueness, category existence)
are enforced by the services inside their write transaction.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from models.attrs import blank_to_none, is_set, parse_date_value
from models.category import Category, CategoryAttrs
from models.expense import Expense, ExpenseAttrs
from money import decimal_places, to_decimal

MAX_CATEGORY_NAME = 100
MAX_CATEGORY_DESCRIPTION = 500
MAX_MONTHLY_BUDGET = Decimal("999999.99")

MAX_EXPENSE_DESCRIPTION = 255
MAX_EXPENSE_NOTES = 1000
MAX_EXPENSE_AMOUNT = Decimal("99999999.99")
MAX_YEARS_PAST = 10
MAX_YEARS_FUTURE = 1

BLANK = "can't be blank"
INVALID = "is invalid"
NOT_POSITIVE = "must be greater than 0"
TOO_PRECISE = "cannot have more than 2 decimal places"
NAME_TAKEN = "has already been taken"
CATEGORY_MISSING = "Category must exist"


@dataclass
class ValidationResult:
    """Outcome of validating candidate attributes.

    Attributes:
        value: The normalized entity fields when valid, None otherwise.
        errors: Field name to error messages. Empty when valid.
    """

    value: Optional[Dict[str, Any]] = None
    errors: Dict[str, List[str]] = field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        return not self.errors


def _coerce_money(value: Any) -> Any:
    """Parse amounts given as str, int or float. Unparseable input becomes 0."""
    value = blank_to_none(value)
    if not is_set(value) or value is None or isinstance(value, Decimal):
        return value
    return to_decimal(value)


def _blank(value: Any) -> bool:
    if not is_set(value) or value is None:
        return True
    return isinstance(value, str) and not value.strip()


def _max_length(max_len: int) -> Callable[[Any], Optional[str]]:
    def check(value):
        if len(str(value)) > max_len:
            noun = "character" if max_len == 1 else "characters"
            return f"should be at most {max_len} {noun}"
        return None

    return check


def _money(maximum: Decimal, too_large: str) -> Callable[[Any], Optional[str]]:
    def check(value):
        if not isinstance(value, Decimal) or not value.is_finite():
            return INVALID
        if value <= 0:
            return NOT_POSITIVE
        if decimal_places(value) > 2:
            return TOO_PRECISE
        if value > maximum:
            return too_large
        return None

    return check


def _shift_years(day: date, years: int) -> date:
    try:
        return day.replace(year=day.year + years)
    except ValueError:
        # 29 February in a non-leap target year
        return day.replace(year=day.year + years, day=28)


def _date_window(today: date) -> Callable[[Any], Optional[str]]:
    def check(value):
        if not isinstance(value, date):
            return INVALID
        if value > _shift_years(today, MAX_YEARS_FUTURE):
            return "cannot be more than 1 year in the future"
        if value < _shift_years(today, -MAX_YEARS_PAST):
            return "cannot be more than 10 years in the past"
        return None

    return check


def _run_rules(values: Mapping[str, Any], rules: Mapping[str, list]) -> ValidationResult:
    errors: Dict[str, List[str]] = {}
    for name, checks in rules.items():
        value = values[name]
        if _blank(value):
            errors[name] = [BLANK]
            continue
        for check in checks:
            message = check(value)
            if message:
                errors[name] = [message]
                break

    if errors:
        return ValidationResult(errors=errors)
    return ValidationResult(value=dict(values))


def validate_category(
    attrs: Union[CategoryAttrs, Mapping[str, Any]],
    previous: Optional[Category] = None,
) -> ValidationResult:
    """Validate candidate category attributes.

    Args:
        attrs: CategoryAttrs or a loose mapping.
        previous: The stored category when validating an update.

    Returns:
        ValidationResult whose value holds name, description and monthly_budget.
    """
    if not isinstance(attrs, CategoryAttrs):
        attrs = CategoryAttrs.from_dict(attrs)
    attrs = attrs.merged_with(previous)

    values = {
        "name": attrs.name,
        "description": attrs.description,
        "monthly_budget": _coerce_money(attrs.monthly_budget),
    }
    return _run_rules(
        values,
        {
            "name": [_max_length(MAX_CATEGORY_NAME)],
            "description": [_max_length(MAX_CATEGORY_DESCRIPTION)],
            "monthly_budget": [
                _money(MAX_MONTHLY_BUDGET, "monthly budget cannot exceed $999,999.99")
            ],
        },
    )


def validate_expense(
    attrs: Union[ExpenseAttrs, Mapping[str, Any]],
    previous: Optional[Expense] = None,
    today: Optional[date] = None,
) -> ValidationResult:
    """Validate candidate expense attributes.

    Args:
        attrs: ExpenseAttrs or a loose mapping.
        previous: The stored expense when validating an update.
        today: Reference date for the allowed date window. Defaults to today.

    Returns:
        ValidationResult whose value holds the five expense fields.
    """
    if not isinstance(attrs, ExpenseAttrs):
        attrs = ExpenseAttrs.from_dict(attrs)
    attrs = attrs.merged_with(previous)

    values = {
        "description": attrs.description,
        "amount": _coerce_money(attrs.amount),
        "date": parse_date_value(attrs.date) if is_set(attrs.date) else attrs.date,
        "notes": attrs.notes,
        "category_id": str(attrs.category_id) if attrs.category_id else attrs.category_id,
    }
    return _run_rules(
        values,
        {
            "description": [_max_length(MAX_EXPENSE_DESCRIPTION)],
            "amount": [_money(MAX_EXPENSE_AMOUNT, "cannot exceed $99,999,999.99")],
            "date": [_date_window(today or date.today())],
            "notes": [_max_length(MAX_EXPENSE_NOTES)],
            "category_id": [],
        },
    )


_VALIDATORS = {
    "category": validate_category,
    "expense": validate_expense,
}


def validate(entity_type: str, attrs, previous=None) -> ValidationResult:
    """Validate attrs for the named entity type ("category" or "expense")."""
    if entity_type not in _VALIDATORS:
        raise ValueError(f"Unknown entity type: {entity_type}")
    return _VALIDATORS[entity_type](attrs, previous)
