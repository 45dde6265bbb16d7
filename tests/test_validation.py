from datetime import date, timedelta
from decimal import Decimal

import pytest

from models.category import Category, CategoryAttrs
from models.expense import Expense, ExpenseAttrs
from validation import (
    BLANK,
    INVALID,
    NOT_POSITIVE,
    TOO_PRECISE,
    validate,
    validate_category,
    validate_expense,
)

TODAY = date(2024, 6, 15)


def _expense_attrs(**overrides):
    attrs = {
        "description": "Coffee",
        "amount": "4.50",
        "date": TODAY.isoformat(),
        "notes": "Morning",
        "category_id": "cat-1",
    }
    attrs.update(overrides)
    return attrs


class TestValidateCategory:
    """Tests for category validation."""

    def test_valid_category(self):
        result = validate_category(
            {"name": "Food", "description": "Groceries", "monthly_budget": "500"}
        )

        assert result.is_valid
        assert result.value == {
            "name": "Food",
            "description": "Groceries",
            "monthly_budget": Decimal("500"),
        }

    def test_all_fields_required(self):
        result = validate_category({"name": "  ", "monthly_budget": ""})

        assert not result.is_valid
        assert result.errors == {
            "name": [BLANK],
            "description": [BLANK],
            "monthly_budget": [BLANK],
        }

    def test_budget_must_be_positive(self):
        result = validate_category(
            {"name": "Food", "description": "x", "monthly_budget": "0"}
        )
        assert result.errors == {"monthly_budget": [NOT_POSITIVE]}

    def test_unparseable_budget_is_not_positive(self):
        result = validate_category(
            {"name": "Food", "description": "x", "monthly_budget": "lots"}
        )
        assert result.errors == {"monthly_budget": [NOT_POSITIVE]}

    def test_budget_precision(self):
        result = validate_category(
            {"name": "Food", "description": "x", "monthly_budget": "10.005"}
        )
        assert result.errors == {"monthly_budget": [TOO_PRECISE]}

    def test_budget_maximum(self):
        result = validate_category(
            {"name": "Food", "description": "x", "monthly_budget": "1000000.00"}
        )
        assert result.errors == {
            "monthly_budget": ["monthly budget cannot exceed $999,999.99"]
        }

        result = validate_category(
            {"name": "Food", "description": "x", "monthly_budget": "999999.99"}
        )
        assert result.is_valid

    def test_name_length(self):
        result = validate_category(
            {"name": "x" * 101, "description": "x", "monthly_budget": "1"}
        )
        assert result.errors == {"name": ["should be at most 100 characters"]}

    def test_update_keeps_unset_fields(self):
        previous = Category(
            id="cat-1", name="Food", description="Groceries", monthly_budget=Decimal("100.00")
        )

        result = validate_category(CategoryAttrs(monthly_budget=Decimal("150")), previous)

        assert result.is_valid
        assert result.value["name"] == "Food"
        assert result.value["monthly_budget"] == Decimal("150")

    def test_update_with_blank_field_fails(self):
        previous = Category(
            id="cat-1", name="Food", description="Groceries", monthly_budget=Decimal("100.00")
        )

        result = validate_category({"description": ""}, previous)

        assert result.errors == {"description": [BLANK]}


class TestValidateExpense:
    """Tests for expense validation."""

    def test_valid_expense(self):
        result = validate_expense(_expense_attrs(), today=TODAY)

        assert result.is_valid
        assert result.value["amount"] == Decimal("4.50")
        assert result.value["date"] == TODAY
        assert result.value["category_id"] == "cat-1"

    def test_rejects_three_decimal_places(self):
        result = validate_expense(_expense_attrs(amount="123.456"), today=TODAY)
        assert result.errors == {"amount": [TOO_PRECISE]}

    def test_rejects_amount_over_maximum(self):
        result = validate_expense(_expense_attrs(amount="100000000.00"), today=TODAY)
        assert result.errors == {"amount": ["cannot exceed $99,999,999.99"]}

    def test_rejects_amount_with_huge_exponent(self):
        result = validate_expense(_expense_attrs(amount="1E+200000000"), today=TODAY)
        assert result.errors == {"amount": ["cannot exceed $99,999,999.99"]}

    @pytest.mark.parametrize("amount", ["0", "-5.00", "abc"])
    def test_rejects_non_positive_amounts(self, amount):
        result = validate_expense(_expense_attrs(amount=amount), today=TODAY)
        assert result.errors == {"amount": [NOT_POSITIVE]}

    def test_rejects_far_future_date(self):
        future = TODAY + timedelta(days=400)
        result = validate_expense(_expense_attrs(date=future.isoformat()), today=TODAY)
        assert result.errors == {"date": ["cannot be more than 1 year in the future"]}

    def test_rejects_distant_past_date(self):
        past = TODAY - timedelta(days=4000)
        result = validate_expense(_expense_attrs(date=past), today=TODAY)
        assert result.errors == {"date": ["cannot be more than 10 years in the past"]}

    def test_window_edges_are_allowed(self):
        assert validate_expense(
            _expense_attrs(date=date(2025, 6, 15)), today=TODAY
        ).is_valid
        assert validate_expense(
            _expense_attrs(date=date(2014, 6, 15)), today=TODAY
        ).is_valid

    def test_leap_day_window(self):
        result = validate_expense(
            _expense_attrs(date=date(2025, 2, 28)), today=date(2024, 2, 29)
        )
        assert result.is_valid

    def test_rejects_bad_date_string(self):
        result = validate_expense(_expense_attrs(date="last tuesday"), today=TODAY)
        assert result.errors == {"date": [INVALID]}

    def test_rejects_long_description(self):
        result = validate_expense(_expense_attrs(description="x" * 256), today=TODAY)
        assert result.errors == {"description": ["should be at most 255 characters"]}

    def test_rejects_long_notes(self):
        result = validate_expense(_expense_attrs(notes="x" * 1001), today=TODAY)
        assert result.errors == {"notes": ["should be at most 1000 characters"]}

    def test_reports_every_failing_field(self):
        result = validate_expense({"amount": "1.001"}, today=TODAY)

        assert set(result.errors) == {
            "description",
            "amount",
            "date",
            "notes",
            "category_id",
        }
        assert result.errors["amount"] == [TOO_PRECISE]
        assert result.value is None

    def test_update_merges_previous(self):
        previous = Expense(
            id="exp-1",
            description="Coffee",
            amount=Decimal("4.50"),
            date=TODAY,
            notes="Morning",
            category_id="cat-1",
        )

        result = validate_expense(ExpenseAttrs(amount="5.25"), previous, today=TODAY)

        assert result.is_valid
        assert result.value["amount"] == Decimal("5.25")
        assert result.value["description"] == "Coffee"


class TestValidateDispatch:
    def test_dispatches_by_entity_type(self):
        result = validate(
            "category", {"name": "Food", "description": "x", "monthly_budget": "5"}
        )
        assert result.is_valid

    def test_unknown_entity_type(self):
        with pytest.raises(ValueError):
            validate("invoice", {})
