from decimal import Decimal

import pytest

from budget_analysis import analyze, percentage_of, project, status_for
from models.budget import (
    STATUS_CAUTION,
    STATUS_GOOD,
    STATUS_OVER_BUDGET,
    STATUS_WARNING,
)


class TestAnalyze:
    """Tests for the budget analysis engine."""

    def test_over_budget_example(self):
        result = analyze(Decimal("500.00"), [Decimal("400.00"), Decimal("200.00")])

        assert result.total_expenses == Decimal("600.00")
        assert result.budget == Decimal("500.00")
        assert result.percentage == 120.0
        assert result.status == STATUS_OVER_BUDGET
        assert result.over_budget_amount == Decimal("100.00")
        assert result.remaining_budget == Decimal("0.00")
        assert result.is_over_budget

    def test_small_numbers_stay_exact(self):
        result = analyze(Decimal("0.01"), [Decimal("0.02")])

        assert result.percentage == 200.0
        assert result.over_budget_amount == Decimal("0.01")
        assert result.remaining_budget == Decimal("0.00")

    def test_no_expenses(self):
        result = analyze(Decimal("250.00"), [])

        assert result.total_expenses == Decimal("0.00")
        assert result.percentage == 0.0
        assert result.status == STATUS_GOOD
        assert result.remaining_budget == Decimal("250.00")
        assert result.over_budget_amount == Decimal("0.00")

    def test_exactly_on_budget(self):
        result = analyze(Decimal("100.00"), [Decimal("60.00"), Decimal("40.00")])

        assert result.percentage == 100.0
        assert result.status == STATUS_OVER_BUDGET
        assert result.over_budget_amount == Decimal("0.00")
        assert result.remaining_budget == Decimal("0.00")

    def test_zero_budget_has_zero_percentage(self):
        result = analyze(Decimal("0"), [Decimal("10.00")])

        assert result.percentage == 0.0
        assert result.status == STATUS_GOOD
        assert result.over_budget_amount == Decimal("10.00")

    def test_is_pure(self):
        """Same inputs, same output, and the input list is left alone."""
        amounts = [Decimal("12.34"), Decimal("56.78")]

        first = analyze(Decimal("100.00"), amounts)
        second = analyze(Decimal("100.00"), amounts)

        assert first == second
        assert amounts == [Decimal("12.34"), Decimal("56.78")]

    def test_accepts_strings(self):
        result = analyze("200", ["50", "25.50"])

        assert result.total_expenses == Decimal("75.50")
        assert result.percentage == 37.8

    @pytest.mark.parametrize(
        "spent,status",
        [
            ("50.00", STATUS_GOOD),
            ("74.99", STATUS_GOOD),
            ("75.00", STATUS_CAUTION),
            ("90.00", STATUS_WARNING),
            ("100.00", STATUS_OVER_BUDGET),
            ("120.00", STATUS_OVER_BUDGET),
        ],
    )
    def test_status_tiers(self, spent, status):
        assert analyze(Decimal("100.00"), [Decimal(spent)]).status == status


class TestPercentage:
    def test_rounds_to_one_place(self):
        assert percentage_of(Decimal("1"), Decimal("3")) == Decimal("33.3")
        assert percentage_of(Decimal("2"), Decimal("3")) == Decimal("66.7")

    def test_zero_or_negative_budget(self):
        assert percentage_of(Decimal("5"), Decimal("0")) == Decimal("0.0")
        assert percentage_of(Decimal("5"), Decimal("-1")) == Decimal("0.0")

    def test_status_uses_rounded_percentage(self):
        # 74.96% rounds to 75.0%
        assert status_for(percentage_of(Decimal("74.96"), Decimal("100"))) == STATUS_CAUTION


class TestProject:
    """Tests for projected analyses."""

    def test_projection_adds_candidate(self):
        result = project(Decimal("1000.00"), [Decimal("500.00")], Decimal("600.00"), "cat-1")

        assert result.current.percentage == 50.0
        assert result.projected.percentage == 110.0
        assert result.projected.total_expenses == Decimal("1100.00")
        assert result.candidate_amount == Decimal("600.00")
        assert result.category_id == "cat-1"
        assert result.would_exceed

    def test_exactly_full_is_allowed(self):
        result = project(Decimal("1000.00"), [Decimal("500.00")], Decimal("500.00"))

        assert result.projected.percentage == 100.0
        assert not result.would_exceed

    def test_negative_candidate_lowers_total(self):
        result = project(Decimal("100.00"), [Decimal("90.00")], Decimal("-40.00"))

        assert result.projected.total_expenses == Decimal("50.00")
        assert result.projected.status == STATUS_GOOD
        assert not result.would_exceed
