from decimal import Decimal

from money import (
    decimal_places,
    format_money,
    parse_decimal,
    round1,
    round2,
    to_decimal,
    to_float,
    to_storage,
)


class TestToDecimal:
    """Tests for lenient decimal parsing."""

    def test_parses_strings(self):
        assert to_decimal("12.50") == Decimal("12.50")
        assert to_decimal(" 7 ") == Decimal("7")

    def test_strips_thousands_separators(self):
        assert to_decimal("1,234.56") == Decimal("1234.56")

    def test_float_goes_through_str(self):
        """0.1 must stay 0.1, not the binary approximation."""
        assert to_decimal(0.1) == Decimal("0.1")

    def test_unparseable_is_zero(self):
        assert to_decimal("abc") == Decimal("0")
        assert to_decimal(None) == Decimal("0")
        assert to_decimal("NaN") == Decimal("0")
        assert to_decimal(True) == Decimal("0")

    def test_decimal_passes_through(self):
        value = Decimal("3.14")
        assert to_decimal(value) is value


class TestParseDecimal:
    """Tests for strict decimal parsing."""

    def test_returns_none_on_failure(self):
        assert parse_decimal("abc") is None
        assert parse_decimal("") is None
        assert parse_decimal(None) is None
        assert parse_decimal("Infinity") is None

    def test_parses_valid_values(self):
        assert parse_decimal("5.25") == Decimal("5.25")
        assert parse_decimal(3) == Decimal("3")


class TestRounding:
    """Tests for half-up rounding helpers."""

    def test_round2_half_up(self):
        assert round2("2.345") == Decimal("2.35")
        assert round2("2.344") == Decimal("2.34")
        assert round2("-2.345") == Decimal("-2.35")

    def test_round1_half_up(self):
        assert round1("66.65") == Decimal("66.7")
        assert round1("0.05") == Decimal("0.1")

    def test_to_float_rounds_first(self):
        assert to_float("1.005") == 1.01
        assert to_float("33.333", places=1) == 33.3


class TestDecimalPlaces:
    def test_counts_fractional_digits(self):
        assert decimal_places(Decimal("1.50")) == 2
        assert decimal_places(Decimal("123.456")) == 3
        assert decimal_places(Decimal("10")) == 0

    def test_exponent_notation(self):
        assert decimal_places(Decimal("1E+2")) == 0
        assert decimal_places(Decimal("1E-3")) == 3

    def test_huge_exponent(self):
        assert decimal_places(Decimal("1E+200000000")) == 0
        assert decimal_places(Decimal("1E-999999")) == 999999

    def test_non_finite(self):
        assert decimal_places(Decimal("Infinity")) == 0


class TestFormatting:
    def test_format_money(self):
        assert format_money(Decimal("1234.5")) == "$1,234.50"
        assert format_money("0") == "$0.00"
        assert format_money(Decimal("-5")) == "-$5.00"

    def test_to_storage_is_canonical(self):
        assert to_storage(Decimal("5")) == "5.00"
        assert to_storage(Decimal("1E+2")) == "100.00"
        assert to_storage(Decimal("0.015")) == "0.02"
