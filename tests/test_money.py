"""Tests for integer money arithmetic and formatting."""

import pytest

from trip_split import money
from trip_split.exceptions import InvalidScaleError, MoneyOverflowError
from trip_split.money import MAX_AMOUNT, MIN_AMOUNT


class TestArithmetic:
    """Exact integer operations."""

    def test_add_and_subtract(self):
        assert money.add(150_000, 50_000) == 200_000
        assert money.subtract(150_000, 200_000) == -50_000

    def test_add_overflow_raises(self):
        """Overflow is an error, never clamped."""
        with pytest.raises(MoneyOverflowError):
            money.add(MAX_AMOUNT, 1)

    def test_subtract_underflow_raises(self):
        with pytest.raises(MoneyOverflowError):
            money.subtract(MIN_AMOUNT, 1)

    def test_overflow_is_arithmetic_error(self):
        """Callers can catch the builtin ArithmeticError."""
        with pytest.raises(ArithmeticError):
            money.add(MAX_AMOUNT, MAX_AMOUNT)

    def test_total_checks_every_step(self):
        assert money.total([1, 2, 3]) == 6
        assert money.total([]) == 0
        with pytest.raises(MoneyOverflowError):
            money.total([MAX_AMOUNT, 1, -1])

    def test_rejects_floats_and_bools(self):
        with pytest.raises(TypeError):
            money.check_amount(1.5)
        with pytest.raises(TypeError):
            money.check_amount(True)


class TestScaleByRatio:
    """Floor scaling used for percentage splits."""

    def test_floors_result(self):
        assert money.scale_by_ratio(100, 1, 3) == 33
        assert money.scale_by_ratio(100, 2, 3) == 66

    def test_exact_ratio(self):
        assert money.scale_by_ratio(1_000_000, 25, 100) == 250_000

    def test_multiplies_before_dividing(self):
        """No precision is lost to an intermediate division."""
        assert money.scale_by_ratio(7, 100, 300) == 2

    def test_zero_denominator_raises(self):
        with pytest.raises(InvalidScaleError):
            money.scale_by_ratio(100, 1, 0)

    def test_negative_numerator_raises(self):
        with pytest.raises(InvalidScaleError):
            money.scale_by_ratio(100, -1, 3)

    def test_result_overflow_raises(self):
        with pytest.raises(MoneyOverflowError):
            money.scale_by_ratio(MAX_AMOUNT, 3, 2)

    def test_large_intermediate_is_fine(self):
        """The product may exceed the range as long as the result doesn't."""
        assert money.scale_by_ratio(MAX_AMOUNT, 1, 1) == MAX_AMOUNT


class TestSplitEvenly:
    def test_with_remainder(self):
        assert money.split_evenly(100, 3) == (33, 1)

    def test_without_remainder(self):
        assert money.split_evenly(300, 3) == (100, 0)

    def test_zero_parts_raises(self):
        with pytest.raises(InvalidScaleError):
            money.split_evenly(100, 0)


class TestFormatting:
    """Display formatting and input parsing."""

    def test_vietnamese_format(self):
        assert money.format_amount(1_234_567) == "1.234.567 ₫"

    def test_english_format(self):
        assert money.format_amount(1_234_567, "en-US") == "₫1,234,567"

    def test_small_and_zero(self):
        assert money.format_amount(0) == "0 ₫"
        assert money.format_amount(999) == "999 ₫"

    def test_negative(self):
        assert money.format_amount(-50_000) == "-50.000 ₫"

    def test_unknown_locale(self):
        with pytest.raises(ValueError, match="Unsupported locale"):
            money.format_amount(100, "fr-FR")

    def test_parse_grouped_input(self):
        assert money.parse_amount("1.500.000 ₫") == 1_500_000
        assert money.parse_amount("1,500,000") == 1_500_000
        assert money.parse_amount(" 250000 ") == 250_000

    def test_parse_negative(self):
        assert money.parse_amount("-2.000") == -2000

    def test_parse_rejects_garbage(self):
        with pytest.raises(ValueError):
            money.parse_amount("abc")
        with pytest.raises(ValueError):
            money.parse_amount("")
