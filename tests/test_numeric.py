# =============================================================================
# PRINTSHOP ANALYTICS - NUMERIC NORMALIZER TESTS
# =============================================================================

import pytest
import sys
import os
from decimal import Decimal

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from analytics.numeric import is_number, to_decimal, to_quantity, to_sale_quantity


class TestToDecimal:
    """Tests for money normalization."""

    @pytest.mark.parametrize("value", [None, "", "   ", "abc", float("nan"), float("inf"), "NaN", "-Infinity", True, [], {}])
    def test_not_a_number_is_zero(self, value):
        assert to_decimal(value) == 0

    def test_string_amount(self):
        assert to_decimal("12.5") == Decimal("12.5")

    def test_float_is_exact(self):
        """Floats go through their shortest repr."""
        assert to_decimal(0.1) == Decimal("0.1")
        assert to_decimal(12.5) == Decimal("12.5")

    def test_negative_passes_through(self):
        assert to_decimal(-3) == -3
        assert to_decimal("-3.25") == Decimal("-3.25")

    def test_decimal_input(self):
        assert to_decimal(Decimal("7.10")) == Decimal("7.10")
        assert to_decimal(Decimal("NaN")) == 0

    def test_whitespace_trimmed(self):
        assert to_decimal(" 4.00 ") == 4


class TestQuantities:
    """Tests for count fields."""

    def test_is_number(self):
        assert is_number("0")
        assert is_number(0)
        assert not is_number(None)
        assert not is_number("x")
        assert not is_number("")

    def test_quantity_default_for_missing(self):
        assert to_quantity(None) == 0
        assert to_quantity("", 7) == 7

    def test_quantity_truncates(self):
        assert to_quantity("2.9") == 2
        assert to_quantity(3) == 3

    def test_sale_quantity_defaults_to_one(self):
        assert to_sale_quantity(None) == 1
        assert to_sale_quantity("abc") == 1
        assert to_sale_quantity(0) == 1
        assert to_sale_quantity(-2) == 1
        assert to_sale_quantity("3") == 3


class TestOutOfRange:
    """Magnitudes beyond the float range read as infinite, hence zero."""

    @pytest.mark.parametrize("value", ["1e400", "-1e400", "1e999999999", Decimal("1e999999999"), 10 ** 400])
    def test_huge_is_zero(self, value):
        assert to_decimal(value) == 0
        assert not is_number(value)

    def test_largest_float_kept(self):
        assert to_decimal("1e308") == Decimal("1e308")

    def test_huge_quantity_uses_default(self):
        assert to_quantity("1e999999999") == 0
        assert to_quantity("1e999999999", 4) == 4
        assert to_sale_quantity("1e999999999") == 1
