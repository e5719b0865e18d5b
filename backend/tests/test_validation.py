"""Strict JSON coercion helpers."""

from decimal import Decimal

import pytest

from storepos.validation import ValidationError, coerce_int, coerce_money


class TestCoerceMoney:
    def test_float_keeps_cents(self):
        assert coerce_money(19.99, "price") == Decimal("19.99")

    def test_integer_and_string_normalized_to_cents(self):
        assert coerce_money(20, "price") == Decimal("20.00")
        assert coerce_money(" 4.5 ", "price") == Decimal("4.50")
        assert coerce_money("10.000", "price") == Decimal("10.00")

    @pytest.mark.parametrize("value", [10.005, "10.005", "0.001"])
    def test_sub_cent_input_rejected(self, value):
        with pytest.raises(ValidationError, match="at most 2 decimal places"):
            coerce_money(value, "unit_price")

    @pytest.mark.parametrize("value", ["100000000.00", "1e40"])
    def test_above_column_limit_rejected(self, value):
        with pytest.raises(ValidationError, match="cannot exceed"):
            coerce_money(value, "price")

    @pytest.mark.parametrize("value", [None, True, "abc", "NaN", [1]])
    def test_non_numbers_rejected(self, value):
        with pytest.raises(ValidationError):
            coerce_money(value, "price")


class TestCoerceInt:
    def test_plain_and_string_integers(self):
        assert coerce_int(7, "quantity") == 7
        assert coerce_int(" 12 ", "quantity") == 12

    @pytest.mark.parametrize("value", [2 ** 31, -(2 ** 31) - 1, "9223372036854775808"])
    def test_outside_integer_column_rejected(self, value):
        with pytest.raises(ValidationError, match="must be between"):
            coerce_int(value, "quantity")

    def test_integer_column_edges_accepted(self):
        assert coerce_int(2 ** 31 - 1, "quantity") == 2_147_483_647
        assert coerce_int(-(2 ** 31), "quantity") == -2_147_483_648

    @pytest.mark.parametrize("value", [1.0, "1.5", "1e3", True, None, ""])
    def test_non_integers_rejected(self, value):
        with pytest.raises(ValidationError):
            coerce_int(value, "quantity")
