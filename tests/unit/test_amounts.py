"""Tests for exact amount arithmetic."""

import pytest
from hypothesis import given
from hypothesis import strategies as st

from near_recipes.amounts import (
    NEAR_NOMINATION,
    add,
    compare,
    div,
    format_near_amount,
    is_zero,
    min_amount,
    mul,
    mul_div,
    parse_near_amount,
    round_up_to_nearest,
    sub,
)


class TestArithmetic:
    def test_results_are_strings(self):
        assert add("1", 2) == "3"
        assert sub("10", "4") == "6"
        assert mul("3", "7") == "21"
        assert div("7", "2") == "3"

    def test_no_precision_loss_on_u128_values(self):
        big = str(2**128 - 1)
        assert add(big, "1") == str(2**128)
        assert mul_div(big, 999, 1000) == str((2**128 - 1) * 999 // 1000)

    def test_mul_div_multiplies_before_dividing(self):
        # floor(3 / 2) * 2 would give 2
        assert mul_div("3", "2", "2") == "3"

    def test_compare(self):
        assert compare("1", "2") == -1
        assert compare("2", "2") == 0
        assert compare("10", "9") == 1

    def test_min_amount_compares_numerically(self):
        assert min_amount(["100", "99", "1000"]) == "99"

    def test_is_zero(self):
        assert is_zero("0")
        assert not is_zero("1")


class TestRoundUpToNearest:
    @pytest.mark.parametrize(
        "x,m,expected",
        [("0", "5", "0"), ("39", "5", "40"), ("40", "5", "40"), ("41", "5", "45")],
    )
    def test_literal_cases(self, x, m, expected):
        assert round_up_to_nearest(x, m) == expected

    @given(
        x=st.integers(min_value=0, max_value=2**128),
        m=st.integers(min_value=1, max_value=2**96),
    )
    def test_smallest_multiple_not_below_x(self, x, m):
        result = int(round_up_to_nearest(str(x), str(m)))
        assert result % m == 0
        assert result - m < x <= result


class TestNearAmounts:
    def test_parse_fraction(self):
        assert parse_near_amount("0.045") == "45000000000000000000000"
        assert parse_near_amount("0.00125") == "1250000000000000000000"

    def test_parse_whole_and_separators(self):
        assert parse_near_amount("1") == str(NEAR_NOMINATION)
        expected = 1000 * NEAR_NOMINATION + NEAR_NOMINATION // 2
        assert parse_near_amount("1,000.5") == str(expected)

    def test_parse_zero(self):
        assert parse_near_amount("0") == "0"
        assert parse_near_amount("0.0") == "0"

    def test_parse_full_precision(self):
        assert parse_near_amount("0." + "0" * 23 + "1") == "1"

    @pytest.mark.parametrize("text", ["1.2.3", "abc", "-1", "0." + "1" * 25, ""])
    def test_parse_rejects_malformed(self, text):
        with pytest.raises(ValueError):
            parse_near_amount(text)

    def test_format_trims_trailing_zeros(self):
        assert format_near_amount("45000000000000000000000") == "0.045"
        assert format_near_amount(str(NEAR_NOMINATION)) == "1"
        assert format_near_amount("0") == "0"

    def test_format_rounds_half_up(self):
        assert format_near_amount("1234567000000000000000000", 2) == "1.23"
        assert format_near_amount("1235000000000000000000000", 2) == "1.24"
        assert format_near_amount("5", 5) == "0"
