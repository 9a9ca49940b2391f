"""
Unit tests for Money and Currency value objects.

Verifies:
- Construction and normalization
- Rounding determinism (ROUND_HALF_UP)
- Currency-safe arithmetic and comparison
- sum_money
"""

from decimal import Decimal

import pytest

from sales_kernel.domain.values import GBP, Currency, Money, sum_money
from sales_kernel.exceptions import CurrencyMismatchError


class TestCurrency:

    def test_normalizes_code(self):
        assert Currency(" gbp ").code == "GBP"

    def test_unsupported_code_rejected(self):
        with pytest.raises(ValueError):
            Currency("XYZ")

    def test_minor_units(self):
        assert GBP.minor_units == 2
        assert Currency("JPY").minor_units == 0

    def test_symbol(self):
        assert GBP.symbol == "£"

    def test_str_includes_symbol(self):
        assert str(Money.of("12.50")) == "£12.50"


class TestMoneyConstruction:

    def test_of_defaults_to_gbp(self):
        assert Money.of("10.50").currency == GBP

    def test_of_string_and_int(self):
        assert Money.of("100") == Money.of(100)

    def test_float_goes_through_str(self):
        assert Money(0.1, GBP).amount == Decimal("0.1")

    def test_invalid_amount(self):
        with pytest.raises(ValueError):
            Money.of("ten pounds")

    def test_string_currency_coerced(self):
        assert Money(Decimal("1"), "eur").currency == Currency("EUR")

    def test_zero(self):
        assert Money.zero().is_zero
        assert Money.zero("USD").currency.code == "USD"


class TestRounding:

    def test_half_up(self):
        assert Money.of("10.555").round() == Money.of("10.56")
        assert Money.of("10.554").round() == Money.of("10.55")

    def test_negative_half_up_away_from_zero(self):
        assert Money.of("-10.555").round() == Money.of("-10.56")

    def test_zero_decimal_currency(self):
        assert Money.of("1234.5", "JPY").round().amount == Decimal("1235")

    def test_round_is_deterministic(self):
        values = {Money.of("2.675").round() for _ in range(100)}
        assert values == {Money.of("2.68")}


class TestArithmetic:

    def test_add_sub(self):
        assert Money.of("1.10") + Money.of("2.20") == Money.of("3.30")
        assert Money.of("5") - Money.of("7.5") == Money.of("-2.5")

    def test_scalar_multiply_divide(self):
        assert Money.of("10") * 3 == Money.of("30")
        assert 3 * Money.of("10") == Money.of("30")
        assert Money.of("10") / Decimal("4") == Money.of("2.5")

    def test_mixed_currency_add_raises(self):
        with pytest.raises(CurrencyMismatchError) as exc_info:
            Money.of("1") + Money.of("1", "EUR")
        assert exc_info.value.currency1 == "GBP"
        assert exc_info.value.currency2 == "EUR"

    def test_mixed_currency_compare_raises(self):
        with pytest.raises(CurrencyMismatchError):
            Money.of("1") < Money.of("1", "USD")

    def test_comparisons(self):
        assert Money.of("1") < Money.of("2")
        assert Money.of("2") >= Money.of("2.00")

    def test_neg_abs(self):
        assert -Money.of("5") == Money.of("-5")
        assert abs(Money.of("-5")) == Money.of("5")

    def test_predicates(self):
        assert Money.of("1").is_positive
        assert Money.of("-1").is_negative
        assert not Money.of("Infinity").is_finite


class TestSumMoney:

    def test_empty_is_zero(self):
        assert sum_money([]) == Money.zero()

    def test_sums(self):
        assert sum_money([Money.of("1.5"), Money.of("2.5")]) == Money.of("4")

    def test_mixed_currency_raises(self):
        with pytest.raises(CurrencyMismatchError):
            sum_money([Money.of("1"), Money.of("1", "CHF")])
