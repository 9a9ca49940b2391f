"""Unit tests for CurrencyRegistry."""

from decimal import Decimal

import pytest

from sales_kernel.domain.currency import CurrencyRegistry


class TestCurrencyRegistry:

    def test_settlement_currency_is_gbp(self):
        assert CurrencyRegistry.SETTLEMENT_CURRENCY == "GBP"
        assert CurrencyRegistry.is_valid("GBP")

    @pytest.mark.parametrize("code", ["GBP", "usd", " eur ", "CHF", "JPY", "HKD", "SGD", "AED"])
    def test_traded_currencies_valid(self, code):
        assert CurrencyRegistry.is_valid(code)

    @pytest.mark.parametrize("code", ["", "   ", None, "XXX", 42])
    def test_invalid_codes(self, code):
        assert not CurrencyRegistry.is_valid(code)

    def test_quantum(self):
        assert CurrencyRegistry.quantum("GBP") == Decimal("0.01")
        assert CurrencyRegistry.quantum("JPY") == Decimal("1")
        assert CurrencyRegistry.quantum("XXX") == Decimal("0.01")

    def test_unknown_code_defaults_to_two_minor_units(self):
        assert CurrencyRegistry.minor_units("XXX") == 2

    def test_require_normalizes(self):
        assert CurrencyRegistry.require(" gbp") == "GBP"

    @pytest.mark.parametrize("code", ["", "GB", "POUND", "XXX", None])
    def test_require_rejects(self, code):
        with pytest.raises(ValueError):
            CurrencyRegistry.require(code)

    def test_all_codes(self):
        assert "GBP" in CurrencyRegistry.all_codes()
        assert len(CurrencyRegistry.all_codes()) == 8

    def test_lookup_details(self):
        yen = CurrencyRegistry.lookup("jpy")
        assert yen.symbol == "¥"
        assert yen.quantum == Decimal("1")
        assert CurrencyRegistry.lookup("GBP").quantum == Decimal("0.01")
