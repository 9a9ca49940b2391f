"""Tests for the commission engine."""

from decimal import Decimal

import pytest

from sales_engines.commission import calculate_commission
from sales_kernel.domain.values import Money
from sales_kernel.exceptions import (
    CommissionPercentOutOfRangeError,
    MissingCommissionRateError,
    NegativeMarginError,
)


class TestCommissionRate:

    def test_band_rate(self):
        result = calculate_commission(Money.of("422.50"), band_percent=Decimal("20"))
        assert result.commission_percent == Decimal("20")
        assert result.commission_amount == Money.of("84.50")
        assert not result.is_override

    def test_override_beats_band(self):
        result = calculate_commission(
            Money.of("1000"),
            band_percent=Decimal("20"),
            override_percent=Decimal("35"),
            override_notes="VIP client",
        )
        assert result.commission_percent == Decimal("35")
        assert result.commission_amount == Money.of("350.00")
        assert result.is_override
        assert result.override_notes == "VIP client"

    def test_zero_override_is_honoured(self):
        result = calculate_commission(Money.of("1000"), band_percent="20", override_percent="0")
        assert result.commission_amount.is_zero

    def test_notes_dropped_without_override(self):
        result = calculate_commission(Money.of("100"), band_percent=10, override_notes="ignored")
        assert result.override_notes is None

    def test_no_rate_raises(self):
        with pytest.raises(MissingCommissionRateError) as exc_info:
            calculate_commission(Money.of("100"))
        assert exc_info.value.code == "MISSING_COMMISSION_RATE"

    def test_negative_margin_raises(self):
        with pytest.raises(NegativeMarginError) as exc_info:
            calculate_commission(Money.of("-0.01"), band_percent=20)
        assert exc_info.value.commissionable_margin == "-0.01"

    def test_zero_margin(self):
        result = calculate_commission(Money.zero(), band_percent=20)
        assert result.commission_amount.is_zero


class TestIntroducerSplit:

    def test_no_introducer_all_to_shopper(self):
        result = calculate_commission(Money.of("500"), band_percent=20)
        assert result.commission_split_introducer.is_zero
        assert result.commission_split_shopper == Money.of("100.00")

    def test_split(self):
        result = calculate_commission(
            Money.of("500"), band_percent=20, introducer_share_percent=Decimal("25"),
        )
        assert result.commission_split_introducer == Money.of("25.00")
        assert result.commission_split_shopper == Money.of("75.00")

    def test_split_sums_to_commission_with_rounding(self):
        # 33.33 * 1/3 rounds; shopper takes the remainder
        result = calculate_commission(
            Money.of("333.33"), band_percent=10, introducer_share_percent="33.3333",
        )
        total = result.commission_split_introducer + result.commission_split_shopper
        assert total == result.commission_amount


class TestPercentRange:

    @pytest.mark.parametrize("field, kwargs", [
        ("band_percent", {"band_percent": "-5"}),
        ("band_percent", {"band_percent": "100.01"}),
        ("override_percent", {"band_percent": 20, "override_percent": -10}),
        ("override_percent", {"band_percent": 20, "override_percent": 101}),
        ("introducer_share_percent", {"band_percent": 20, "introducer_share_percent": 150}),
        ("introducer_share_percent", {"band_percent": 20, "introducer_share_percent": "-1"}),
    ])
    def test_out_of_range_rejected(self, field, kwargs):
        with pytest.raises(CommissionPercentOutOfRangeError) as exc_info:
            calculate_commission(Money.of("100"), **kwargs)
        assert exc_info.value.field == field
        assert exc_info.value.code == "COMMISSION_PERCENT_OUT_OF_RANGE"

    def test_bounds_inclusive(self):
        result = calculate_commission(
            Money.of("100"), override_percent=100, introducer_share_percent=100,
        )
        assert result.commission_split_introducer == Money.of("100.00")
        assert result.commission_split_shopper.is_zero

    def test_unused_band_still_checked(self):
        with pytest.raises(CommissionPercentOutOfRangeError):
            calculate_commission(Money.of("100"), band_percent=250, override_percent=10)

    def test_shopper_share_never_negative(self):
        result = calculate_commission(
            Money.of("100"), band_percent=20, introducer_share_percent=100,
        )
        assert not result.commission_split_shopper.is_negative
