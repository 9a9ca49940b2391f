"""
Tests for the cost & margin calculator.

Covers:
- Shipping estimate by route, override, default route
- Card fees by payment method
- GBP-only gross margin (no FX conversion)
- VAT split from the account code
- Commissionable margin identity and direct costs
- Boundary validation of items
"""

from decimal import Decimal

import pytest

from sales_config import parse_pricing_config
from sales_engines.costs import (
    PaymentMethod,
    compute_costs,
    estimate_card_fees,
    estimate_shipping,
    validate_items,
    validate_trade,
)
from sales_kernel.domain.values import Money
from sales_kernel.exceptions import (
    InvalidTradeCostError,
    InvalidTradeItemError,
    UnmappedAccountCodeError,
)
from tests.conftest import make_item


class TestShipping:

    def setup_method(self):
        self.item = make_item()

    def test_uk_to_uk(self, pricing_config):
        result = compute_costs([self.item], "bank_transfer", "UK", account_code="425", config=pricing_config)
        assert result.shipping == Money.of("40.00")

    def test_eu_supplier_to_uk(self, pricing_config):
        item = make_item(supplier_country="France")
        result = compute_costs([item], "bank_transfer", "United Kingdom", account_code="425", config=pricing_config)
        assert result.shipping == Money.of("140.00")

    @pytest.mark.parametrize("country", [None, "", "   "])
    def test_missing_supplier_country_counts_as_uk(self, pricing_config, country):
        item = make_item(supplier_country=country)
        result = compute_costs([item], "bank_transfer", "USA", account_code="423", config=pricing_config)
        assert result.shipping == Money.of("170.00")

    def test_unrecognised_supplier_country_uses_default_route(self, pricing_config):
        item = make_item(supplier_country="Brazil")
        result = compute_costs([item], "bank_transfer", "UK", account_code="425", config=pricing_config)
        assert result.shipping == Money.of("130.00")
        assert result.commissionable_margin == Money.of("370.00")

    def test_unknown_delivery_region_uses_default(self, pricing_config):
        result = compute_costs([self.item], "bank_transfer", "Brazil", account_code="423", config=pricing_config)
        assert result.shipping == Money.of("130.00")

    def test_most_expensive_route_wins(self, pricing_config):
        items = [make_item(supplier_country="UK"), make_item(supplier_country="Japan")]
        assert estimate_shipping(items, "UK", pricing_config) == Money.of("180.00")

    def test_no_items_no_shipping(self, pricing_config):
        assert estimate_shipping([], "UK", pricing_config).is_zero

    def test_override_replaces_estimate(self, pricing_config):
        result = compute_costs(
            [self.item], "bank_transfer", "UK",
            account_code="425", shipping_override=Decimal("0"), config=pricing_config,
        )
        assert result.shipping.is_zero
        assert result.commissionable_margin == Money.of("500.00")


class TestCardFees:

    def test_card_payment_charges_percentage(self, pricing_config):
        result = compute_costs([make_item()], PaymentMethod.CARD, "UK", account_code="425", config=pricing_config)
        assert result.card_fees == Money.of("37.50")

    def test_bank_transfer_is_free(self, pricing_config):
        result = compute_costs([make_item()], PaymentMethod.BANK_TRANSFER, "UK", account_code="425", config=pricing_config)
        assert result.card_fees.is_zero

    def test_flat_fee_from_config(self):
        config = parse_pricing_config({
            "card_fee": {"percent": "2.5", "flat": "0.30"},
            "shipping": {"regions": {"uk": "UK"}, "routes": {"UK_UK": "40"}, "default_cost": "130"},
        })
        result = compute_costs([make_item()], "card", "UK", account_code="425", config=config)
        assert result.card_fees == Money.of("37.80")

    def test_zero_sale_has_no_card_fee(self, pricing_config):
        item = make_item(buy="0", sell="0")
        result = compute_costs([item], "card", "UK", account_code="425", config=pricing_config)
        assert result.card_fees.is_zero

    def test_fee_is_rounded_half_up(self, pricing_config):
        # 2.5% of 10.10 = 0.2525
        item = make_item(buy="5.00", sell="10.10")
        result = compute_costs([item], "card", "UK", account_code="425", config=pricing_config)
        assert result.card_fees == Money.of("0.25")

    def test_unknown_payment_method_rejected(self, pricing_config):
        with pytest.raises(ValueError):
            compute_costs([make_item()], "cheque", "UK", account_code="425", config=pricing_config)


class TestGrossMargin:

    def test_quantity_multiplies(self, pricing_config):
        item = make_item(buy="100", sell="150", quantity=3)
        result = compute_costs([item], "bank_transfer", "UK", account_code="423", config=pricing_config)
        assert result.gross_margin == Money.of("150.00")
        assert result.sale_amount_ex_vat == Money.of("450.00")

    def test_non_gbp_items_excluded(self, pricing_config):
        gbp = make_item(buy="1000", sell="1500")
        eur = make_item(buy="900", sell="2000", currency="EUR")
        mixed = make_item(buy="100", sell="300", sell_currency="USD")

        result = compute_costs([gbp, eur, mixed], "bank_transfer", "UK", account_code="423", config=pricing_config)

        assert result.gross_margin == Money.of("500.00")
        assert result.sale_amount_ex_vat == Money.of("1500.00")

    def test_exclusion_is_logged(self, pricing_config, captured_logs):
        eur = make_item(currency="EUR")
        compute_costs([eur], "bank_transfer", "UK", account_code="423", config=pricing_config)
        assert any(r["message"] == "costs_items_excluded_non_settlement" for r in captured_logs())

    def test_negative_margin_allowed(self, pricing_config):
        item = make_item(buy="1500", sell="1000")
        result = compute_costs([item], "bank_transfer", "UK", account_code="423", config=pricing_config)
        assert result.gross_margin == Money.of("-500.00")


class TestVatSplit:

    def test_twenty_percent(self, pricing_config):
        result = compute_costs([make_item()], "bank_transfer", "UK", account_code="425", config=pricing_config)
        assert result.vat_rate == Decimal("0.20")
        assert result.sale_amount_ex_vat == Money.of("1500.00")
        assert result.sale_amount_inc_vat == Money.of("1800.00")
        assert result.vat_amount == Money.of("300.00")

    @pytest.mark.parametrize("code", ["423", "424"])
    def test_zero_rated(self, pricing_config, code):
        result = compute_costs([make_item()], "bank_transfer", "UK", account_code=code, config=pricing_config)
        assert result.sale_amount_inc_vat == result.sale_amount_ex_vat
        assert result.vat_amount.is_zero

    def test_unmapped_code_fails_fast(self, pricing_config):
        with pytest.raises(UnmappedAccountCodeError):
            compute_costs([make_item()], "card", "UK", account_code="426", config=pricing_config)


class TestCommissionableMargin:

    def test_direct_costs_are_deducted(self, pricing_config):
        result = compute_costs(
            [make_item()], "card", "UK",
            account_code="425",
            other_direct_costs=Money.of("25.00"),
            introducer_commission=Decimal("50"),
            config=pricing_config,
        )
        # 500 - 40 - 37.50 - 25 - 50
        assert result.commissionable_margin == Money.of("347.50")
        assert result.direct_costs == Money.of("152.50")

    def test_total_is_shipping_plus_card_fees(self, pricing_config):
        result = compute_costs([make_item()], "card", "UK", account_code="425", config=pricing_config)
        assert result.total == Money.of("77.50")

    def test_percentages(self, pricing_config):
        result = compute_costs([make_item()], "card", "UK", account_code="425", config=pricing_config)
        assert result.gross_margin_percent == Decimal("33.33")
        assert result.commissionable_margin_percent == Decimal("28.17")

    def test_percentages_zero_when_no_sale(self, pricing_config):
        result = compute_costs([], "card", "UK", account_code="425", config=pricing_config)
        assert result.gross_margin_percent == Decimal("0.00")
        assert result.commissionable_margin.is_zero


class TestValidateItems:

    def test_valid_items_pass(self):
        validate_items([make_item(), make_item(quantity=5)])

    @pytest.mark.parametrize("quantity", [0, -1])
    def test_non_positive_quantity(self, quantity):
        with pytest.raises(InvalidTradeItemError) as exc_info:
            validate_items([make_item(), make_item(quantity=quantity)])
        assert exc_info.value.item_index == 1
        assert exc_info.value.field == "quantity"
        assert exc_info.value.code == "INVALID_TRADE_ITEM"

    def test_negative_buy_price(self):
        with pytest.raises(InvalidTradeItemError) as exc_info:
            validate_items([make_item(buy="-1")])
        assert exc_info.value.field == "buy_price"

    def test_non_finite_sell_price(self):
        with pytest.raises(InvalidTradeItemError) as exc_info:
            validate_items([make_item(sell="Infinity")])
        assert exc_info.value.field == "sell_price"


class TestEstimateCardFees:

    def test_card_rate_plus_flat(self):
        config = parse_pricing_config({
            "card_fee": {"percent": "2.5", "flat": "0.30"},
            "shipping": {"regions": {}, "routes": {}, "default_cost": "130"},
        })
        assert estimate_card_fees(Money.of("100"), PaymentMethod.CARD, config) == Money.of("2.80")

    def test_bank_transfer_is_free(self, pricing_config):
        fee = estimate_card_fees(Money.of("1500"), PaymentMethod.BANK_TRANSFER, pricing_config)
        assert fee.is_zero

    def test_empty_sale_is_free(self, pricing_config):
        assert estimate_card_fees(Money.zero(), PaymentMethod.CARD, pricing_config).is_zero

    def test_rounded_half_up(self, pricing_config):
        # 2.5% of 10.10 = 0.2525
        assert estimate_card_fees(Money.of("10.10"), PaymentMethod.CARD, pricing_config) == Money.of("0.25")


class TestValidateTrade:

    def test_ordinary_trade_has_no_warnings(self):
        assert validate_trade([make_item()]) == ()

    @pytest.mark.parametrize("field", [
        "other_direct_costs",
        "introducer_commission",
        "shipping_override",
    ])
    def test_negative_cost_rejected(self, field):
        with pytest.raises(InvalidTradeCostError) as exc_info:
            validate_trade([make_item()], **{field: Money.of("-0.01")})
        assert exc_info.value.field == field
        assert exc_info.value.code == "INVALID_TRADE_COST"

    def test_non_numeric_cost_rejected(self):
        with pytest.raises(InvalidTradeCostError, match="must be a number"):
            validate_trade([make_item()], other_direct_costs="lots")

    def test_zero_costs_accepted(self):
        assert validate_trade(
            [make_item()],
            other_direct_costs=Decimal("0"),
            introducer_commission=Money.zero(),
            shipping_override=Money.zero(),
        ) == ()

    def test_item_checks_still_run(self):
        with pytest.raises(InvalidTradeItemError):
            validate_trade([make_item(quantity=0)])

    def test_below_cost_warning(self):
        warnings = validate_trade([make_item(buy="1500", sell="1000")])
        assert [w.code for w in warnings] == ["below_cost"]
        assert "1000.00" in warnings[0].message

    def test_high_margin_warning(self):
        # markup 300% on buy
        warnings = validate_trade([make_item(buy="100", sell="400")])
        assert [w.code for w in warnings] == ["high_margin"]
        assert "300.00%" in warnings[0].message

    def test_markup_at_threshold_is_not_flagged(self):
        assert validate_trade([make_item(buy="100", sell="300")]) == ()

    def test_non_settlement_items_ignored(self):
        assert validate_trade([make_item(buy="1500", sell="1000", currency="EUR")]) == ()

    def test_warning_is_logged(self, captured_logs):
        validate_trade([make_item(buy="1500", sell="1000")])
        records = [r for r in captured_logs() if r["message"] == "trade_validation_warning"]
        assert records[0]["warning_code"] == "below_cost"
