"""
Cost & Margin Calculator - implied deal costs and commissionable margin.

Given a trade's items, the payment method and the delivery country, the
calculator derives:

    shipping               flat per trade, from the region route table
    card_fees              percent of total sell (+ flat), card payments only
    gross_margin           sum of (sell - buy) x qty over GBP/GBP items
    sale_amount_ex_vat     total GBP sell price
    sale_amount_inc_vat    ex_vat x (1 + r) when r > 0, else ex_vat
    commissionable_margin  gross - (shipping + card fees + other direct
                           costs + introducer commission)

Items bought or sold in any other currency are excluded from the GBP
figures.  No FX conversion is performed.

The VAT rate ``r`` is bound to the account code chosen by the tax
scenario classifier.  An unmapped account code raises; there is no
default rate.

``validate_trade`` is the boundary check for a whole form: malformed
items and negative trade-level costs raise, while below-cost and
high-margin pricing come back as warnings.

Usage:
    from sales_engines.costs import PaymentMethod, TradeItem, compute_costs
    from sales_kernel.domain.values import Money

    item = TradeItem(
        brand="Hermes", category="Bag", description="Birkin 25",
        quantity=1, buy_price=Money.of("1000"), sell_price=Money.of("1500"),
    )
    breakdown = compute_costs([item], PaymentMethod.CARD, "UK", account_code="425")
    breakdown.sale_amount_inc_vat   # Money(Decimal('1800.00'), Currency('GBP'))
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum

from sales_config import PricingConfig, get_pricing_config
from sales_engines.account_codes import vat_rate_for
from sales_engines.tracer import traced_engine
from sales_kernel.domain.values import Currency, Money, sum_money
from sales_kernel.exceptions import InvalidTradeCostError, InvalidTradeItemError
from sales_kernel.logging_config import get_logger

logger = get_logger("engines.costs")

_HUNDRED = Decimal("100")
_PERCENT_QUANT = Decimal("0.01")


class PaymentMethod(str, Enum):
    CARD = "card"
    BANK_TRANSFER = "bank_transfer"


@dataclass(frozen=True)
class TradeItem:
    """
    One line of a trade.

    Prices are per unit.  ``supplier_country`` drives the shipping route:
    a missing country is treated as UK, an unrecognised one costs the
    default route.
    """

    brand: str
    category: str
    description: str
    quantity: int
    buy_price: Money
    sell_price: Money
    supplier: str | None = None
    supplier_country: str | None = None

    @property
    def buy_currency(self) -> Currency:
        return self.buy_price.currency

    @property
    def sell_currency(self) -> Currency:
        return self.sell_price.currency

    def is_settlement(self, currency: str | Currency) -> bool:
        """True when both prices are in the given currency."""
        code = currency.code if isinstance(currency, Currency) else currency.upper()
        return self.buy_currency.code == code and self.sell_currency.code == code

    @property
    def line_sell(self) -> Money:
        return self.sell_price * self.quantity

    @property
    def line_buy(self) -> Money:
        return self.buy_price * self.quantity

    @property
    def line_margin(self) -> Money:
        return (self.sell_price - self.buy_price) * self.quantity


@dataclass(frozen=True)
class CostBreakdown:
    """
    Calculator output.  All money is in the settlement currency, rounded
    to 2 dp.

    ``total`` is shipping plus card fees (the implied costs).
    """

    shipping: Money
    card_fees: Money
    total: Money
    gross_margin: Money
    sale_amount_ex_vat: Money
    sale_amount_inc_vat: Money
    vat_amount: Money
    other_direct_costs: Money
    introducer_commission: Money
    commissionable_margin: Money
    vat_rate: Decimal

    @property
    def direct_costs(self) -> Money:
        """Everything deducted from gross margin."""
        return (
            self.shipping
            + self.card_fees
            + self.other_direct_costs
            + self.introducer_commission
        )

    @property
    def gross_margin_percent(self) -> Decimal:
        return _percent_of(self.gross_margin, self.sale_amount_ex_vat)

    @property
    def commissionable_margin_percent(self) -> Decimal:
        return _percent_of(self.commissionable_margin, self.sale_amount_ex_vat)


def _percent_of(part: Money, whole: Money) -> Decimal:
    if whole.is_zero:
        return Decimal("0.00")
    return (part.amount / whole.amount * _HUNDRED).quantize(
        _PERCENT_QUANT, rounding=ROUND_HALF_UP
    )


def validate_items(items: Iterable[TradeItem]) -> None:
    """
    Boundary check run before ``compute_costs``.

    Raises:
        InvalidTradeItemError: For a non-integer or non-positive quantity,
            or a negative or non-finite price.
    """
    for index, item in enumerate(items):
        qty = item.quantity
        if isinstance(qty, bool) or not isinstance(qty, int) or qty <= 0:
            raise InvalidTradeItemError(index, "quantity", str(qty), "must be a positive integer")
        for field_name in ("buy_price", "sell_price"):
            price: Money = getattr(item, field_name)
            if not price.is_finite:
                raise InvalidTradeItemError(index, field_name, str(price.amount), "must be finite")
            if price.is_negative:
                raise InvalidTradeItemError(index, field_name, str(price.amount), "must not be negative")


@dataclass(frozen=True)
class TradeWarning:
    """Economic sanity warning; the trade may still be created."""

    code: str
    message: str


HIGH_MARGIN_PERCENT = Decimal("200")


def _cost_amount(field: str, value: Money | Decimal | str | int) -> Decimal:
    if isinstance(value, Money):
        amount = value.amount
    else:
        try:
            amount = Decimal(str(value))
        except InvalidOperation:
            raise InvalidTradeCostError(field, str(value), "must be a number") from None
    if not amount.is_finite():
        raise InvalidTradeCostError(field, str(amount), "must be finite")
    if amount < 0:
        raise InvalidTradeCostError(field, str(amount), "must not be negative")
    return amount


def validate_trade(
    items: Sequence[TradeItem],
    *,
    other_direct_costs: Money | Decimal | str | None = None,
    introducer_commission: Money | Decimal | str | None = None,
    shipping_override: Money | Decimal | str | None = None,
    settlement_currency: str = "GBP",
) -> tuple[TradeWarning, ...]:
    """
    Full boundary check for a trade form.

    Runs ``validate_items``, rejects negative trade-level costs, then
    returns sanity warnings over the settlement-currency items:
    ``below_cost`` when total sell is under total buy, ``high_margin``
    when the markup on buy exceeds 200%.

    Raises:
        InvalidTradeItemError: See ``validate_items``.
        InvalidTradeCostError: For a negative, non-finite or non-numeric cost.
    """
    validate_items(items)
    for field_name, value in (
        ("other_direct_costs", other_direct_costs),
        ("introducer_commission", introducer_commission),
        ("shipping_override", shipping_override),
    ):
        if value is not None:
            _cost_amount(field_name, value)

    settled = [item for item in items if item.is_settlement(settlement_currency)]
    total_sell = sum_money((item.line_sell for item in settled), settlement_currency)
    total_buy = sum_money((item.line_buy for item in settled), settlement_currency)

    warnings: list[TradeWarning] = []
    if total_sell < total_buy:
        warnings.append(TradeWarning(
            "below_cost",
            f"Selling price ({total_sell.round().amount} ex VAT) is below "
            f"purchase price ({total_buy.round().amount})",
        ))
    if total_buy.is_positive:
        markup = _percent_of(total_sell - total_buy, total_buy)
        if markup > HIGH_MARGIN_PERCENT:
            warnings.append(TradeWarning(
                "high_margin",
                f"Very high margin detected ({markup}%), please verify pricing",
            ))

    for warning in warnings:
        logger.warning("trade_validation_warning", extra={
            "warning_code": warning.code,
            "warning_message": warning.message,
        })
    return tuple(warnings)


def estimate_shipping(
    items: Sequence[TradeItem],
    delivery_country: str | None,
    config: PricingConfig,
) -> Money:
    """
    Flat shipping estimate for the whole trade.

    The most expensive supplier-to-delivery route among the items wins.
    An unrecognised country falls in the default region, whose routes
    cost the configured default.  No items means no shipping.
    """
    currency = config.settlement_currency
    if not items:
        return Money.zero(currency)

    shipping = config.shipping
    to_region = shipping.region_for(delivery_country)
    costs = []
    for item in items:
        # A blank supplier country means stock already held in the UK
        if item.supplier_country and item.supplier_country.strip():
            from_region = shipping.region_for(item.supplier_country)
        else:
            from_region = "UK"
        costs.append(shipping.route_cost(from_region, to_region))
    return Money.of(max(costs), currency)


def estimate_card_fees(
    total_sell: Money,
    payment_method: PaymentMethod,
    config: PricingConfig,
) -> Money:
    """Card fee on the total sell price; zero for bank transfers or an empty sale."""
    if payment_method is not PaymentMethod.CARD or not total_sell.is_positive:
        return Money.zero(total_sell.currency)
    fee = total_sell * config.card_fee.rate + Money.of(config.card_fee.flat, total_sell.currency)
    return fee.round()


def _as_money(value: Money | Decimal | str | int | None, currency: str) -> Money:
    if value is None:
        return Money.zero(currency)
    if isinstance(value, Money):
        return value
    return Money.of(value, currency)


@traced_engine(
    "costs",
    "1.0",
    fingerprint_fields=("payment_method", "delivery_country", "account_code"),
)
def compute_costs(
    items: Sequence[TradeItem],
    payment_method: PaymentMethod | str,
    delivery_country: str | None,
    *,
    account_code: str,
    other_direct_costs: Money | Decimal | None = None,
    introducer_commission: Money | Decimal | None = None,
    shipping_override: Money | Decimal | None = None,
    config: PricingConfig | None = None,
) -> CostBreakdown:
    """
    Compute implied costs, VAT split and margins for a trade.

    Args:
        items: Trade items, already checked with ``validate_items``.
        payment_method: ``card`` or ``bank_transfer``.
        delivery_country: Free-text country the item is delivered to.
        account_code: Account code from the tax scenario.
        other_direct_costs: Authentication, inspection and similar fees.
        introducer_commission: Commission owed to an introducer.
        shipping_override: Replaces the estimate (0 for hand delivery).
        config: Pricing config; defaults to ``get_pricing_config()``.

    Raises:
        UnmappedAccountCodeError: If the account code has no VAT rate.
    """
    config = config or get_pricing_config()
    currency = config.settlement_currency
    method = PaymentMethod(payment_method)
    vat_rate = vat_rate_for(account_code)

    items = list(items)
    settled = [item for item in items if item.is_settlement(currency)]

    total_sell = Money.zero(currency)
    gross_margin = Money.zero(currency)
    for item in settled:
        total_sell = total_sell + item.line_sell
        gross_margin = gross_margin + item.line_margin
    total_sell = total_sell.round()
    gross_margin = gross_margin.round()

    if shipping_override is not None:
        shipping = _as_money(shipping_override, currency).round()
    else:
        shipping = estimate_shipping(items, delivery_country, config)
    card_fees = estimate_card_fees(total_sell, method, config)
    other = _as_money(other_direct_costs, currency).round()
    introducer = _as_money(introducer_commission, currency).round()

    sale_ex_vat = total_sell
    if vat_rate > 0:
        sale_inc_vat = (sale_ex_vat * (Decimal("1") + vat_rate)).round()
    else:
        sale_inc_vat = sale_ex_vat

    commissionable = gross_margin - (shipping + card_fees + other + introducer)

    breakdown = CostBreakdown(
        shipping=shipping,
        card_fees=card_fees,
        total=shipping + card_fees,
        gross_margin=gross_margin,
        sale_amount_ex_vat=sale_ex_vat,
        sale_amount_inc_vat=sale_inc_vat,
        vat_amount=sale_inc_vat - sale_ex_vat,
        other_direct_costs=other,
        introducer_commission=introducer,
        commissionable_margin=commissionable,
        vat_rate=vat_rate,
    )

    excluded = len(items) - len(settled)
    if excluded:
        logger.warning("costs_items_excluded_non_settlement", extra={
            "excluded_items": excluded,
            "settlement_currency": currency,
        })

    logger.debug("costs_computed", extra={
        "account_code": account_code,
        "payment_method": method.value,
        "item_count": len(items),
        "shipping": str(shipping.amount),
        "card_fees": str(card_fees.amount),
        "gross_margin": str(gross_margin.amount),
        "commissionable_margin": str(commissionable.amount),
        "shipping_overridden": shipping_override is not None,
    })
    return breakdown
