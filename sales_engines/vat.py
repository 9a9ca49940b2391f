"""
VAT Calculator - VAT derived from the invoice branding theme.

The VAT rate of a sale is never hard-coded: it comes from the branding
theme (and so the account code) the sale was invoiced under.

    CN 20% VAT        20%
    CN Margin Scheme   0%
    CN Export Sales    0%

Three entry points:

    calculate_vat             ex-VAT amount -> VAT and inc-VAT amount
    validate_sale_vat         audit a stored ex/inc pair against its theme
    calculate_sale_economics  recompute a stored sale from its inc-VAT amount

An unknown or missing theme raises ``UnknownBrandingThemeError`` in the
calculators.  ``validate_sale_vat`` is a read-only audit and reports an
unknown theme as an invalid result instead.

Usage:
    from sales_engines.vat import calculate_vat

    result = calculate_vat("CN 20% VAT", Decimal("1500"))
    result.vat_amount.amount        # Decimal('300.00')
    result.sale_amount_inc_vat      # Money(Decimal('1800.00'), ...)
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from sales_engines.account_codes import AccountCodeTreatment, theme_for
from sales_engines.tracer import traced_engine
from sales_kernel.domain.values import GBP, Money
from sales_kernel.exceptions import UnknownBrandingThemeError
from sales_kernel.logging_config import get_logger

logger = get_logger("engines.vat")

_CENT = Decimal("0.01")
_HUNDRED = Decimal("100")


@dataclass(frozen=True)
class VatBreakdown:
    treatment: AccountCodeTreatment
    vat_rate: Decimal
    sale_amount_ex_vat: Money
    vat_amount: Money
    sale_amount_inc_vat: Money

    @property
    def is_zero_rated(self) -> bool:
        return self.vat_rate == Decimal("0")


@dataclass(frozen=True)
class VatValidation:
    """Outcome of auditing a stored sale's VAT against its theme."""

    is_valid: bool
    expected_vat_rate: Decimal
    expected_vat_amount: Money
    actual_vat_amount: Money
    discrepancy: Money
    message: str | None = None


@dataclass(frozen=True)
class SaleEconomics:
    """
    Economics of a stored sale, recomputed from its VAT-inclusive amount.

    Gross margin is sale ex VAT minus buy price only.  Commissionable
    margin additionally deducts shipping, card fees, direct costs and
    introducer commission.
    """

    sale_amount_inc_vat: Money
    sale_amount_ex_vat: Money
    vat_amount: Money
    vat_rate: Decimal
    buy_price: Money
    shipping_cost: Money
    card_fees: Money
    direct_costs: Money
    introducer_commission: Money
    gross_margin: Money
    commissionable_margin: Money
    gross_margin_percent: Decimal
    commissionable_margin_percent: Decimal


def _money(value: Money | Decimal | str | int | None) -> Money:
    if value is None:
        return Money.zero(GBP)
    if isinstance(value, Money):
        return value.round()
    return Money.of(value, GBP).round()


def margin_percent(margin: Money, sale_ex_vat: Money) -> Decimal:
    """Margin as a percentage of the ex-VAT sale; 0 when the sale is 0."""
    if sale_ex_vat.is_zero:
        return Decimal("0.00")
    return (margin.amount / sale_ex_vat.amount * _HUNDRED).quantize(
        _CENT, rounding=ROUND_HALF_UP
    )


def ex_vat_from_inc_vat(amount_inc_vat: Money, vat_rate: Decimal) -> Money:
    """Back out VAT from an inclusive amount; zero-rated amounts are unchanged."""
    amount = amount_inc_vat.round()
    if vat_rate == 0:
        return amount
    return (amount / (Decimal("1") + vat_rate)).round()


@traced_engine("vat", "1.0", fingerprint_fields=("brand_theme", "sale_amount_ex_vat"))
def calculate_vat(
    brand_theme: str | None,
    sale_amount_ex_vat: Money | Decimal | str | int | None,
) -> VatBreakdown:
    """
    VAT on an ex-VAT sale amount, at the rate bound to the theme.

    Raises:
        UnknownBrandingThemeError: If the theme is unknown or missing.
    """
    treatment = theme_for(brand_theme)
    ex_vat = _money(sale_amount_ex_vat)
    rate = treatment.vat_rate

    if rate == 0:
        vat_amount = Money.zero(ex_vat.currency)
    else:
        vat_amount = (ex_vat * rate).round()

    breakdown = VatBreakdown(
        treatment=treatment,
        vat_rate=rate,
        sale_amount_ex_vat=ex_vat,
        vat_amount=vat_amount,
        sale_amount_inc_vat=ex_vat + vat_amount,
    )
    logger.debug("vat_calculated", extra={
        "brand_theme": treatment.brand_theme,
        "account_code": treatment.code,
        "vat_rate": str(rate),
        "sale_amount_ex_vat": str(ex_vat.amount),
        "vat_amount": str(vat_amount.amount),
    })
    return breakdown


def validate_sale_vat(
    brand_theme: str | None,
    sale_amount_ex_vat: Money | Decimal | str | int | None,
    sale_amount_inc_vat: Money | Decimal | str | int | None,
) -> VatValidation:
    """Check a stored ex/inc VAT pair; valid when off by less than a penny."""
    try:
        treatment = theme_for(brand_theme)
    except UnknownBrandingThemeError:
        zero = Money.zero(GBP)
        return VatValidation(
            is_valid=False,
            expected_vat_rate=Decimal("0"),
            expected_vat_amount=zero,
            actual_vat_amount=zero,
            discrepancy=zero,
            message=f"Unknown branding theme: {brand_theme}",
        )

    ex_vat = _money(sale_amount_ex_vat)
    inc_vat = _money(sale_amount_inc_vat)
    actual = inc_vat - ex_vat
    rate = treatment.vat_rate
    expected = Money.zero(GBP) if rate == 0 else (ex_vat * rate).round()
    discrepancy = abs(actual - expected).round()
    is_valid = discrepancy.amount < _CENT

    message = None
    if not is_valid:
        message = (
            f"VAT mismatch: Expected £{expected.amount} ({rate * _HUNDRED:.0f}%) "
            f"but found £{actual.amount}"
        )
        logger.warning("vat_mismatch", extra={
            "brand_theme": treatment.brand_theme,
            "expected_vat_amount": str(expected.amount),
            "actual_vat_amount": str(actual.amount),
            "discrepancy": str(discrepancy.amount),
        })

    return VatValidation(
        is_valid=is_valid,
        expected_vat_rate=rate,
        expected_vat_amount=expected,
        actual_vat_amount=actual,
        discrepancy=discrepancy,
        message=message,
    )


@traced_engine(
    "sale_economics",
    "1.0",
    fingerprint_fields=("sale_amount_inc_vat", "buy_price", "brand_theme"),
)
def calculate_sale_economics(
    sale_amount_inc_vat: Money | Decimal | str | int | None,
    buy_price: Money | Decimal | str | int | None,
    brand_theme: str | None,
    *,
    shipping_cost: Money | Decimal | str | int | None = None,
    card_fees: Money | Decimal | str | int | None = None,
    direct_costs: Money | Decimal | str | int | None = None,
    introducer_commission: Money | Decimal | str | int | None = None,
) -> SaleEconomics:
    """
    Recompute all economics of a stored sale.

    Raises:
        UnknownBrandingThemeError: If the theme is unknown or missing.
            A sale is never assumed to carry 20% VAT.
    """
    treatment = theme_for(brand_theme)
    rate = treatment.vat_rate

    inc_vat = _money(sale_amount_inc_vat)
    buy = _money(buy_price)
    shipping = _money(shipping_cost)
    fees = _money(card_fees)
    direct = _money(direct_costs)
    introducer = _money(introducer_commission)

    ex_vat = ex_vat_from_inc_vat(inc_vat, rate)
    gross = ex_vat - buy
    commissionable = gross - (shipping + fees + direct + introducer)

    return SaleEconomics(
        sale_amount_inc_vat=inc_vat,
        sale_amount_ex_vat=ex_vat,
        vat_amount=inc_vat - ex_vat,
        vat_rate=rate,
        buy_price=buy,
        shipping_cost=shipping,
        card_fees=fees,
        direct_costs=direct,
        introducer_commission=introducer,
        gross_margin=gross,
        commissionable_margin=commissionable,
        gross_margin_percent=margin_percent(gross, ex_vat),
        commissionable_margin_percent=margin_percent(commissionable, ex_vat),
    )
