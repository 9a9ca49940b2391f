"""
Account Codes - the closed account-code / branding-theme / VAT-rate table.

Every sale invoice is raised under one of three Xero sales account codes.
Each code is bound to exactly one VAT rate, one branding theme (invoice
template) and one Xero tax type.  The table is explicit and closed:
there is no fallback entry and no inferred rate.

    425  CN 20% VAT        20%  OUTPUT2           UK domestic sale
    424  CN Margin Scheme   0%  ZERORATEDOUTPUT   VAT margin scheme
    423  CN Export Sales    0%  ZERORATEDOUTPUT   export / out of scope

Usage:
    from sales_engines.account_codes import vat_rate_for, theme_for

    vat_rate_for("425")                 # Decimal("0.20")
    theme_for("CN Export Sales").code   # "423"
    vat_rate_for("999")                 # raises UnmappedAccountCodeError
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from sales_kernel.exceptions import (
    UnknownBrandingThemeError,
    UnmappedAccountCodeError,
)
from sales_kernel.logging_config import get_logger

logger = get_logger("engines.account_codes")


class AmountsAre(str, Enum):
    """Whether invoice line amounts include VAT (Xero LineAmountTypes)."""

    INCLUSIVE = "Inclusive"
    EXCLUSIVE = "Exclusive"


class XeroTaxType(str, Enum):
    """Xero internal tax codes used on sales lines."""

    OUTPUT_20 = "OUTPUT2"  # 20% VAT on Income
    ZERO_RATED = "ZERORATEDOUTPUT"  # Zero Rated Income 0%


DOMESTIC_VAT = "425"
MARGIN_SCHEME = "424"
EXPORT_ZERO_RATED = "423"


@dataclass(frozen=True)
class AccountCodeTreatment:
    """
    VAT treatment bound to one account code.

    Immutable row of the account-code table.
    """

    code: str
    vat_rate: Decimal  # As decimal (0.20 for 20%)
    brand_theme: str  # Friendly branding theme name
    theme_id: str  # Xero branding theme GUID
    tax_type: XeroTaxType
    tax_label: str
    amounts_are: AmountsAre
    treatment: str
    explanation: str

    @property
    def vat_rate_percent(self) -> Decimal:
        return self.vat_rate * Decimal("100")

    @property
    def is_zero_rated(self) -> bool:
        return self.vat_rate == Decimal("0")


_TREATMENTS: dict[str, AccountCodeTreatment] = {
    DOMESTIC_VAT: AccountCodeTreatment(
        code=DOMESTIC_VAT,
        vat_rate=Decimal("0.20"),
        brand_theme="CN 20% VAT",
        theme_id="d68f1fb5-ab36-48f5-809d-2752a2a1d940",
        tax_type=XeroTaxType.OUTPUT_20,
        tax_label="20% VAT on Income",
        amounts_are=AmountsAre.EXCLUSIVE,
        treatment="UK Domestic Sale",
        explanation=(
            "Standard 20% VAT applies to this UK domestic sale. "
            "The item is sold to a client in the UK."
        ),
    ),
    MARGIN_SCHEME: AccountCodeTreatment(
        code=MARGIN_SCHEME,
        vat_rate=Decimal("0"),
        brand_theme="CN Margin Scheme",
        theme_id="8173b901-4ea8-498b-a4ba-52a8446ec43f",
        tax_type=XeroTaxType.ZERO_RATED,
        tax_label="Zero Rated Income 0%",
        amounts_are=AmountsAre.INCLUSIVE,
        treatment="VAT Margin Scheme",
        explanation=(
            "VAT Margin Scheme applies. VAT is only charged on the profit "
            "margin, not the full sale price. Used for second-hand goods "
            "purchased without VAT."
        ),
    ),
    EXPORT_ZERO_RATED: AccountCodeTreatment(
        code=EXPORT_ZERO_RATED,
        vat_rate=Decimal("0"),
        brand_theme="CN Export Sales",
        theme_id="82e46ce4-09cf-4764-8342-4f774cf4040e",
        tax_type=XeroTaxType.ZERO_RATED,
        tax_label="Zero Rated Income 0%",
        amounts_are=AmountsAre.EXCLUSIVE,
        treatment="Export Sale (Zero-Rated)",
        explanation=(
            "Zero-rated export sale. The client is outside the UK, "
            "so no UK VAT applies to this transaction."
        ),
    ),
}


def all_account_codes() -> frozenset[str]:
    """The closed set of valid account codes."""
    return frozenset(_TREATMENTS)


def all_treatments() -> tuple[AccountCodeTreatment, ...]:
    return tuple(_TREATMENTS[code] for code in sorted(_TREATMENTS))


def treatment_for(account_code: str | None) -> AccountCodeTreatment:
    """
    Look up the treatment bound to an account code.

    Raises:
        UnmappedAccountCodeError: If the code is not in the table.  There
            is deliberately no default rate.
    """
    treatment = _TREATMENTS.get(account_code) if account_code else None
    if treatment is None:
        logger.error("account_code_unmapped", extra={
            "account_code": account_code,
            "known_codes": sorted(_TREATMENTS),
        })
        raise UnmappedAccountCodeError(account_code, sorted(_TREATMENTS))
    return treatment


def vat_rate_for(account_code: str | None) -> Decimal:
    """VAT rate (as decimal) bound to an account code."""
    return treatment_for(account_code).vat_rate


def theme_for(theme_id_or_name: str | None) -> AccountCodeTreatment:
    """
    Look up a treatment by Xero branding theme GUID or friendly name.

    The GUID is tried first; the friendly name is accepted for records
    stored before theme ids were captured.

    Raises:
        UnknownBrandingThemeError: If neither matches (including None/empty).
    """
    if theme_id_or_name:
        key = theme_id_or_name.strip()
        for treatment in _TREATMENTS.values():
            if treatment.theme_id == key:
                return treatment
        for treatment in _TREATMENTS.values():
            if treatment.brand_theme == key:
                return treatment

    logger.error("branding_theme_unknown", extra={"brand_theme": theme_id_or_name})
    raise UnknownBrandingThemeError(theme_id_or_name)
