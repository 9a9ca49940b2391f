"""
Sales Engines - pure calculation engines for the deal pipeline.

No I/O and no shared state: every function can be called repeatedly as
a trade form is edited.

Engines:
    - account_codes: closed account code / VAT rate / branding theme table
    - tax_scenario: questionnaire answers -> VAT scenario
    - costs: implied shipping, card fees, VAT split, margins
    - vat: theme-driven VAT calculation, validation, sale economics
    - commission: shopper / introducer commission split
    - lifecycle: deal status transitions
    - reference: C19-NNNN sale reference helpers

Usage:
    from sales_engines import classify, compute_costs, PaymentMethod

    scenario = classify("uk", "uk", "retail")
    breakdown = compute_costs(items, PaymentMethod.CARD, "UK",
                              account_code=scenario.account_code)
"""

from sales_engines.account_codes import (
    AccountCodeTreatment,
    AmountsAre,
    XeroTaxType,
    all_account_codes,
    theme_for,
    treatment_for,
    vat_rate_for,
)
from sales_engines.commission import CommissionResult, calculate_commission
from sales_engines.costs import (
    CostBreakdown,
    PaymentMethod,
    TradeItem,
    TradeWarning,
    compute_costs,
    validate_items,
    validate_trade,
)
from sales_engines.lifecycle import (
    DealStatus,
    StatusChange,
    allowed_transitions,
    can_transition,
    plan_transition,
    transition,
)
from sales_engines.reference import (
    format_sale_reference,
    next_sale_reference,
    parse_sale_reference,
)
from sales_engines.tax_scenario import (
    Answer,
    DealInputs,
    Location,
    PurchaseType,
    ScenarioKind,
    TaxScenario,
    classify,
    classify_deal,
    missing_answers,
)
from sales_engines.vat import (
    SaleEconomics,
    VatBreakdown,
    VatValidation,
    calculate_sale_economics,
    calculate_vat,
    ex_vat_from_inc_vat,
    margin_percent,
    validate_sale_vat,
)

__all__ = [
    # Account codes
    "AccountCodeTreatment",
    "AmountsAre",
    "XeroTaxType",
    "all_account_codes",
    "theme_for",
    "treatment_for",
    "vat_rate_for",
    # Tax scenario
    "Answer",
    "DealInputs",
    "Location",
    "PurchaseType",
    "ScenarioKind",
    "TaxScenario",
    "classify",
    "classify_deal",
    "missing_answers",
    # Costs
    "CostBreakdown",
    "PaymentMethod",
    "TradeItem",
    "TradeWarning",
    "compute_costs",
    "validate_items",
    "validate_trade",
    # VAT
    "SaleEconomics",
    "VatBreakdown",
    "VatValidation",
    "calculate_sale_economics",
    "calculate_vat",
    "ex_vat_from_inc_vat",
    "margin_percent",
    "validate_sale_vat",
    # Commission
    "CommissionResult",
    "calculate_commission",
    # Lifecycle
    "DealStatus",
    "StatusChange",
    "allowed_transitions",
    "can_transition",
    "plan_transition",
    "transition",
    # Reference
    "format_sale_reference",
    "next_sale_reference",
    "parse_sale_reference",
]
