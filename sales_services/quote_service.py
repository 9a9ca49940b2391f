"""
sales_services.quote_service -- Classifier + calculator in one call.

Responsibility:
    Runs the deal pipeline for a trade form: validates the items and
    trade-level costs at the boundary (collecting sanity warnings),
    classifies the tax scenario, and, once the questionnaire is complete,
    computes the cost breakdown under the scenario's account code.

Architecture position:
    Services -- composes sales_engines.tax_scenario and sales_engines.costs.
    Holds no session; the API/CLI layer calls it on every form change.

Invariants enforced:
    - An incomplete questionnaire yields a quote with ``scenario=None``,
      ``costs=None`` and the missing question names; never a default
      scenario.

Failure modes:
    - InvalidTradeItemError for malformed items.
    - InvalidTradeCostError for negative trade-level costs.
    - UnmappedAccountCodeError if a scenario names an unmapped code.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal

from sales_config import PricingConfig, get_pricing_config
from sales_engines.costs import (
    CostBreakdown,
    PaymentMethod,
    TradeItem,
    TradeWarning,
    compute_costs,
    validate_trade,
)
from sales_engines.tax_scenario import DealInputs, TaxScenario, classify_deal, missing_answers
from sales_kernel.domain.values import Money
from sales_kernel.logging_config import get_logger

logger = get_logger("services.quote")


@dataclass(frozen=True)
class TradeQuote:
    scenario: TaxScenario | None
    costs: CostBreakdown | None
    missing: tuple[str, ...] = ()
    warnings: tuple[TradeWarning, ...] = ()

    @property
    def is_complete(self) -> bool:
        return self.scenario is not None


def quote_trade(
    inputs: DealInputs,
    items: Sequence[TradeItem],
    payment_method: PaymentMethod | str,
    delivery_country: str | None,
    *,
    other_direct_costs: Money | Decimal | None = None,
    introducer_commission: Money | Decimal | None = None,
    shipping_override: Money | Decimal | None = None,
    config: PricingConfig | None = None,
) -> TradeQuote:
    """Classify the deal and, when complete, price it."""
    config = config or get_pricing_config()
    items = list(items)
    warnings = validate_trade(
        items,
        other_direct_costs=other_direct_costs,
        introducer_commission=introducer_commission,
        shipping_override=shipping_override,
        settlement_currency=config.settlement_currency,
    )

    scenario = classify_deal(inputs)
    if scenario is None:
        missing = missing_answers(inputs)
        logger.info("trade_quote_incomplete", extra={"missing": list(missing)})
        return TradeQuote(scenario=None, costs=None, missing=missing, warnings=warnings)

    costs = compute_costs(
        items,
        payment_method,
        delivery_country,
        account_code=scenario.account_code,
        other_direct_costs=other_direct_costs,
        introducer_commission=introducer_commission,
        shipping_override=shipping_override,
        config=config,
    )
    logger.info("trade_quoted", extra={
        "account_code": scenario.account_code,
        "commissionable_margin": str(costs.commissionable_margin.amount),
    })
    return TradeQuote(scenario=scenario, costs=costs, warnings=warnings)
