"""
Commission Engine - shopper / introducer commission split.

    commission  = commissionable_margin x percent / 100
    introducer  = commission x introducer_share / 100
    shopper     = commission - introducer

The percentage comes from an admin override when one is set, otherwise
from the shopper's commission band.  All amounts are rounded to 2 dp.

Usage:
    from sales_engines.commission import calculate_commission

    result = calculate_commission(Money.of("462.50"), band_percent=Decimal("20"))
    result.commission_amount        # Money(Decimal('92.50'), ...)
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from sales_engines.tracer import traced_engine
from sales_kernel.domain.values import Money
from sales_kernel.exceptions import (
    CommissionPercentOutOfRangeError,
    MissingCommissionRateError,
    NegativeMarginError,
)
from sales_kernel.logging_config import get_logger

logger = get_logger("engines.commission")

_HUNDRED = Decimal("100")


@dataclass(frozen=True)
class CommissionResult:
    commission_percent: Decimal
    commission_amount: Money
    introducer_share_percent: Decimal
    commission_split_introducer: Money
    commission_split_shopper: Money
    is_override: bool = False
    override_notes: str | None = None


def _percent(field: str, value: Decimal | int | str | None) -> Decimal | None:
    """Parse a percentage; it must lie in 0..100 inclusive."""
    if value is None:
        return None
    percent = value if isinstance(value, Decimal) else Decimal(str(value))
    if not percent.is_finite() or not Decimal("0") <= percent <= _HUNDRED:
        raise CommissionPercentOutOfRangeError(field, str(percent))
    return percent


@traced_engine(
    "commission",
    "1.0",
    fingerprint_fields=("commissionable_margin", "band_percent", "override_percent"),
)
def calculate_commission(
    commissionable_margin: Money,
    *,
    band_percent: Decimal | int | str | None = None,
    override_percent: Decimal | int | str | None = None,
    override_notes: str | None = None,
    introducer_share_percent: Decimal | int | str | None = None,
) -> CommissionResult:
    """
    Split commission on a commissionable margin.

    Raises:
        NegativeMarginError: If the margin is below zero.
        MissingCommissionRateError: If neither an override nor a band
            percentage is available.
        CommissionPercentOutOfRangeError: If the band, override or
            introducer share lies outside 0-100.
    """
    if commissionable_margin.is_negative:
        raise NegativeMarginError(str(commissionable_margin.amount))

    override = _percent("override_percent", override_percent)
    band = _percent("band_percent", band_percent)
    share = _percent("introducer_share_percent", introducer_share_percent) or Decimal("0")
    if override is not None:
        percent = override
        logger.info("commission_override_applied", extra={
            "commission_percent": str(percent),
            "override_notes": override_notes,
        })
    elif band is not None:
        percent = band
    else:
        raise MissingCommissionRateError()

    commission = (commissionable_margin * percent / _HUNDRED).round()

    introducer = (commission * share / _HUNDRED).round()
    shopper = commission - introducer

    logger.info("commission_calculated", extra={
        "commission_percent": str(percent),
        "commission_amount": str(commission.amount),
        "introducer_share_percent": str(share),
        "commission_split_introducer": str(introducer.amount),
        "commission_split_shopper": str(shopper.amount),
    })

    return CommissionResult(
        commission_percent=percent,
        commission_amount=commission,
        introducer_share_percent=share,
        commission_split_introducer=introducer,
        commission_split_shopper=shopper,
        is_override=override is not None,
        override_notes=override_notes if override is not None else None,
    )
