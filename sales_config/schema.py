"""
Pricing configuration schema.

The YAML pricing set is parsed into these frozen dataclasses by the
loader.  Engines receive a ``PricingConfig`` and never read files.

All money amounts are Decimal in the settlement currency.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

# ---------------------------------------------------------------------------
# Card fees
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CardFeeConfig:
    """Card processing fee: percent of total sell price plus a flat fee."""

    percent: Decimal  # 2.5 means 2.5%
    flat: Decimal = Decimal("0")

    @property
    def rate(self) -> Decimal:
        return self.percent / Decimal("100")


# ---------------------------------------------------------------------------
# Shipping
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ShippingRoute:
    from_region: str
    to_region: str
    cost: Decimal

    @property
    def key(self) -> str:
        return f"{self.from_region}_{self.to_region}"


@dataclass(frozen=True)
class ShippingConfig:
    """
    Region table and route costs.

    ``regions`` maps a lower-case country name to a region; countries not
    listed fall into ``default_region``.  Routes absent from ``routes``
    cost ``default_cost``.
    """

    regions: tuple[tuple[str, str], ...]
    routes: tuple[ShippingRoute, ...]
    default_cost: Decimal
    default_region: str = "Other"

    def region_for(self, country: str | None) -> str:
        if not country:
            return self.default_region
        key = country.strip().lower()
        for name, region in self.regions:
            if name == key:
                return region
        return self.default_region

    def route_cost(self, from_region: str, to_region: str) -> Decimal:
        for route in self.routes:
            if route.from_region == from_region and route.to_region == to_region:
                return route.cost
        return self.default_cost


# ---------------------------------------------------------------------------
# Sale reference format
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ReferenceConfig:
    prefix: str = "C19"
    width: int = 4


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PricingConfig:
    """Root of a pricing configuration set."""

    config_id: str
    version: int
    settlement_currency: str
    card_fee: CardFeeConfig
    shipping: ShippingConfig
    reference: ReferenceConfig
    checksum: str = ""
