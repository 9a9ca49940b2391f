"""
Configuration Loader (``sales_config.loader``).

Responsibility
--------------
Loads the pricing YAML file and parses it into the frozen
``sales_config.schema`` dataclasses.  Runtime callers use
``sales_config.get_pricing_config()``; this module is the parsing layer
underneath it.

Invariants enforced
-------------------
* Every parse error raises ``PricingConfigError`` naming the file and
  key; required fields never get silent defaults.
* Money values are parsed as Decimal from strings, never via float.
* ``compute_checksum`` is a deterministic SHA-256 of the parsed payload.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing key / bad value  -> ``PricingConfigError``.
"""

from __future__ import annotations

import hashlib
import json
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from sales_config.schema import (
    CardFeeConfig,
    PricingConfig,
    ReferenceConfig,
    ShippingConfig,
    ShippingRoute,
)
from sales_kernel.domain.currency import CurrencyRegistry
from sales_kernel.exceptions import PricingConfigError


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def _require(data: dict[str, Any], key: str, path: str) -> Any:
    if not isinstance(data, dict) or key not in data:
        raise PricingConfigError(path, key, "missing required key")
    return data[key]


def parse_decimal(value: Any, key: str, path: str, *, allow_negative: bool = False) -> Decimal:
    """Parse a Decimal from a YAML string or int; floats go through str()."""
    if isinstance(value, bool) or value is None:
        raise PricingConfigError(path, key, f"expected a number, got {value!r}")
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise PricingConfigError(path, key, f"not a number: {value!r}") from e
    if not result.is_finite():
        raise PricingConfigError(path, key, "must be finite")
    if result < 0 and not allow_negative:
        raise PricingConfigError(path, key, "must not be negative")
    return result


def parse_card_fee(data: dict[str, Any], path: str) -> CardFeeConfig:
    percent = parse_decimal(_require(data, "percent", path), "card_fee.percent", path)
    if percent > Decimal("100"):
        raise PricingConfigError(path, "card_fee.percent", "must be at most 100")
    return CardFeeConfig(
        percent=percent,
        flat=parse_decimal(data.get("flat", "0"), "card_fee.flat", path),
    )


def parse_shipping(data: dict[str, Any], path: str) -> ShippingConfig:
    regions_raw = _require(data, "regions", path)
    routes_raw = _require(data, "routes", path)
    if not isinstance(regions_raw, dict):
        raise PricingConfigError(path, "shipping.regions", "must be a mapping")
    if not isinstance(routes_raw, dict):
        raise PricingConfigError(path, "shipping.routes", "must be a mapping")

    regions = tuple(
        sorted((str(name).strip().lower(), str(region)) for name, region in regions_raw.items())
    )

    routes = []
    for key, cost in sorted(routes_raw.items()):
        from_region, sep, to_region = str(key).partition("_")
        if not sep or not from_region or not to_region:
            raise PricingConfigError(
                path, f"shipping.routes.{key}", "route key must be <from>_<to>"
            )
        routes.append(
            ShippingRoute(
                from_region=from_region,
                to_region=to_region,
                cost=parse_decimal(cost, f"shipping.routes.{key}", path),
            )
        )

    return ShippingConfig(
        regions=regions,
        routes=tuple(routes),
        default_cost=parse_decimal(
            _require(data, "default_cost", path), "shipping.default_cost", path
        ),
        default_region=str(data.get("default_region", "Other")),
    )


def parse_reference(data: dict[str, Any] | None, path: str) -> ReferenceConfig:
    if not data:
        return ReferenceConfig()
    width = data.get("width", 4)
    if isinstance(width, bool) or not isinstance(width, int) or width < 1:
        raise PricingConfigError(path, "reference.width", "must be a positive integer")
    prefix = str(data.get("prefix", "C19")).strip()
    if not prefix:
        raise PricingConfigError(path, "reference.prefix", "must not be empty")
    return ReferenceConfig(prefix=prefix, width=width)


def compute_checksum(data: dict[str, Any]) -> str:
    """Deterministic SHA-256 of a parsed YAML payload."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def parse_pricing_config(data: dict[str, Any], path: str = "<memory>") -> PricingConfig:
    """Parse a pricing dict into a PricingConfig."""
    settlement = str(data.get("settlement_currency", CurrencyRegistry.SETTLEMENT_CURRENCY))
    if not CurrencyRegistry.is_valid(settlement):
        raise PricingConfigError(path, "settlement_currency", f"unsupported currency {settlement!r}")

    version = data.get("version", 1)
    if isinstance(version, bool) or not isinstance(version, int):
        raise PricingConfigError(path, "version", "must be an integer")

    return PricingConfig(
        config_id=str(data.get("config_id", "default")),
        version=version,
        settlement_currency=settlement.strip().upper(),
        card_fee=parse_card_fee(_require(data, "card_fee", path), path),
        shipping=parse_shipping(_require(data, "shipping", path), path),
        reference=parse_reference(data.get("reference"), path),
        checksum=compute_checksum(data),
    )


def load_pricing_config(path: Path) -> PricingConfig:
    """Load and parse one pricing YAML file."""
    return parse_pricing_config(load_yaml_file(path), str(path))
