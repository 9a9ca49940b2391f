"""
sales_config -- single public entrypoint for pricing configuration.

Responsibility:
    Provides the ONLY way to obtain pricing configuration at runtime
    through ``get_pricing_config()``.  Engines accept a ``PricingConfig``
    argument and never read files or environment variables themselves.

Architecture position:
    Configuration -- YAML-driven, validated at load time.  Sits above
    ``sales_kernel`` and beside ``sales_engines``.  The kernel MUST NEVER
    import from ``sales_config``.

Invariants enforced:
    - Single entrypoint: all runtime pricing config flows through
      ``get_pricing_config()``.
    - Deterministic: the same YAML always yields the same checksum.

Failure modes:
    - ``FileNotFoundError`` -- no pricing.yaml in the requested set.
    - ``PricingConfigError`` -- missing keys or invalid values.

Audit relevance:
    Every load emits a ``PRICING_CONFIG_LOADED`` log entry with the
    config_id, version and checksum, tying cost estimates back to the
    exact configuration that produced them.
"""

from __future__ import annotations

import logging
from pathlib import Path

from sales_config.loader import load_pricing_config, parse_pricing_config
from sales_config.schema import (
    CardFeeConfig,
    PricingConfig,
    ReferenceConfig,
    ShippingConfig,
    ShippingRoute,
)

_logger = logging.getLogger("sales_kernel.config")

# Default configuration sets directory
_DEFAULT_CONFIG_DIR = Path(__file__).parent / "sets" / "default"

_cache: dict[Path, PricingConfig] = {}


def get_pricing_config(config_dir: Path | None = None) -> PricingConfig:
    """The ONLY public pricing configuration entrypoint.

    Args:
        config_dir: Directory holding ``pricing.yaml``.  Defaults to
            sales_config/sets/default/.

    Returns:
        PricingConfig, cached per resolved path.

    Raises:
        FileNotFoundError: If pricing.yaml does not exist.
        PricingConfigError: If the file fails validation.
    """
    path = (Path(config_dir) if config_dir else _DEFAULT_CONFIG_DIR) / "pricing.yaml"
    path = path.resolve()

    cached = _cache.get(path)
    if cached is not None:
        return cached

    config = load_pricing_config(path)
    _cache[path] = config

    _logger.info(
        "PRICING_CONFIG_LOADED",
        extra={
            "trace_type": "PRICING_CONFIG_LOADED",
            "config_id": config.config_id,
            "config_version": config.version,
            "checksum": config.checksum,
            "path": str(path),
            "route_count": len(config.shipping.routes),
        },
    )
    return config


def clear_config_cache() -> None:
    """Drop cached configs (tests and config reloads)."""
    _cache.clear()


__all__ = [
    "CardFeeConfig",
    "PricingConfig",
    "ReferenceConfig",
    "ShippingConfig",
    "ShippingRoute",
    "clear_config_cache",
    "get_pricing_config",
    "parse_pricing_config",
]
