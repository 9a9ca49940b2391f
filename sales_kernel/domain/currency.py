"""
Traded currencies.

Items are bought and sold in a handful of currencies; only GBP (the
settlement currency) takes part in margin and VAT aggregates.  Each
entry fixes the currency's minor units, which drive Money rounding.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import ClassVar


@dataclass(frozen=True)
class CurrencyInfo:
    code: str
    minor_units: int
    name: str
    symbol: str

    @property
    def quantum(self) -> Decimal:
        """Smallest representable amount: 0.01 for GBP, 1 for JPY."""
        return Decimal(1).scaleb(-self.minor_units)


def _normalize(code: object) -> str | None:
    if not isinstance(code, str) or not code.strip():
        return None
    return code.strip().upper()


class CurrencyRegistry:
    """Currencies the brokerage trades in, keyed by ISO 4217 code."""

    SETTLEMENT_CURRENCY: ClassVar[str] = "GBP"
    DEFAULT_MINOR_UNITS: ClassVar[int] = 2

    _TRADED: ClassVar[dict[str, CurrencyInfo]] = {
        info.code: info
        for info in (
            CurrencyInfo("GBP", 2, "Pound Sterling", "£"),
            CurrencyInfo("EUR", 2, "Euro", "€"),
            CurrencyInfo("USD", 2, "US Dollar", "$"),
            CurrencyInfo("CHF", 2, "Swiss Franc", "CHF"),
            CurrencyInfo("HKD", 2, "Hong Kong Dollar", "HK$"),
            CurrencyInfo("SGD", 2, "Singapore Dollar", "S$"),
            CurrencyInfo("AED", 2, "UAE Dirham", "AED"),
            CurrencyInfo("JPY", 0, "Japanese Yen", "¥"),
        )
    }

    @classmethod
    def lookup(cls, code: object) -> CurrencyInfo | None:
        normalized = _normalize(code)
        return cls._TRADED.get(normalized) if normalized else None

    @classmethod
    def is_valid(cls, code: object) -> bool:
        return cls.lookup(code) is not None

    @classmethod
    def require(cls, code: object) -> str:
        """
        Normalized code for a traded currency.

        Raises:
            ValueError: For blank, malformed or untraded codes.
        """
        normalized = _normalize(code)
        if normalized is None or len(normalized) != 3:
            raise ValueError(f"Invalid currency code: {code!r}")
        if normalized not in cls._TRADED:
            raise ValueError(f"Unsupported currency code: {code!r}")
        return normalized

    @classmethod
    def minor_units(cls, code: object) -> int:
        info = cls.lookup(code)
        return info.minor_units if info else cls.DEFAULT_MINOR_UNITS

    @classmethod
    def quantum(cls, code: object) -> Decimal:
        return Decimal(1).scaleb(-cls.minor_units(code))

    @classmethod
    def all_codes(cls) -> frozenset[str]:
        return frozenset(cls._TRADED)
