"""
Module: sales_kernel.domain.values
Responsibility: Currency and Money, the value types for every price, cost,
    margin and commission in the deal pipeline.
Architecture position: Kernel > Domain.  Pure, no I/O.  Depends only on
    the currency registry and the kernel exceptions.

Invariants enforced:
    - ``Money.amount`` is always a Decimal; floats go through ``str()``.
    - A Currency is always a traded, upper-case ISO code.
    - Money never combines or compares across currencies; there is no FX.
    - Nothing rounds implicitly.  Engines call ``.round()`` at their
      output boundary (half-up, to the currency's minor units).

Failure modes:
    - ValueError for unparseable amounts or untraded currencies.
    - CurrencyMismatchError for cross-currency arithmetic or comparison.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from sales_kernel.domain.currency import CurrencyRegistry
from sales_kernel.exceptions import CurrencyMismatchError


@dataclass(frozen=True, slots=True)
class Currency:
    code: str

    def __post_init__(self) -> None:
        if not CurrencyRegistry.is_valid(self.code):
            raise ValueError(f"Unsupported currency code: {self.code}")
        object.__setattr__(self, "code", self.code.strip().upper())

    @property
    def minor_units(self) -> int:
        return CurrencyRegistry.minor_units(self.code)

    @property
    def symbol(self) -> str:
        return CurrencyRegistry.lookup(self.code).symbol

    def __str__(self) -> str:
        return self.code


GBP = Currency("GBP")


def _to_decimal(value: Decimal | str | int | float) -> Decimal:
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise ValueError(f"Invalid amount: {value}") from exc


def _to_currency(value: Currency | str) -> Currency:
    if isinstance(value, Currency):
        return value
    if isinstance(value, str):
        return Currency(value)
    raise TypeError(f"currency must be Currency or str, got {type(value)}")


@dataclass(frozen=True, slots=True)
class Money:
    """
    An amount in one currency.

    Scalars multiply and divide; Money adds, subtracts and compares only
    with Money in the same currency.
    """

    amount: Decimal
    currency: Currency

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", _to_decimal(self.amount))
        object.__setattr__(self, "currency", _to_currency(self.currency))

    @classmethod
    def of(cls, amount: Decimal | str | int, currency: str | Currency = GBP) -> Money:
        return cls(amount=_to_decimal(amount), currency=_to_currency(currency))

    @classmethod
    def zero(cls, currency: str | Currency = GBP) -> Money:
        return cls(amount=Decimal("0"), currency=_to_currency(currency))

    @property
    def is_zero(self) -> bool:
        return self.amount == 0

    @property
    def is_positive(self) -> bool:
        return self.amount > 0

    @property
    def is_negative(self) -> bool:
        return self.amount < 0

    @property
    def is_finite(self) -> bool:
        return self.amount.is_finite()

    def round(self, rounding: str = ROUND_HALF_UP) -> Money:
        """New Money rounded to the currency's minor units."""
        quantum = CurrencyRegistry.quantum(self.currency.code)
        return Money(self.amount.quantize(quantum, rounding=rounding), self.currency)

    def _same(self, other: Money) -> Money:
        if self.currency != other.currency:
            raise CurrencyMismatchError(self.currency.code, other.currency.code)
        return other

    def __add__(self, other: Money) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        return Money(self.amount + self._same(other).amount, self.currency)

    def __sub__(self, other: Money) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        return Money(self.amount - self._same(other).amount, self.currency)

    def __neg__(self) -> Money:
        return Money(-self.amount, self.currency)

    def __abs__(self) -> Money:
        return Money(abs(self.amount), self.currency)

    def __mul__(self, factor: Decimal | int | str) -> Money:
        if not isinstance(factor, (Decimal, int, str)):
            return NotImplemented
        return Money(self.amount * _to_decimal(factor), self.currency)

    __rmul__ = __mul__

    def __truediv__(self, divisor: Decimal | int | str) -> Money:
        if not isinstance(divisor, (Decimal, int, str)):
            return NotImplemented
        return Money(self.amount / _to_decimal(divisor), self.currency)

    def __lt__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        return self.amount < self._same(other).amount

    def __le__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        return self.amount <= self._same(other).amount

    def __gt__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        return self.amount > self._same(other).amount

    def __ge__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        return self.amount >= self._same(other).amount

    def __str__(self) -> str:
        return f"{self.currency.symbol}{self.amount}"


def sum_money(values: Iterable[Money], currency: str | Currency = GBP) -> Money:
    """Sum Money in one currency; empty input gives zero."""
    total = Money.zero(currency)
    for value in values:
        total = total + value
    return total
