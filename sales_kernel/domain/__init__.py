"""Money and the currencies it can be held in. No ORM, clock or I/O."""

from sales_kernel.domain.currency import CurrencyInfo, CurrencyRegistry
from sales_kernel.domain.values import GBP, Currency, Money, sum_money

__all__ = [
    "GBP",
    "Currency",
    "CurrencyInfo",
    "CurrencyRegistry",
    "Money",
    "sum_money",
]
