"""
Typed exception hierarchy for the Sales OS deal engine.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Tax and margin errors must be handled precisely. A caller that decides
whether a sale may be created cannot parse message strings:

    try:
        breakdown = compute_costs(items, PaymentMethod.CARD, "UK",
                                  account_code=scenario.account_code)
    except UnmappedAccountCodeError as e:
        return api_error(code=e.code, account_code=e.account_code)

Every exception:
  1. has a typed class (catch by type, not message);
  2. has a class-level ``code`` attribute (machine-readable, API-safe);
  3. carries structured data as attributes.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    SalesKernelError (base)
    |
    +-- TaxConfigurationError
    |   +-- UnmappedAccountCodeError
    |   +-- UnknownBrandingThemeError
    |
    +-- TradeValidationError
    |   +-- InvalidTradeItemError
    |   +-- CurrencyMismatchError
    |   +-- InvalidTradeCostError
    |
    +-- CommissionError
    |   +-- NegativeMarginError
    |   +-- CommissionPercentOutOfRangeError
    |   +-- MissingCommissionRateError
    |
    +-- LifecycleError
    |   +-- InvalidStatusTransitionError
    |
    +-- ConfigurationError
    |   +-- PricingConfigError
    |
    +-- SequenceError
        +-- SequenceAllocationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category    | Code                        | When Raised
------------|-----------------------------|-------------------------------------------
Tax         | UNMAPPED_ACCOUNT_CODE       | Account code has no VAT rate / theme entry
            | UNKNOWN_BRANDING_THEME      | Theme id or name not in the catalogue
------------|-----------------------------|-------------------------------------------
Trade       | INVALID_TRADE_ITEM          | Non-positive quantity, negative price
            | CURRENCY_MISMATCH           | Money arithmetic across currencies
            | INVALID_TRADE_COST          | Negative shipping, direct costs or introducer fee
------------|-----------------------------|-------------------------------------------
Commission  | NEGATIVE_MARGIN             | Commissionable margin below zero
            | MISSING_COMMISSION_RATE     | No band and no admin override
            | COMMISSION_PERCENT_OUT_OF_RANGE | Band, override or introducer % outside 0-100
------------|-----------------------------|-------------------------------------------
Lifecycle   | INVALID_STATUS_TRANSITION   | Status change not on the lifecycle chain
------------|-----------------------------|-------------------------------------------
Config      | PRICING_CONFIG_INVALID      | pricing.yaml missing keys or bad values
------------|-----------------------------|-------------------------------------------
Sequence    | SEQUENCE_ALLOCATION_FAILED  | Counter row could not be locked/created

===============================================================================
DESIGN DECISIONS
===============================================================================

1. An unmapped account code is a hard error. Historical code silently
   defaulted to 20% VAT on unknown themes; that misreports tax on exports.
2. Classifier incompleteness is NOT an exception -- it is ``None``.
3. Exceptions inherit from ``Exception`` (not ValueError) so domain errors
   can be caught as a group without catching programming errors.
"""


class SalesKernelError(Exception):
    """
    Base exception for all deal engine errors.

    All subclasses must have a ``code`` class attribute.
    """

    code: str = "SALES_KERNEL_ERROR"


# Tax configuration exceptions


class TaxConfigurationError(SalesKernelError):
    """Base exception for VAT / account code table errors."""

    code: str = "TAX_CONFIGURATION_ERROR"


class UnmappedAccountCodeError(TaxConfigurationError):
    """Account code is not in the closed account-code table."""

    code: str = "UNMAPPED_ACCOUNT_CODE"

    def __init__(self, account_code: str | None, known_codes: list[str]):
        self.account_code = account_code
        self.known_codes = known_codes
        super().__init__(
            f"Unmapped account code: {account_code!r}. "
            f"Cannot determine VAT rate (known codes: {', '.join(known_codes)})"
        )


class UnknownBrandingThemeError(TaxConfigurationError):
    """Branding theme id or name has no mapping."""

    code: str = "UNKNOWN_BRANDING_THEME"

    def __init__(self, brand_theme: str | None):
        self.brand_theme = brand_theme
        super().__init__(
            f'Unknown branding theme: "{brand_theme}". Cannot determine VAT rate.'
        )


# Trade validation exceptions


class TradeValidationError(SalesKernelError):
    """Base exception for malformed trade input."""

    code: str = "TRADE_VALIDATION_ERROR"


class InvalidTradeItemError(TradeValidationError):
    """Trade item fails boundary validation."""

    code: str = "INVALID_TRADE_ITEM"

    def __init__(self, item_index: int, field: str, value: str, reason: str):
        self.item_index = item_index
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(
            f"Invalid trade item #{item_index}: {field}={value} ({reason})"
        )


class CurrencyMismatchError(TradeValidationError):
    """Attempted operation on mismatched currencies."""

    code: str = "CURRENCY_MISMATCH"

    def __init__(self, currency1: str, currency2: str):
        self.currency1 = currency1
        self.currency2 = currency2
        super().__init__(f"Currency mismatch: {currency1} vs {currency2}")


class InvalidTradeCostError(TradeValidationError):
    """A trade-level cost (shipping, direct costs, introducer commission) is invalid."""

    code: str = "INVALID_TRADE_COST"

    def __init__(self, field: str, value: str, reason: str):
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid trade cost: {field}={value} ({reason})")


# Commission exceptions


class CommissionError(SalesKernelError):
    """Base exception for commission calculation errors."""

    code: str = "COMMISSION_ERROR"


class NegativeMarginError(CommissionError):
    """Commission cannot be calculated on a negative margin."""

    code: str = "NEGATIVE_MARGIN"

    def __init__(self, commissionable_margin: str):
        self.commissionable_margin = commissionable_margin
        super().__init__(
            f"Commissionable margin cannot be negative: {commissionable_margin}"
        )


class CommissionPercentOutOfRangeError(CommissionError):
    """A commission, override or introducer percentage lies outside 0-100."""

    code: str = "COMMISSION_PERCENT_OUT_OF_RANGE"

    def __init__(self, field: str, percent: str):
        self.field = field
        self.percent = percent
        super().__init__(f"{field} must be between 0 and 100, got {percent}")


class MissingCommissionRateError(CommissionError):
    """No commission band assigned and no admin override given."""

    code: str = "MISSING_COMMISSION_RATE"

    def __init__(self) -> None:
        super().__init__(
            "No commission percentage available "
            "(no commission band assigned and no admin override)"
        )


# Lifecycle exceptions


class LifecycleError(SalesKernelError):
    """Base exception for deal lifecycle errors."""

    code: str = "LIFECYCLE_ERROR"


class InvalidStatusTransitionError(LifecycleError):
    """Status change is not permitted by the lifecycle."""

    code: str = "INVALID_STATUS_TRANSITION"

    def __init__(self, current_status: str, next_status: str, allowed: list[str]):
        self.current_status = current_status
        self.next_status = next_status
        self.allowed = allowed
        super().__init__(
            f"Invalid transition: {current_status} -> {next_status} "
            f"(allowed: {', '.join(allowed) or 'none'})"
        )


# Configuration exceptions


class ConfigurationError(SalesKernelError):
    """Base exception for configuration errors."""

    code: str = "CONFIGURATION_ERROR"


class PricingConfigError(ConfigurationError):
    """Pricing configuration is missing a key or holds an invalid value."""

    code: str = "PRICING_CONFIG_INVALID"

    def __init__(self, path: str, key: str, reason: str):
        self.path = path
        self.key = key
        self.reason = reason
        super().__init__(f"Invalid pricing config {path}: {key} ({reason})")


# Sequence exceptions


class SequenceError(SalesKernelError):
    """Base exception for sequence allocation errors."""

    code: str = "SEQUENCE_ERROR"


class SequenceAllocationError(SequenceError):
    """Counter row could not be created or locked."""

    code: str = "SEQUENCE_ALLOCATION_FAILED"

    def __init__(self, sequence_name: str, reason: str):
        self.sequence_name = sequence_name
        self.reason = reason
        super().__init__(f"Cannot allocate from sequence {sequence_name}: {reason}")
