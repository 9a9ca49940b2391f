"""
Tax Scenario Classifier - Map deal questionnaire answers to a VAT scenario.

Staff answer up to five questions while creating a trade:

    item_location     uk | outside
    client_location   uk | outside
    purchase_type     retail | margin     (asked when the item is in the UK)
    direct_ship       yes | no            (item outside, client in the UK)
    insurance_landed  yes | no            (asked when direct_ship = yes)

The classifier walks the decision tree below and returns the TaxScenario
for the leaf reached, or None while a question on the current branch is
still unanswered.  It never raises: absence means "keep collecting input".

    item=uk
      client=uk       retail -> 425   margin -> 424
      client=outside  -> 423 (purchase_type required, outcome unchanged)
    item=outside
      client=outside  -> 423
      client=uk
        direct_ship=no   -> 425 (import, then domestic sale)
        direct_ship=yes
          landed=yes     -> 423
          landed=no      -> 423 + warning note

The leaf only picks the account code and the leaf-specific wording; tax
type, label, branding theme and line amount type come from the account
code table in ``sales_engines.account_codes``.

Usage:
    from sales_engines.tax_scenario import classify

    scenario = classify("uk", "uk", "retail")
    scenario.account_code   # "425"
    scenario.vat_rate       # Decimal("0.20")
    classify("uk", "uk")    # None -- purchase_type not answered yet
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, TypeVar

from sales_engines.account_codes import (
    DOMESTIC_VAT,
    EXPORT_ZERO_RATED,
    MARGIN_SCHEME,
    AmountsAre,
    treatment_for,
)
from sales_engines.tracer import traced_engine
from sales_kernel.logging_config import get_logger

logger = get_logger("engines.tax_scenario")


class Location(str, Enum):
    UK = "uk"
    OUTSIDE = "outside"


class PurchaseType(str, Enum):
    RETAIL = "retail"  # Bought with VAT from a retailer
    MARGIN = "margin"  # Bought second-hand without VAT


class Answer(str, Enum):
    YES = "yes"
    NO = "no"


class ScenarioKind(str, Enum):
    """Leaf of the decision tree."""

    UK_DOMESTIC_RETAIL = "uk_domestic_retail"
    UK_MARGIN_SCHEME = "uk_margin_scheme"
    UK_EXPORT = "uk_export"
    OFFSHORE = "offshore"
    IMPORT_THEN_DOMESTIC = "import_then_domestic"
    DIRECT_SHIP_LANDED = "direct_ship_landed"
    DIRECT_SHIP_NOT_LANDED = "direct_ship_not_landed"


_E = TypeVar("_E", bound=Enum)


def _coerce(enum_cls: type[_E], value: Any) -> _E | None:
    """Normalize a raw answer; anything unrecognised counts as unanswered."""
    if value is None or isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        try:
            return enum_cls(value.strip().lower())
        except ValueError:
            return None
    return None


@dataclass(frozen=True)
class DealInputs:
    """
    Questionnaire answers, each None until answered.

    Raw strings are coerced to the enums on construction.
    """

    item_location: Location | None = None
    client_location: Location | None = None
    purchase_type: PurchaseType | None = None
    direct_ship: Answer | None = None
    insurance_landed: Answer | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "item_location", _coerce(Location, self.item_location))
        object.__setattr__(self, "client_location", _coerce(Location, self.client_location))
        object.__setattr__(self, "purchase_type", _coerce(PurchaseType, self.purchase_type))
        object.__setattr__(self, "direct_ship", _coerce(Answer, self.direct_ship))
        object.__setattr__(self, "insurance_landed", _coerce(Answer, self.insurance_landed))


@dataclass(frozen=True)
class TaxScenario:
    """
    Classifier output.

    Immutable value object.  ``tax_liability``, ``vat_reclaim`` and
    ``note`` are informational text shown to staff.
    """

    kind: ScenarioKind
    account_code: str
    tax_type: str
    tax_label: str
    amounts_are: AmountsAre
    brand_theme: str
    tax_liability: str
    vat_reclaim: str
    note: str | None = None

    @property
    def vat_rate(self) -> Decimal:
        """VAT rate bound to the account code."""
        return treatment_for(self.account_code).vat_rate

    @property
    def is_zero_rated(self) -> bool:
        return self.vat_rate == Decimal("0")


@dataclass(frozen=True)
class _Leaf:
    account_code: str
    tax_liability: str
    vat_reclaim: str
    note: str | None = None


_NO_LIABILITY = "No liability, provide client item price plus margin plus delivery"

_LEAVES: dict[ScenarioKind, _Leaf] = {
    ScenarioKind.UK_DOMESTIC_RETAIL: _Leaf(
        account_code=DOMESTIC_VAT,
        tax_liability=(
            "Full price of item plus 20% VAT on first line\n"
            "+ Service Fee on second line"
        ),
        vat_reclaim="Not reclaimable: VAT paid on the purchase is treated as a cost",
    ),
    ScenarioKind.UK_MARGIN_SCHEME: _Leaf(
        account_code=MARGIN_SCHEME,
        tax_liability="Item is purchased on UK margin rule",
        vat_reclaim="None: input VAT is not reclaimable under the margin scheme",
    ),
    ScenarioKind.UK_EXPORT: _Leaf(
        account_code=EXPORT_ZERO_RATED,
        tax_liability="Item leaves the UK: zero-rated export, no UK VAT on the sale",
        vat_reclaim="Export evidence required to support zero rating",
    ),
    ScenarioKind.OFFSHORE: _Leaf(
        account_code=EXPORT_ZERO_RATED,
        tax_liability=_NO_LIABILITY,
        vat_reclaim="None",
    ),
    ScenarioKind.IMPORT_THEN_DOMESTIC: _Leaf(
        account_code=DOMESTIC_VAT,
        tax_liability="Full VAT needs adding to Cost and Sale Price",
        vat_reclaim="Import VAT paid at the border is reclaimable",
        note="Item needs to come to UK",
    ),
    ScenarioKind.DIRECT_SHIP_LANDED: _Leaf(
        account_code=EXPORT_ZERO_RATED,
        tax_liability=_NO_LIABILITY,
        vat_reclaim="None",
    ),
    ScenarioKind.DIRECT_SHIP_NOT_LANDED: _Leaf(
        account_code=EXPORT_ZERO_RATED,
        tax_liability=_NO_LIABILITY,
        vat_reclaim="None",
        note=(
            "Delivery is not landed: the client may have to pay import "
            "duties and VAT when the item arrives"
        ),
    ),
}


def _resolve_kind(inputs: DealInputs) -> ScenarioKind | None:
    if inputs.item_location is Location.UK:
        if inputs.client_location is None or inputs.purchase_type is None:
            return None
        if inputs.client_location is Location.OUTSIDE:
            return ScenarioKind.UK_EXPORT
        if inputs.purchase_type is PurchaseType.RETAIL:
            return ScenarioKind.UK_DOMESTIC_RETAIL
        return ScenarioKind.UK_MARGIN_SCHEME

    if inputs.item_location is Location.OUTSIDE:
        if inputs.client_location is None:
            return None
        if inputs.client_location is Location.OUTSIDE:
            return ScenarioKind.OFFSHORE
        if inputs.direct_ship is None:
            return None
        if inputs.direct_ship is Answer.NO:
            return ScenarioKind.IMPORT_THEN_DOMESTIC
        if inputs.insurance_landed is None:
            return None
        if inputs.insurance_landed is Answer.YES:
            return ScenarioKind.DIRECT_SHIP_LANDED
        return ScenarioKind.DIRECT_SHIP_NOT_LANDED

    return None


def scenario_for(kind: ScenarioKind) -> TaxScenario:
    """Build the TaxScenario for a decision-tree leaf."""
    leaf = _LEAVES[kind]
    treatment = treatment_for(leaf.account_code)
    return TaxScenario(
        kind=kind,
        account_code=treatment.code,
        tax_type=treatment.tax_type.value,
        tax_label=treatment.tax_label,
        amounts_are=treatment.amounts_are,
        brand_theme=treatment.brand_theme,
        tax_liability=leaf.tax_liability,
        vat_reclaim=leaf.vat_reclaim,
        note=leaf.note,
    )


def classify_deal(inputs: DealInputs) -> TaxScenario | None:
    """Classify a DealInputs; None while the current branch is incomplete."""
    kind = _resolve_kind(inputs)
    if kind is None:
        logger.debug("tax_scenario_incomplete", extra={
            "missing": list(missing_answers(inputs)),
        })
        return None

    scenario = scenario_for(kind)
    logger.info("tax_scenario_classified", extra={
        "scenario": kind.value,
        "account_code": scenario.account_code,
        "brand_theme": scenario.brand_theme,
        "has_note": scenario.note is not None,
    })
    return scenario


@traced_engine(
    "tax_scenario",
    "1.0",
    fingerprint_fields=(
        "item_location",
        "client_location",
        "purchase_type",
        "direct_ship",
        "insurance_landed",
    ),
)
def classify(
    item_location: Location | str | None,
    client_location: Location | str | None,
    purchase_type: PurchaseType | str | None = None,
    direct_ship: Answer | str | None = None,
    insurance_landed: Answer | str | None = None,
) -> TaxScenario | None:
    """
    Classify the five questionnaire answers.

    Answers irrelevant to the branch taken are ignored: an offshore sale
    (outside -> outside) resolves without direct_ship or insurance_landed.

    Returns:
        TaxScenario, or None until the answers needed for the current
        branch are all present.
    """
    return classify_deal(
        DealInputs(
            item_location=item_location,
            client_location=client_location,
            purchase_type=purchase_type,
            direct_ship=direct_ship,
            insurance_landed=insurance_landed,
        )
    )


def missing_answers(inputs: DealInputs) -> tuple[str, ...]:
    """
    Names of the questions still required on the current branch.

    Empty once the inputs resolve to a scenario.
    """
    if inputs.item_location is None:
        return ("item_location",)

    if inputs.item_location is Location.UK:
        missing = []
        if inputs.client_location is None:
            missing.append("client_location")
        if inputs.purchase_type is None:
            missing.append("purchase_type")
        return tuple(missing)

    if inputs.client_location is None:
        return ("client_location",)
    if inputs.client_location is Location.OUTSIDE:
        return ()
    if inputs.direct_ship is None:
        return ("direct_ship",)
    if inputs.direct_ship is Answer.YES and inputs.insurance_landed is None:
        return ("insurance_landed",)
    return ()
