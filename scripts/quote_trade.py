#!/usr/bin/env python3
"""
Quote a single-item trade: VAT scenario plus cost breakdown, as JSON.

Usage:
    python3 scripts/quote_trade.py --item uk --client uk --purchase retail \\
        --buy 1000 --sell 1500 --payment card --delivery UK

Examples:
    # Import then domestic sale (item abroad, client in the UK)
    python3 scripts/quote_trade.py --item outside --client uk --direct-ship no \\
        --buy 2000 --sell 2600 --payment bank_transfer --delivery UK \\
        --supplier-country France

    # Also allocate the next sale reference from a database
    python3 scripts/quote_trade.py ... --db-url sqlite:///sales.db

Exit codes:
    0  quote produced
    1  invalid input
    2  questionnaire incomplete (the missing questions are printed)
"""

import argparse
import json
import logging
import sys
from dataclasses import asdict
from decimal import Decimal, InvalidOperation
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

EXIT_OK = 0
EXIT_INVALID = 1
EXIT_INCOMPLETE = 2


def _decimal(value: str) -> Decimal:
    try:
        return Decimal(value)
    except InvalidOperation as exc:
        raise argparse.ArgumentTypeError(f"not a number: {value!r}") from exc


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Classify a trade's VAT scenario and estimate its costs.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    q = parser.add_argument_group("questionnaire")
    q.add_argument("--item", dest="item_location", choices=["uk", "outside"])
    q.add_argument("--client", dest="client_location", choices=["uk", "outside"])
    q.add_argument("--purchase", dest="purchase_type", choices=["retail", "margin"])
    q.add_argument("--direct-ship", choices=["yes", "no"])
    q.add_argument("--landed", dest="insurance_landed", choices=["yes", "no"])

    item = parser.add_argument_group("item")
    item.add_argument("--buy", type=_decimal, required=True, help="Unit buy price")
    item.add_argument("--sell", type=_decimal, required=True, help="Unit sell price")
    item.add_argument("--quantity", type=int, default=1)
    item.add_argument("--currency", default="GBP", help="Buy and sell currency")
    item.add_argument("--brand", default="")
    item.add_argument("--category", default="")
    item.add_argument("--description", default="")
    item.add_argument("--supplier-country", default=None)

    costs = parser.add_argument_group("costs")
    costs.add_argument("--payment", choices=["card", "bank_transfer"], default="bank_transfer")
    costs.add_argument("--delivery", dest="delivery_country", default="UK")
    costs.add_argument("--other-costs", type=_decimal, default=None)
    costs.add_argument("--introducer-commission", type=_decimal, default=None)
    costs.add_argument("--shipping", type=_decimal, default=None,
                       help="Override the shipping estimate (0 for hand delivery)")

    parser.add_argument("--db-url", default=None,
                        help="Allocate the next sale reference from this database")
    parser.add_argument("--last-reference", default=None,
                        help="Most recent legacy reference to continue numbering after")
    parser.add_argument("--verbose", action="store_true", help="Emit structured logs to stderr")
    return parser


def _scenario_dict(scenario) -> dict:
    data = asdict(scenario)
    data["vat_rate"] = scenario.vat_rate
    return data


def _costs_dict(costs) -> dict:
    data = {
        name: (value.amount if hasattr(value, "amount") else value)
        for name, value in vars(costs).items()
    }
    data["gross_margin_percent"] = costs.gross_margin_percent
    data["commissionable_margin_percent"] = costs.commissionable_margin_percent
    return data


def _warnings_list(warnings) -> list[dict]:
    return [{"code": w.code, "message": w.message} for w in warnings]


def _allocate_reference(db_url: str, last_reference: str | None) -> str:
    from sales_kernel.db.engine import create_tables, init_engine_from_url, session_scope
    from sales_services.reference_service import SaleReferenceService

    init_engine_from_url(db_url)
    create_tables()
    with session_scope() as session:
        return SaleReferenceService(session).allocate(last_reference=last_reference)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    from sales_kernel.logging_config import configure_logging

    if args.verbose:
        configure_logging(level=logging.DEBUG)
    else:
        logging.getLogger("sales_kernel").setLevel(logging.CRITICAL + 1)

    from sales_engines.costs import TradeItem
    from sales_engines.tax_scenario import DealInputs
    from sales_kernel.domain.values import Money
    from sales_kernel.exceptions import SalesKernelError
    from sales_services.quote_service import quote_trade

    inputs = DealInputs(
        item_location=args.item_location,
        client_location=args.client_location,
        purchase_type=args.purchase_type,
        direct_ship=args.direct_ship,
        insurance_landed=args.insurance_landed,
    )

    try:
        item = TradeItem(
            brand=args.brand,
            category=args.category,
            description=args.description,
            quantity=args.quantity,
            buy_price=Money.of(args.buy, args.currency),
            sell_price=Money.of(args.sell, args.currency),
            supplier_country=args.supplier_country,
        )
        quote = quote_trade(
            inputs,
            [item],
            args.payment,
            args.delivery_country,
            other_direct_costs=args.other_costs,
            introducer_commission=args.introducer_commission,
            shipping_override=args.shipping,
        )
    except (SalesKernelError, ValueError) as exc:
        print(f"  ERROR: {exc}", file=sys.stderr)
        return EXIT_INVALID

    if not quote.is_complete:
        print(json.dumps({
            "complete": False,
            "missing": list(quote.missing),
            "warnings": _warnings_list(quote.warnings),
        }, indent=2))
        return EXIT_INCOMPLETE

    output = {
        "complete": True,
        "scenario": _scenario_dict(quote.scenario),
        "costs": _costs_dict(quote.costs),
        "warnings": _warnings_list(quote.warnings),
    }
    if args.db_url:
        output["sale_reference"] = _allocate_reference(args.db_url, args.last_reference)

    print(json.dumps(output, indent=2, default=str))
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
