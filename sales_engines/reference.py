"""
Sale references - ``C19-NNNN`` formatting and parsing.

Pure helpers.  ``next_sale_reference`` derives the successor of a known
reference; it does not serialize concurrent callers.  Allocation for new
sales goes through ``sales_services.SaleReferenceService``, which holds a
locked database counter.

    next_sale_reference(None)         "C19-0001"
    next_sale_reference("C19-0042")   "C19-0043"
    next_sale_reference("garbage")    "C19-0001"
    next_sale_reference("C19-9999")   "C19-10000"
"""

from __future__ import annotations

import re

DEFAULT_PREFIX = "C19"
DEFAULT_WIDTH = 4


def _pattern(prefix: str) -> re.Pattern[str]:
    return re.compile(rf"{re.escape(prefix)}-(\d+)")


def format_sale_reference(
    number: int,
    prefix: str = DEFAULT_PREFIX,
    width: int = DEFAULT_WIDTH,
) -> str:
    """Zero-pad ``number`` to ``width`` digits; larger numbers keep all digits."""
    if number < 1:
        raise ValueError(f"Sale reference number must be positive: {number}")
    return f"{prefix}-{number:0{width}d}"


def parse_sale_reference(reference: str | None, prefix: str = DEFAULT_PREFIX) -> int | None:
    """Numeric suffix of a well-formed reference, else None."""
    if not reference:
        return None
    match = _pattern(prefix).fullmatch(reference.strip())
    if match is None:
        return None
    return int(match.group(1))


def next_sale_reference(
    last_reference: str | None,
    prefix: str = DEFAULT_PREFIX,
    width: int = DEFAULT_WIDTH,
) -> str:
    """
    Successor of the most recent reference.

    A missing or malformed reference restarts numbering at 1.
    """
    last = parse_sale_reference(last_reference, prefix)
    return format_sale_reference((last or 0) + 1, prefix, width)
