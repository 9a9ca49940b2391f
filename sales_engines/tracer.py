"""
sales_engines.tracer -- ``@traced_engine`` and the SALES_ENGINE_TRACE record.

Every engine entrypoint (classifier, cost calculator, VAT, commission)
is wrapped so that a quote can be replayed from logs: the record names
the engine and its version, fingerprints the inputs that determine the
result, and times the call.

Fingerprints are the first 16 hex chars of a SHA-256 over a canonical
JSON rendering of the selected arguments.  Enums reduce to their values
and Money to ``"<amount> <code>"``, so ``classify("uk", ...)`` and
``classify(Location.UK, ...)`` fingerprint alike.
"""

from __future__ import annotations

import functools
import hashlib
import inspect
import json
import time
from collections.abc import Callable
from decimal import Decimal
from enum import Enum
from typing import Any, TypeVar

from sales_kernel.domain.values import Money
from sales_kernel.logging_config import get_logger

logger = get_logger("engines.tracer")

F = TypeVar("F", bound=Callable[..., Any])


def _plain(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Money):
        return f"{value.amount} {value.currency.code}"
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, dict):
        return {str(k): _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return str(value)


def compute_input_fingerprint(fields: tuple[str, ...], arguments: dict[str, Any]) -> str:
    """16-hex-char fingerprint of ``fields`` in ``arguments``; absent fields count as None."""
    canonical = json.dumps(
        {name: _plain(arguments.get(name)) for name in fields},
        sort_keys=True,
        separators=(",", ":"),
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:16]


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
) -> Callable[[F], F]:
    """Emit SALES_ENGINE_TRACE after each successful call of the wrapped engine."""

    def decorator(func: F) -> F:
        signature = inspect.signature(func)

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            started = time.perf_counter()
            result = func(*args, **kwargs)
            elapsed_ms = round((time.perf_counter() - started) * 1000, 2)

            fingerprint = ""
            if fingerprint_fields:
                bound = signature.bind_partial(*args, **kwargs).arguments
                fingerprint = compute_input_fingerprint(fingerprint_fields, bound)

            logger.info("SALES_ENGINE_TRACE", extra={
                "trace_type": "SALES_ENGINE_TRACE",
                "engine_name": engine_name,
                "engine_version": engine_version,
                "input_fingerprint": fingerprint,
                "duration_ms": elapsed_ms,
                "function": func.__qualname__,
            })
            return result

        return wrapper  # type: ignore[return-value]

    return decorator
