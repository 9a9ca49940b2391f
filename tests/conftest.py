"""
Pytest fixtures for the sales deal engine test suite.

Engines are pure and need no fixtures beyond logging.  Services run
against an in-memory SQLite database; each test gets a fresh schema.
"""

import json
import logging
from collections.abc import Generator
from decimal import Decimal
from io import StringIO

import pytest
from sqlalchemy.orm import Session

from sales_config import clear_config_cache, get_pricing_config
from sales_engines.costs import TradeItem
from sales_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_engine,
    init_engine_from_url,
    reset_engine,
)
from sales_kernel.domain.values import Money
from sales_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)

# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture sales_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs):
            classify("uk", "uk", "retail")
            logs = captured_logs()
            assert any(r["message"] == "tax_scenario_classified" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("sales_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Configuration fixtures
# =============================================================================


@pytest.fixture
def pricing_config():
    """The default pricing configuration, loaded fresh."""
    clear_config_cache()
    yield get_pricing_config()
    clear_config_cache()


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def db_engine():
    """In-memory SQLite engine with all tables created."""
    init_engine_from_url("sqlite:///:memory:")
    create_tables()
    yield get_engine()
    drop_tables()
    reset_engine()


@pytest.fixture
def db_session(db_engine) -> Generator[Session, None, None]:
    """A session rolled back after the test."""
    session = Session(bind=db_engine, expire_on_commit=False)
    try:
        yield session
    finally:
        session.rollback()
        session.close()


# =============================================================================
# Trade fixtures
# =============================================================================


def make_item(
    buy: str = "1000.00",
    sell: str = "1500.00",
    *,
    quantity: int = 1,
    currency: str = "GBP",
    sell_currency: str | None = None,
    supplier_country: str | None = None,
) -> TradeItem:
    """Build a TradeItem with sensible defaults."""
    return TradeItem(
        brand="Hermes",
        category="Handbag",
        description="Birkin 30 Togo",
        quantity=quantity,
        buy_price=Money.of(Decimal(buy), currency),
        sell_price=Money.of(Decimal(sell), sell_currency or currency),
        supplier="Test Supplier Ltd",
        supplier_country=supplier_country,
    )


@pytest.fixture
def item_factory():
    return make_item
