"""
sales_services.reference_service -- Race-free sale reference allocation.

Responsibility:
    Mints ``C19-NNNN`` references for new sales.  The numeric part comes
    from the ``sale_reference`` row of the sequence counter table, locked
    with ``SELECT ... FOR UPDATE`` for the duration of the caller's
    transaction.  Two concurrent sale creations therefore never receive
    the same reference.

Architecture position:
    Services -- composes SequenceService (kernel) with the pure reference
    helpers (sales_engines.reference).

Invariants enforced:
    - References are strictly increasing within a database.
    - Seeding from a legacy reference only ever raises the counter.

Failure modes:
    - SequenceAllocationError if the counter row cannot be created or locked.

Usage:
    with session_scope() as session:
        ref = SaleReferenceService(session).allocate(last_reference="C19-0042")
        # "C19-0043"
"""

from __future__ import annotations

from sqlalchemy.orm import Session

from sales_config import PricingConfig, get_pricing_config
from sales_engines.reference import format_sale_reference, parse_sale_reference
from sales_kernel.logging_config import get_logger
from sales_kernel.services.sequence_service import SequenceService

logger = get_logger("services.reference")


class SaleReferenceService:
    """
    Allocates sale references through the locked sequence counter.

    Does NOT commit: the reference is only consumed once the caller's
    transaction (which also inserts the sale) commits.
    """

    SEQUENCE_NAME = SequenceService.SALE_REFERENCE

    def __init__(self, session: Session, config: PricingConfig | None = None):
        self._session = session
        self._sequence = SequenceService(session)
        reference = (config or get_pricing_config()).reference
        self._prefix = reference.prefix
        self._width = reference.width

    def allocate(self, last_reference: str | None = None) -> str:
        """
        Allocate the next reference.

        Args:
            last_reference: Most recent reference minted outside the
                counter (e.g. imported sales).  Numbering continues after
                it when it is ahead of the counter; malformed values are
                ignored.
        """
        floor = parse_sale_reference(last_reference, self._prefix)
        if floor is not None:
            self._sequence.ensure_at_least(self.SEQUENCE_NAME, floor)

        number = self._sequence.next_value(self.SEQUENCE_NAME)
        reference = format_sale_reference(number, self._prefix, self._width)
        logger.info("sale_reference_allocated", extra={
            "sale_reference": reference,
            "seeded_from": last_reference if floor is not None else None,
        })
        return reference

    def current_reference(self) -> str | None:
        """Most recently allocated reference, or None before the first."""
        value = self._sequence.current_value(self.SEQUENCE_NAME)
        if not value:
            return None
        return format_sale_reference(value, self._prefix, self._width)
