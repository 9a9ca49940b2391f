"""
Deal Lifecycle - status transitions of a sale.

    draft -> invoiced -> paid -> locked -> commission_paid

Each status has exactly one successor; ``commission_paid`` is terminal.
``plan_transition`` also returns the fields a status change stamps on
the sale (payment date, commission lock, commission paid), leaving the
write to the caller.

Usage:
    from sales_engines.lifecycle import DealStatus, transition

    transition("draft", "invoiced")     # DealStatus.INVOICED
    transition("draft", "paid")         # raises InvalidStatusTransitionError
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from sales_kernel.exceptions import InvalidStatusTransitionError
from sales_kernel.logging_config import get_logger

logger = get_logger("engines.lifecycle")


class DealStatus(str, Enum):
    DRAFT = "draft"
    INVOICED = "invoiced"
    PAID = "paid"
    LOCKED = "locked"
    COMMISSION_PAID = "commission_paid"


_TRANSITIONS: dict[DealStatus, tuple[DealStatus, ...]] = {
    DealStatus.DRAFT: (DealStatus.INVOICED,),
    DealStatus.INVOICED: (DealStatus.PAID,),
    DealStatus.PAID: (DealStatus.LOCKED,),
    DealStatus.LOCKED: (DealStatus.COMMISSION_PAID,),
    DealStatus.COMMISSION_PAID: (),
}


def _status(value: DealStatus | str) -> DealStatus | None:
    if isinstance(value, DealStatus):
        return value
    try:
        return DealStatus(value)
    except ValueError:
        return None


def allowed_transitions(current: DealStatus | str) -> tuple[DealStatus, ...]:
    """Valid next statuses; empty for terminal or unknown statuses."""
    status = _status(current)
    return _TRANSITIONS[status] if status is not None else ()


def can_transition(current: DealStatus | str, next_status: DealStatus | str) -> bool:
    target = _status(next_status)
    return target is not None and target in allowed_transitions(current)


def is_terminal(status: DealStatus | str) -> bool:
    return _status(status) is not None and not allowed_transitions(status)


def transition(current: DealStatus | str, next_status: DealStatus | str) -> DealStatus:
    """
    Validate a status change and return the new status.

    Raises:
        InvalidStatusTransitionError: If the change is not on the chain,
            including unknown status strings.
    """
    if not can_transition(current, next_status):
        allowed = [s.value for s in allowed_transitions(current)]
        current_value = current.value if isinstance(current, DealStatus) else str(current)
        next_value = next_status.value if isinstance(next_status, DealStatus) else str(next_status)
        logger.warning("deal_transition_rejected", extra={
            "current_status": current_value,
            "next_status": next_value,
            "allowed": allowed,
        })
        raise InvalidStatusTransitionError(current_value, next_value, allowed)

    target = _status(next_status)
    logger.info("deal_transitioned", extra={
        "current_status": _status(current).value,
        "next_status": target.value,
    })
    return target


@dataclass(frozen=True)
class StatusChange:
    """A validated transition and the sale fields it sets."""

    from_status: DealStatus
    to_status: DealStatus
    fields: dict[str, Any] = field(default_factory=dict)


def plan_transition(
    current: DealStatus | str,
    next_status: DealStatus | str,
    *,
    now: datetime,
    payment_date: datetime | None = None,
) -> StatusChange:
    """
    Validate a transition and build the field updates it implies.

    ``payment_date`` is the invoicing system's payment date when known;
    otherwise ``now`` is used.
    """
    target = transition(current, next_status)
    updates: dict[str, Any] = {"status": target.value}

    if target is DealStatus.PAID:
        updates["payment_date"] = payment_date or now
    elif target is DealStatus.LOCKED:
        updates["commission_locked"] = True
        updates["commission_lock_date"] = now
    elif target is DealStatus.COMMISSION_PAID:
        updates["commission_paid"] = True
        updates["commission_paid_date"] = now

    return StatusChange(from_status=_status(current), to_status=target, fields=updates)
