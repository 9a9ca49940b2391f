"""
Module: sales_kernel.services.sequence_service
Responsibility: Named, strictly increasing integer sequences backed by a
    counter row that is locked (``SELECT ... FOR UPDATE``) for the rest of
    the caller's transaction.
Architecture position: Kernel > Services.  Used by
    sales_services.SaleReferenceService for the ``sale_reference`` sequence.

Invariants enforced:
    - The counter row is the only source of the next value.  Deriving it
      from the newest sale (read, add one, write) is not allowed: two
      concurrent creations would both read the same "last" sale.
    - Increments become visible when the caller commits; a rollback hands
      the value back.
    - ensure_at_least() only ever raises a counter.

Failure modes:
    - Two transactions creating the same counter at once: the loser's
      INSERT fails inside a savepoint, which is rolled back, and the
      winner's row is locked instead.
    - SequenceAllocationError if that row cannot be found afterwards.
"""

from sqlalchemy import String, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Mapped, Session, mapped_column

from sales_kernel.db.base import Base
from sales_kernel.exceptions import SequenceAllocationError
from sales_kernel.logging_config import get_logger

logger = get_logger("services.sequence")


class SequenceCounter(Base):
    __tablename__ = "sequence_counters"

    name: Mapped[str] = mapped_column(String(50), unique=True)
    current_value: Mapped[int] = mapped_column(default=0)


class SequenceService:
    """
    Allocates sequence values inside the caller's transaction.

    Never commits.

    Usage:
        with session_scope() as session:
            n = SequenceService(session).next_value("sale_reference")
    """

    SALE_REFERENCE = "sale_reference"

    def __init__(self, session: Session):
        self._session = session

    def _lock(self, name: str) -> SequenceCounter | None:
        return self._session.execute(
            select(SequenceCounter)
            .where(SequenceCounter.name == name)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def _lock_or_create(self, name: str, initial_value: int) -> tuple[SequenceCounter, bool]:
        """Locked counter row and whether this call created it."""
        self._session.expire_all()
        counter = self._lock(name)
        if counter is not None:
            return counter, False

        savepoint = self._session.begin_nested()
        try:
            counter = SequenceCounter(name=name, current_value=initial_value)
            self._session.add(counter)
            self._session.flush()
        except IntegrityError:
            savepoint.rollback()
            logger.debug("sequence_counter_race_retry", extra={"sequence_name": name})
        else:
            savepoint.commit()
            return counter, True

        self._session.expire_all()
        counter = self._lock(name)
        if counter is None:
            raise SequenceAllocationError(name, "counter vanished after creation race")
        return counter, False

    def next_value(self, name: str) -> int:
        """Lock, increment and return the counter; a new sequence starts at 1."""
        counter, created = self._lock_or_create(name, 1)
        if not created:
            counter.current_value += 1
            self._session.flush()

        logger.debug("sequence_allocated", extra={
            "sequence_name": name,
            "value": counter.current_value,
        })
        return counter.current_value

    def ensure_at_least(self, name: str, floor: int) -> int:
        """
        Raise the counter to ``floor`` when it is lower; return its value.

        Continues numbering after values issued before the counter existed.
        """
        counter, created = self._lock_or_create(name, max(floor, 0))
        if created:
            logger.info("sequence_seeded", extra={
                "sequence_name": name,
                "value": counter.current_value,
            })
        elif counter.current_value < floor:
            logger.info("sequence_raised", extra={
                "sequence_name": name,
                "from_value": counter.current_value,
                "to_value": floor,
            })
            counter.current_value = floor
            self._session.flush()
        return counter.current_value

    def current_value(self, name: str) -> int | None:
        """Value last handed out, without locking or incrementing."""
        return self._session.execute(
            select(SequenceCounter.current_value).where(SequenceCounter.name == name)
        ).scalar_one_or_none()

    def reset(self, name: str, value: int = 0) -> None:
        """Force a counter to ``value``. Tests and data repair only."""
        counter, _ = self._lock_or_create(name, value)
        counter.current_value = value
        self._session.flush()
