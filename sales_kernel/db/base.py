"""
Module: sales_kernel.db.base
Responsibility: Declarative base for the deal engine's tables.
Architecture position: Kernel > DB.  Imports nothing from the project.

Invariants enforced:
    - Every row has a uuid4 primary key (SQLAlchemy ``Uuid``, stored as
      CHAR(32) where the backend has no native UUID type).
    - ``Decimal`` columns are Numeric(18, 2): money is pence-exact, never float.
    - ``int`` columns are BigInteger so counters cannot overflow.
    - ``updated_at`` is stamped by the ORM on every insert and update.
"""

from datetime import UTC, datetime
from decimal import Decimal
from typing import ClassVar
from uuid import UUID, uuid4

from sqlalchemy import BigInteger, DateTime, Numeric, Uuid
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Base(DeclarativeBase):
    type_annotation_map: ClassVar[dict] = {
        Decimal: Numeric(18, 2),
        datetime: DateTime(timezone=True),
        UUID: Uuid(as_uuid=True),
        int: BigInteger,
    }

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    updated_at: Mapped[datetime] = mapped_column(default=_utcnow, onupdate=_utcnow)
