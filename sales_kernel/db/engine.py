"""
Module: sales_kernel.db.engine
Responsibility: Process-wide SQLAlchemy engine and session factory, and the
    ``session_scope`` transaction helper.
Architecture position: Kernel > DB.  May import db/base.py.

Invariants enforced:
    - PostgreSQL in production: READ COMMITTED plus the row lock taken by
      SequenceService is what serializes sale reference allocation.
    - SQLite for local runs and tests.  pysqlite's implicit transactions
      are disabled so SAVEPOINT (``Session.begin_nested``) works.

Failure modes:
    - RuntimeError from the accessors before init_engine_from_url().
"""

import atexit
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker

from sales_kernel.logging_config import get_logger

logger = get_logger("db.engine")

_engine: Engine | None = None
_session_factory: sessionmaker[Session] | None = None

_NOT_INITIALIZED = "Database not initialized; call init_engine_from_url() first."


def enable_sqlite_savepoints(engine: Engine) -> None:
    """Hand transaction control from pysqlite to SQLAlchemy so SAVEPOINT works."""

    @event.listens_for(engine, "connect")
    def _autocommit_driver(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin(conn):
        conn.exec_driver_sql("BEGIN")


def init_engine_from_url(database_url: str, *, echo: bool = False, pool_size: int = 5) -> Engine:
    """
    Create (or replace) the process engine.

    Args:
        database_url: ``postgresql+psycopg://...`` or ``sqlite:///sales.db``.
        echo: Log SQL statements.
        pool_size: Pooled connections for server backends.
    """
    global _engine, _session_factory

    backend = make_url(database_url).get_backend_name()
    if backend == "sqlite":
        engine = create_engine(database_url, echo=echo)
        enable_sqlite_savepoints(engine)
    else:
        engine = create_engine(
            database_url,
            echo=echo,
            pool_size=pool_size,
            pool_pre_ping=True,
            isolation_level="READ COMMITTED",
        )

    _engine = engine
    _session_factory = sessionmaker(bind=engine, expire_on_commit=False)

    logger.info("engine_initialized", extra={"dialect": backend, "echo": echo})
    return engine


def get_engine() -> Engine:
    if _engine is None:
        raise RuntimeError(_NOT_INITIALIZED)
    return _engine


def get_session() -> Session:
    if _session_factory is None:
        raise RuntimeError(_NOT_INITIALIZED)
    return _session_factory()


@contextmanager
def session_scope() -> Iterator[Session]:
    """
    Commit on success, roll back and re-raise on error, always close.

        with session_scope() as session:
            ref = SaleReferenceService(session).allocate()
    """
    session = get_session()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        logger.warning("transaction_rolled_back", exc_info=True)
        raise
    finally:
        session.close()


def create_tables() -> None:
    """Create every registered table (currently the sequence counters)."""
    from sales_kernel.db.base import Base
    import sales_kernel.services.sequence_service  # noqa: F401  registers SequenceCounter

    Base.metadata.create_all(get_engine())


def drop_tables() -> None:
    """Drop every registered table. Test teardown only."""
    from sales_kernel.db.base import Base

    Base.metadata.drop_all(get_engine())


def reset_engine() -> None:
    """Dispose the engine and forget it. Tests use this between cases."""
    global _engine, _session_factory

    if _engine is not None:
        _engine.dispose()
    _engine = None
    _session_factory = None


atexit.register(reset_engine)
