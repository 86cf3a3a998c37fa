"""
Module: pdc_kernel.db.engine
Responsibility: Process-wide database engine and session factory for the PDC
    ledger, plus a commit-or-rollback ``session_scope`` helper.
Architecture position: Kernel > DB.  ``create_tables`` reaches into
    ``pdc_modules._orm_registry`` lazily so the kernel has no import-time
    dependency on module code.

Invariants enforced:
    - PostgreSQL connections run at READ COMMITTED.  PDC status changes are
      conditional UPDATEs, so no row locks or stronger isolation are needed.
    - An in-memory SQLite URL gets a StaticPool, so every session (including
      the scheduler's) sees the same database.

Failure modes:
    - RuntimeError from any accessor called before ``init_engine_from_url``.
"""

import atexit
from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from pdc_kernel.logging_config import configure_logging, get_logger

logger = get_logger("db.engine")

_engine: Engine | None = None
_session_factory: sessionmaker[Session] | None = None

_NOT_INITIALIZED = "Database engine not initialized; call init_engine_from_url() first"


def _sqlite_options(database_url: str) -> dict:
    options: dict = {"connect_args": {"check_same_thread": False}}
    if ":memory:" in database_url or database_url.rstrip("/") == "sqlite:":
        options["poolclass"] = StaticPool
    return options


def _postgres_options(
    pool_size: int,
    max_overflow: int,
    pool_timeout: int,
    pool_recycle: int,
) -> dict:
    return {
        "poolclass": QueuePool,
        "pool_size": pool_size,
        "max_overflow": max_overflow,
        "pool_pre_ping": True,
        "pool_timeout": pool_timeout,
        "pool_recycle": pool_recycle,
        "isolation_level": "READ COMMITTED",
    }


def init_engine_from_url(
    database_url: str,
    echo: bool = False,
    pool_size: int = 10,
    max_overflow: int = 5,
    pool_timeout: int = 30,
    pool_recycle: int = 1800,
) -> Engine:
    """
    Create the engine and session factory for ``database_url``.

    Calling again replaces both.  Pool arguments apply to PostgreSQL only.
    """
    global _engine, _session_factory

    if database_url.startswith("sqlite"):
        options = _sqlite_options(database_url)
    else:
        options = _postgres_options(pool_size, max_overflow, pool_timeout, pool_recycle)

    _engine = create_engine(database_url, echo=echo, **options)
    _session_factory = sessionmaker(bind=_engine, expire_on_commit=False)

    configure_logging()
    logger.info("engine_initialized", extra={"dialect": _engine.dialect.name})
    return _engine


def get_engine() -> Engine:
    if _engine is None:
        raise RuntimeError(_NOT_INITIALIZED)
    return _engine


def get_session_factory() -> sessionmaker[Session]:
    """Session factory, e.g. for ``DailyScheduler(session_factory=...)``."""
    if _session_factory is None:
        raise RuntimeError(_NOT_INITIALIZED)
    return _session_factory


def get_session() -> Session:
    return get_session_factory()()


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    """
    Yield a session that commits on normal exit.

    On an exception the session is rolled back and the exception re-raised.
    The session is always closed.
    """
    session = get_session()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        logger.warning("session_scope_rolled_back", exc_info=True)
        raise
    finally:
        session.close()


def create_tables() -> None:
    """Create every table registered by ``pdc_modules``."""
    from pdc_kernel.db.base import Base
    from pdc_modules._orm_registry import import_all_orm_models

    import_all_orm_models()
    Base.metadata.create_all(get_engine())
    logger.info("tables_created", extra={"tables": sorted(Base.metadata.tables)})


def drop_tables() -> None:
    """Drop every registered table.  Tests and local resets only."""
    from pdc_kernel.db.base import Base

    Base.metadata.drop_all(get_engine())


def reset_engine() -> None:
    """Dispose the engine and forget the session factory."""
    global _engine, _session_factory

    if _engine is not None:
        _engine.dispose()
    _engine = None
    _session_factory = None


@atexit.register
def _dispose_on_exit() -> None:
    if _engine is not None:
        _engine.dispose()
