"""
Process-wide engine and session factory (``payroll_kernel.db.engine``).

``init_engine_from_url`` is called once at start-up (the CLI, or a test
fixture); everything else asks for the engine or a session through the
accessors below, which raise ``RuntimeError`` until then.  Batch workers
each open their own session from ``get_session_factory()``.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from payroll_kernel.logging_config import get_logger

logger = get_logger("db.engine")

_NOT_INITIALIZED = "Engine not initialized. Call init_engine_from_url() first."

_engine: Engine | None = None
_session_factory: sessionmaker[Session] | None = None


def _engine_options(database_url: str, pool_pre_ping: bool) -> dict[str, Any]:
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite":
        return {"pool_pre_ping": pool_pre_ping}

    # Workers run on pool threads; an in-memory database exists only on
    # the one connection that created it.
    options: dict[str, Any] = {"connect_args": {"check_same_thread": False}}
    if url.database in (None, "", ":memory:"):
        options["poolclass"] = StaticPool
    return options


def init_engine_from_url(
    database_url: str,
    echo: bool = False,
    pool_pre_ping: bool = True,
) -> Engine:
    """(Re)bind the module engine and session factory to ``database_url``."""
    global _engine, _session_factory

    engine = create_engine(database_url, echo=echo, **_engine_options(database_url, pool_pre_ping))
    _engine = engine
    _session_factory = sessionmaker(bind=engine, expire_on_commit=False)

    logger.info("engine_initialized", extra={"dialect": engine.dialect.name, "echo": echo})
    return engine


def get_engine() -> Engine:
    if _engine is None:
        raise RuntimeError(_NOT_INITIALIZED)
    return _engine


def get_session_factory() -> sessionmaker[Session]:
    if _session_factory is None:
        raise RuntimeError(_NOT_INITIALIZED)
    return _session_factory


def get_session() -> Session:
    return get_session_factory()()


@contextmanager
def session_scope() -> Iterator[Session]:
    """
    One unit of work: commit if the block completes, roll back and re-raise
    if it does not.  The session is closed either way.
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
    from payroll_kernel.db.base import Base
    import payroll_modules.payroll.orm  # noqa: F401  registers the payroll tables

    Base.metadata.create_all(get_engine())


def drop_tables() -> None:
    from payroll_kernel.db.base import Base

    Base.metadata.drop_all(get_engine())


def reset_engine() -> None:
    """Dispose of the engine and forget the session factory (test teardown)."""
    global _engine, _session_factory

    if _engine is not None:
        _engine.dispose()
    _engine = None
    _session_factory = None
