"""
Module: approval_kernel.db.engine
Responsibility: SQLAlchemy engine initialization, session factory management
    and transactional scope utilities.  Single point of database connection
    configuration.
Architecture position: Kernel > DB.  May import from db/base.py.  MUST NOT
    import from services/, selectors/ or outer layers (create_tables imports
    the models package so that every table is registered).

Invariants enforced:
    - PostgreSQL sessions run at READ COMMITTED.  Other dialects (SQLite for
      local tests) keep their driver default.
    - Connection pooling with pre-ping for server databases.

Failure modes:
    - RuntimeError if get_engine/get_session/get_session_factory is called
      before init_engine_from_url().
    - RuntimeError from init_engine_from_env() when no URL is configured.
"""

import os
from contextlib import contextmanager
from typing import Any, Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import URL, Engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from approval_kernel.logging_config import configure_logging, get_logger

logger = get_logger("db.engine")

DATABASE_URL_ENV = "APPROVAL_DATABASE_URL"

_engine: Engine | None = None
_SessionFactory: sessionmaker[Session] | None = None

_NOT_INITIALIZED = "Engine not initialized. Call init_engine_from_url() first."


def _sqlite_options(url: URL) -> dict[str, Any]:
    # In-memory databases live in one connection; share it across sessions.
    options: dict[str, Any] = {"connect_args": {"check_same_thread": False}}
    if url.database in (None, "", ":memory:"):
        options["poolclass"] = StaticPool
    return options


def _server_options(
    dialect: str,
    pool_size: int,
    max_overflow: int,
    pool_pre_ping: bool,
    pool_recycle: int,
) -> dict[str, Any]:
    options: dict[str, Any] = {
        "pool_size": pool_size,
        "max_overflow": max_overflow,
        "pool_pre_ping": pool_pre_ping,
        "pool_recycle": pool_recycle,
    }
    if dialect == "postgresql":
        options["isolation_level"] = "READ COMMITTED"
    return options


def init_engine_from_url(
    database_url: str,
    echo: bool = False,
    pool_size: int = 10,
    max_overflow: int = 5,
    pool_pre_ping: bool = True,
    pool_recycle: int = 1800,
) -> Engine:
    """
    Initialize the module-level engine and session factory.

    A second call replaces the first.  In-memory SQLite URLs share a single
    connection so that every session sees the same database.

    Args:
        database_url: SQLAlchemy URL (postgresql://..., sqlite://...).
        echo: If True, log all SQL statements.
        pool_size: Connections kept in the pool (server databases only).
        max_overflow: Connections beyond pool_size (server databases only).
        pool_pre_ping: Test connections before use.
        pool_recycle: Seconds after which a connection is recycled.
    """
    global _engine, _SessionFactory

    url = make_url(database_url)
    dialect = url.get_backend_name()
    if dialect == "sqlite":
        options = _sqlite_options(url)
    else:
        options = _server_options(
            dialect, pool_size, max_overflow, pool_pre_ping, pool_recycle,
        )

    _engine = create_engine(url, echo=echo, **options)
    _SessionFactory = sessionmaker(bind=_engine, expire_on_commit=False)

    configure_logging()
    logger.info(
        "engine_initialized",
        extra={"dialect": dialect, "echo": echo},
    )
    return _engine


def init_engine_from_env(echo: bool = False) -> Engine:
    """Initialize the engine from the ``APPROVAL_DATABASE_URL`` environment variable."""
    database_url = os.environ.get(DATABASE_URL_ENV)
    if not database_url:
        raise RuntimeError(
            f"{DATABASE_URL_ENV} is not set. "
            f"Set it or call init_engine_from_url() explicitly."
        )
    return init_engine_from_url(database_url, echo=echo)


def get_engine() -> Engine:
    if _engine is None:
        raise RuntimeError(_NOT_INITIALIZED)
    return _engine


def get_session() -> Session:
    if _SessionFactory is None:
        raise RuntimeError(_NOT_INITIALIZED)
    return _SessionFactory()


def get_session_factory() -> sessionmaker[Session]:
    """Session factory for callers that need one session per thread."""
    if _SessionFactory is None:
        raise RuntimeError(_NOT_INITIALIZED)
    return _SessionFactory


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    """
    Transactional scope around a series of operations.

    Commits on normal exit; rolls back and re-raises on exception.  This is
    where transactions end: services only flush.

    Usage:
        with session_scope() as session:
            service = ApprovalWorkflowService.from_session(session)
            progress = service.initialize(context)
    """
    session = get_session()
    logger.debug("transaction_started")
    try:
        yield session
        session.commit()
        logger.debug("transaction_committed")
    except Exception:
        session.rollback()
        logger.warning("transaction_rolled_back", exc_info=True)
        raise
    finally:
        session.close()


def create_tables() -> None:
    """Create every table registered on ``Base.metadata``."""
    from approval_kernel import models  # noqa: F401 -- registers tables
    from approval_kernel.db.base import Base

    Base.metadata.create_all(get_engine())
    logger.info("tables_created", extra={"tables": sorted(Base.metadata.tables)})


def drop_tables() -> None:
    """Drop all tables.  Primarily for testing."""
    from approval_kernel import models  # noqa: F401
    from approval_kernel.db.base import Base

    Base.metadata.drop_all(get_engine())


def reset_engine() -> None:
    """Dispose the engine and forget the session factory."""
    global _engine, _SessionFactory

    if _engine is not None:
        _engine.dispose()
        _engine = None
    _SessionFactory = None


def is_postgres() -> bool:
    if _engine is None:
        return False
    return _engine.dialect.name == "postgresql"
