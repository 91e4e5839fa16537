"""
Module: feaa_kernel.db.engine
Responsibility: SQLAlchemy engine construction and transactional scope
    utilities.  Single point of database connection configuration for the
    ordering system.
Architecture position: Kernel > DB.  May import from db/base.py and
    db/models.py only.

Invariants enforced:
    - PostgreSQL uses QueuePool with pre-ping and READ COMMITTED; the locked
      sequence row (SELECT ... FOR UPDATE) gives order id uniqueness.
    - SQLite (tests, local runs) uses a single shared connection for
      in-memory databases so every session sees the same data.
"""

from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from feaa_kernel.logging_config import get_logger

logger = get_logger("db.engine")


def build_engine(
    database_url: str,
    echo: bool = False,
    pool_size: int = 5,
    max_overflow: int = 10,
) -> Engine:
    """
    Create an engine for ``database_url``.

    Args:
        database_url: SQLAlchemy URL (``sqlite://`` or ``postgresql://``).
        echo: If True, log all SQL statements.
        pool_size: Connections kept in the pool (PostgreSQL only).
        max_overflow: Max connections beyond pool_size (PostgreSQL only).
    """
    if database_url.startswith("sqlite"):
        in_memory = database_url in ("sqlite://", "sqlite:///:memory:")
        engine = create_engine(
            database_url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool if in_memory else None,
        )
    else:
        engine = create_engine(
            database_url,
            echo=echo,
            poolclass=QueuePool,
            pool_size=pool_size,
            max_overflow=max_overflow,
            pool_pre_ping=True,
            isolation_level="READ COMMITTED",
        )

    logger.debug(
        "engine_initialized",
        extra={"dialect": engine.dialect.name, "echo": echo},
    )
    return engine


@contextmanager
def session_scope(factory: sessionmaker[Session]) -> Generator[Session, None, None]:
    """
    Provide a transactional scope around a series of operations.

    Postconditions: On normal exit, session is committed and closed.
        On exception, session is rolled back and closed, and the exception
        is re-raised to the caller.

    Usage:
        with session_scope(factory) as session:
            session.add(entity)
    """
    session = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        logger.warning("transaction_rolled_back", exc_info=True)
        raise
    finally:
        session.close()


def create_tables(engine: Engine) -> None:
    """Create every ordering table (idempotent)."""
    from feaa_kernel.db import models  # noqa: F401 -- registers tables on Base
    from feaa_kernel.db.base import Base

    Base.metadata.create_all(engine)
