"""
Engine and session handling for the listing automation database.

The database comes from DATABASE_URL (a Postgres URL in production) and
falls back to a local SQLite file. SQLite connections get foreign key
enforcement switched on so recent descriptions can only point at real
product rows.
"""

import os
from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import Session, sessionmaker

from listing_automation.constants import DB_NAME
from util.logging_util import setup_logger

logger = setup_logger(__name__)

_engine: Optional[Engine] = None
_session_factory: Optional[sessionmaker] = None


def get_database_url() -> str:
    return os.environ.get("DATABASE_URL") or f"sqlite:///{DB_NAME}"


def _enable_sqlite_foreign_keys(dbapi_connection, _connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_engine(url: str) -> Engine:
    """Create an engine for the given URL with the pipeline's connection settings."""
    engine = create_engine(url, pool_pre_ping=True)
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    logger.info(f"Using database {engine.url.render_as_string(hide_password=True)}")
    return engine


def get_engine() -> Engine:
    """Return the shared engine, creating it from DATABASE_URL on first use."""
    global _engine, _session_factory
    if _engine is None:
        _engine = create_db_engine(get_database_url())
        _session_factory = sessionmaker(bind=_engine)
    return _engine


def set_engine(engine: Engine) -> None:
    """Swap in another engine, e.g. an in-memory SQLite one in tests."""
    global _engine, _session_factory
    _engine = engine
    _session_factory = sessionmaker(bind=engine)


def reset_engine() -> None:
    global _engine, _session_factory
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _session_factory = None


@contextmanager
def get_session() -> Generator[Session, None, None]:
    """Yield a session, committing when the block succeeds and rolling back when it raises."""
    if _session_factory is None:
        get_engine()

    session = _session_factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
