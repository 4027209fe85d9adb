"""Engine and session handling for the UniPass store.

SQLite connections enforce foreign keys (promotions and dependent members
must point at existing rows) and wait on a locked database instead of
failing, so two counters confirming at once serialize on ``limit_key``.
"""

import logging
from collections.abc import Generator
from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from config import get_settings

logger = logging.getLogger(__name__)

SQLITE_PRAGMAS: tuple[str, ...] = (
    "PRAGMA foreign_keys=ON",
    "PRAGMA journal_mode=WAL",
    "PRAGMA busy_timeout=30000",
)

_engine: Engine | None = None
_session_factory: sessionmaker[Session] | None = None


def _apply_sqlite_pragmas(dbapi_conn, connection_record) -> None:
    cur = dbapi_conn.cursor()
    for pragma in SQLITE_PRAGMAS:
        cur.execute(pragma)
    cur.close()


def create_store_engine(url: str, echo: bool = False) -> Engine:
    """Engine for ``url``. SQLite engines get SQLITE_PRAGMAS on every connection."""
    engine: Engine = create_engine(url, echo=echo, pool_pre_ping=not url.startswith("sqlite"))
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _apply_sqlite_pragmas)
    return engine


def get_engine() -> Engine:
    """Shared engine built from settings on first use."""
    global _engine

    if _engine is None:
        settings = get_settings()
        _engine = create_store_engine(settings.database.url, echo=settings.debug)
        logger.info("Database engine ready: %s", settings.database.db_info_for_logging())
    return _engine


def get_session_factory() -> sessionmaker[Session]:
    global _session_factory

    if _session_factory is None:
        _session_factory = sessionmaker(
            bind=get_engine(),
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
        )
    return _session_factory


@contextmanager
def get_session() -> Generator[Session, None, None]:
    """One unit of work: commit on success, rollback on any error."""
    session = get_session_factory()()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency: one unit of work per request."""
    with get_session() as session:
        yield session
