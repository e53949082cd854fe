"""
Engine construction and schema bootstrap.

SQLite is the default for local runs and tests; any SQLAlchemy URL works
(e.g. ``postgresql+psycopg2://...``) except that full-text search over the
knowledge base is only indexed on SQLite.
"""

from __future__ import annotations

from pathlib import Path

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.pool import QueuePool, StaticPool

from supportdesk.repositories.schema import SQLITE_FTS_DDL, metadata
from supportdesk.utils.error_handling import StorageError
from supportdesk.utils.logging_config import get_logger

logger = get_logger(__name__)


def create_db_engine(database_url: str) -> Engine:
    """Build an engine with pooling suited to the backend."""
    url = make_url(database_url)

    if url.get_backend_name() == "sqlite":
        if url.database in (None, "", ":memory:"):
            # One shared connection, otherwise every checkout sees an empty DB.
            engine = create_engine(
                database_url,
                poolclass=StaticPool,
                connect_args={"check_same_thread": False},
            )
        else:
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)
            engine = create_engine(
                database_url, connect_args={"check_same_thread": False}
            )

        @event.listens_for(engine, "connect")
        def _sqlite_pragmas(dbapi_connection, connection_record):  # noqa: ARG001
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return engine

    return create_engine(
        database_url,
        poolclass=QueuePool,
        pool_size=5,
        max_overflow=5,
        pool_pre_ping=True,
        pool_recycle=300,
    )


def init_schema(engine: Engine) -> bool:
    """
    Create tables if missing. Returns True when the FTS5 index is available.

    SQLite builds without FTS5 still work; knowledge base search then falls
    back to LIKE matching. An unreachable database raises StorageError.
    """
    try:
        metadata.create_all(engine)
    except SQLAlchemyError as exc:
        logger.error("Schema bootstrap failed", extra={"error": str(exc)})
        raise StorageError("Storage unavailable") from exc
    if engine.dialect.name != "sqlite":
        return False

    try:
        with engine.begin() as conn:
            for statement in SQLITE_FTS_DDL:
                conn.execute(text(statement))
        return True
    except OperationalError as exc:
        logger.warning("FTS5 unavailable; KB search uses LIKE", extra={"error": str(exc)})
        return False
