"""SQL repository using SQLAlchemy Core."""

from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Union

from sqlalchemy import Table, text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.sql.elements import TextClause

from supportdesk.utils.error_handling import StorageError
from supportdesk.utils.logging_config import get_logger

logger = get_logger(__name__)

Query = Union[str, TextClause]


def _stmt(query: Query) -> TextClause:
    return text(query) if isinstance(query, str) else query


class SqlRepository:
    """
    Thin wrapper to keep SQL organized and parameterized.

    Driver errors are re-raised as StorageError so callers never mistake a
    database outage for an empty result.
    """

    def __init__(self, engine: Engine):
        self.engine = engine

    @property
    def dialect(self) -> str:
        return self.engine.dialect.name

    @contextmanager
    def transaction(self) -> Iterator[Connection]:
        """Yield a connection inside BEGIN/COMMIT; rolls back on any error."""
        try:
            with self.engine.begin() as conn:
                yield conn
        except SQLAlchemyError as exc:
            logger.error("Database operation failed", extra={"error": str(exc)})
            raise StorageError("Storage unavailable") from exc

    def fetch_one(
        self, query: Query, params: Optional[dict] = None, conn: Optional[Connection] = None
    ) -> Optional[Dict[str, Any]]:
        """Execute a SELECT and return one row as dict."""
        if conn is not None:
            row = conn.execute(_stmt(query), params or {}).fetchone()
            return dict(row._mapping) if row else None
        with self.transaction() as own:
            return self.fetch_one(query, params, own)

    def fetch_all(
        self, query: Query, params: Optional[dict] = None, conn: Optional[Connection] = None
    ) -> List[Dict[str, Any]]:
        """Execute a SELECT and return every row as dict."""
        if conn is not None:
            return [dict(row._mapping) for row in conn.execute(_stmt(query), params or {})]
        with self.transaction() as own:
            return self.fetch_all(query, params, own)

    def scalar(
        self, query: Query, params: Optional[dict] = None, conn: Optional[Connection] = None
    ) -> Any:
        """Execute a SELECT returning a single value."""
        if conn is not None:
            return conn.execute(_stmt(query), params or {}).scalar()
        with self.transaction() as own:
            return self.scalar(query, params, own)

    def execute(
        self, query: Query, params: Optional[dict] = None, conn: Optional[Connection] = None
    ) -> int:
        """Execute a parameterized statement and return the affected row count."""
        if conn is not None:
            return conn.execute(_stmt(query), params or {}).rowcount
        with self.transaction() as own:
            return self.execute(query, params, own)

    def insert(self, table: Table, values: dict, conn: Optional[Connection] = None) -> int:
        """Insert one row and return its generated primary key."""
        if conn is not None:
            result = conn.execute(table.insert().values(**values))
            return int(result.inserted_primary_key[0])
        with self.transaction() as own:
            return self.insert(table, values, own)

    def ping(self) -> bool:
        """Cheap connectivity probe for health checks."""
        try:
            return self.scalar("SELECT 1") == 1
        except StorageError:
            return False
