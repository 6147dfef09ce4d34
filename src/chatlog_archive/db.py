"""
Database access layer with read-only enforcement.

Every store in the archive (message shards, contact, session and media stores)
is opened through ReadOnlyDatabase, which refuses writes at the connection
level and converts sqlite errors into the package's error taxonomy.
"""

import asyncio
import logging
import sqlite3
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from .errors import InitializationFailure, MissingTable, QueryFailure

logger = logging.getLogger(__name__)


class ReadOnlyDatabase:
    """Read-only connection manager for one archive store file."""

    def __init__(self, db_path: Union[str, Path], timeout: int = 30):
        """Initialize database connection."""
        self.db_path = Path(db_path).expanduser()
        self.timeout = timeout
        self._connection: Optional[sqlite3.Connection] = None
        self._lock = asyncio.Lock()

    @property
    def is_open(self) -> bool:
        return self._connection is not None

    async def initialize(self) -> None:
        """Open the store in read-only mode."""
        if not self.db_path.exists():
            raise InitializationFailure(
                f"Database not found: {self.db_path}", {"path": str(self.db_path)}
            )

        try:
            self._connection = sqlite3.connect(
                f"{self.db_path.resolve().as_uri()}?mode=ro",
                uri=True,
                timeout=self.timeout,
                check_same_thread=False,
            )

            self._connection.execute("PRAGMA query_only = ON")

            # Optimize for read performance
            self._connection.execute("PRAGMA cache_size = 10000")
            self._connection.execute("PRAGMA temp_store = MEMORY")

            cursor = self._connection.execute("PRAGMA query_only")
            if cursor.fetchone()[0] != 1:
                self._abandon()
                raise InitializationFailure(
                    "Failed to enforce read-only mode", {"path": str(self.db_path)}
                )

            logger.debug(f"Database opened in read-only mode: {self.db_path}")

        except sqlite3.Error as e:
            self._abandon()
            raise InitializationFailure(
                f"Failed to open database {self.db_path}: {e}", {"path": str(self.db_path)}
            )

    def _abandon(self) -> None:
        """Drop a connection that failed setup."""
        if self._connection is not None:
            connection, self._connection = self._connection, None
            try:
                connection.close()
            except sqlite3.Error as e:
                logger.warning(f"Failed to close {self.db_path} after setup error: {e}")

    async def close(self) -> None:
        """Close database connection."""
        if self._connection:
            connection, self._connection = self._connection, None
            try:
                connection.close()
            except sqlite3.Error as e:
                raise QueryFailure(f"Failed to close {self.db_path}: {e}")
            logger.debug(f"Database connection closed: {self.db_path}")

    @asynccontextmanager
    async def get_connection(self) -> AsyncGenerator[sqlite3.Connection, None]:
        """Get database connection with async context manager."""
        async with self._lock:
            if not self._connection:
                raise QueryFailure(f"Database is not open: {self.db_path}")
            yield self._connection

    async def execute_query(
        self, query: str, params: Optional[Sequence[Any]] = None
    ) -> List[Dict[str, Any]]:
        """Execute a read-only query and return rows as dictionaries."""
        async with self.get_connection() as conn:
            try:
                cursor = conn.execute(query, tuple(params or ()))
                rows = cursor.fetchall()
                columns = [desc[0] for desc in cursor.description] if cursor.description else []
                return [dict(zip(columns, row)) for row in rows]

            except sqlite3.Error as e:
                if "no such table" in str(e):
                    raise MissingTable(f"Query failed: {e}", {"path": str(self.db_path)})
                logger.error(f"Query execution failed on {self.db_path}: {e}")
                raise QueryFailure(
                    f"Query failed: {e}", {"path": str(self.db_path), "query": query.strip()}
                )

    async def fetch_one(
        self, query: str, params: Optional[Sequence[Any]] = None
    ) -> Optional[Dict[str, Any]]:
        """Execute a query and return the first row, or None."""
        rows = await self.execute_query(query, params)
        return rows[0] if rows else None

    async def table_exists(self, table_name: str) -> bool:
        """Check whether a table is present in this store."""
        row = await self.fetch_one(
            "SELECT 1 AS present FROM sqlite_master WHERE type = 'table' AND name = ?",
            (table_name,),
        )
        return row is not None


def paginate(
    query: str, params: Sequence[Any], limit: int, offset: int
) -> Tuple[str, List[Any]]:
    """Append LIMIT/OFFSET clauses to a query.

    OFFSET is only emitted together with a positive limit; a non-positive limit
    leaves the query unbounded.
    """
    args = list(params)
    if limit > 0:
        query += " LIMIT ?"
        args.append(limit)
        if offset > 0:
            query += " OFFSET ?"
            args.append(offset)
    return query, args
