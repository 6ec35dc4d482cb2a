"""
Connection pool that supports both SQLite and PostgreSQL.

Uses DATABASE_URL environment variable to determine which backend to use:
- If DATABASE_URL starts with "postgres://", use PostgreSQL
- Otherwise, use SQLite (default behavior)

Queries are written with SQLite `?` placeholders and converted for
PostgreSQL. Rows come back as plain dicts on both backends.

The pool is shared by every request thread. It holds no application lock
across statements: a semaphore bounds the number of open connections and a
lifecycle lock guards open/close only.
"""

import os
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Optional, Protocol, Union

from loguru import logger

from .exceptions import PersistenceError, is_driver_error, translate_driver_error


class CursorProtocol(Protocol):
    """Protocol for database cursor."""

    def execute(self, query: str, params: tuple = ()) -> "CursorProtocol": ...
    def executemany(self, query: str, params: list[tuple]) -> "CursorProtocol": ...
    def fetchone(self) -> Optional[dict[str, Any]]: ...
    def fetchall(self) -> list[dict[str, Any]]: ...
    @property
    def rowcount(self) -> int: ...
    def close(self) -> None: ...


class ConnectionProtocol(Protocol):
    """Protocol for database connection."""

    def execute(self, query: str, params: tuple = ()) -> CursorProtocol: ...
    def executemany(self, query: str, params: list[tuple]) -> CursorProtocol: ...
    def commit(self) -> None: ...
    def rollback(self) -> None: ...
    def close(self) -> None: ...


def get_database_url() -> Optional[str]:
    """Get DATABASE_URL from environment."""
    return os.environ.get("DATABASE_URL")


def is_postgres_url(url: Optional[str]) -> bool:
    """Check if a database URL points at PostgreSQL."""
    return url is not None and url.startswith(("postgres://", "postgresql://"))


def _convert_query_placeholders(query: str) -> str:
    """Convert SQLite ? placeholders to PostgreSQL %s placeholders."""
    # Simple conversion - doesn't handle ? inside strings
    return query.replace("?", "%s")


def _dict_factory(cursor: sqlite3.Cursor, row: tuple) -> dict[str, Any]:
    """sqlite3 row factory producing plain dicts, matching PostgresCursor rows."""
    return {col[0]: value for col, value in zip(cursor.description, row)}


def _unicode_lower(value: Optional[str]) -> Optional[str]:
    """Replacement for SQLite's ASCII-only LOWER(), matching PostgreSQL."""
    return value.lower() if isinstance(value, str) else value


class PostgresCursor:
    """Wrapper around psycopg2 cursor to provide dict-like row access."""

    def __init__(self, cursor: Any) -> None:
        self._cursor = cursor
        self._columns: Optional[list[str]] = None

    def execute(self, query: str, params: Union[tuple, list] = ()) -> "PostgresCursor":
        pg_query = _convert_query_placeholders(query)
        self._cursor.execute(pg_query, tuple(params))
        if self._cursor.description:
            self._columns = [desc[0] for desc in self._cursor.description]
        return self

    def executemany(self, query: str, params: list[tuple]) -> "PostgresCursor":
        pg_query = _convert_query_placeholders(query)
        self._cursor.executemany(pg_query, params)
        return self

    def _row_to_dict(self, row: Optional[tuple]) -> Optional[dict[str, Any]]:
        if row is None or self._columns is None:
            return None
        return dict(zip(self._columns, row))

    def fetchone(self) -> Optional[dict[str, Any]]:
        row = self._cursor.fetchone()
        return self._row_to_dict(row)

    def fetchall(self) -> list[dict[str, Any]]:
        rows = self._cursor.fetchall()
        if not self._columns:
            return []
        return [dict(zip(self._columns, row)) for row in rows]

    @property
    def rowcount(self) -> int:
        return self._cursor.rowcount

    def close(self) -> None:
        self._cursor.close()


class PostgresConnection:
    """Wrapper around psycopg2 connection."""

    def __init__(self, conn: Any) -> None:
        self.raw = conn

    def execute(self, query: str, params: Union[tuple, list] = ()) -> PostgresCursor:
        cursor = PostgresCursor(self.raw.cursor())
        cursor.execute(query, params)
        return cursor

    def executemany(self, query: str, params: list[tuple]) -> PostgresCursor:
        cursor = PostgresCursor(self.raw.cursor())
        cursor.executemany(query, params)
        return cursor

    def commit(self) -> None:
        self.raw.commit()

    def rollback(self) -> None:
        self.raw.rollback()

    def close(self) -> None:
        self.raw.close()


Connection = Union[sqlite3.Connection, PostgresConnection]


class ConnectionPool:
    """Bounded pool of database connections shared across request threads.

    Args:
        database_url: PostgreSQL URL; when absent, SQLite at `sqlite_path` is used
        sqlite_path: SQLite database file
        max_connections: Maximum number of connections open at once
        acquire_timeout: Seconds to wait for a free connection
    """

    def __init__(
        self,
        database_url: Optional[str] = None,
        sqlite_path: Optional[Path] = None,
        max_connections: int = 20,
        acquire_timeout: float = 30.0,
    ) -> None:
        if not is_postgres_url(database_url) and sqlite_path is None:
            raise ValueError("sqlite_path is required when DATABASE_URL is not PostgreSQL")

        self.database_url = database_url if is_postgres_url(database_url) else None
        self.sqlite_path = Path(sqlite_path) if sqlite_path is not None else None
        self.max_connections = max_connections
        self.acquire_timeout = acquire_timeout

        self._slots = threading.BoundedSemaphore(max_connections)
        self._lifecycle_lock = threading.Lock()
        self._pg_pool: Any = None
        self._closed = False

    @property
    def is_postgres(self) -> bool:
        return self.database_url is not None

    def open(self) -> None:
        """Open the underlying driver pool (PostgreSQL only; SQLite connects lazily)."""
        with self._lifecycle_lock:
            self._closed = False
            if self.is_postgres and self._pg_pool is None:
                import psycopg2.pool

                logger.debug("Connecting to PostgreSQL")
                try:
                    self._pg_pool = psycopg2.pool.ThreadedConnectionPool(
                        1, self.max_connections, dsn=self.database_url
                    )
                except Exception as e:
                    if is_driver_error(e):
                        raise translate_driver_error(e) from e
                    raise

    def close(self) -> None:
        """Close the pool. Further acquisitions fail with PersistenceError."""
        with self._lifecycle_lock:
            self._closed = True
            if self._pg_pool is not None:
                self._pg_pool.closeall()
                self._pg_pool = None
        logger.debug("Connection pool closed")

    def _connect(self) -> Connection:
        if self.is_postgres:
            if self._pg_pool is None:
                self.open()
            return PostgresConnection(self._pg_pool.getconn())

        conn = sqlite3.connect(self.sqlite_path, timeout=self.acquire_timeout)
        conn.row_factory = _dict_factory
        conn.create_function("lower", 1, _unicode_lower, deterministic=True)
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    def _release(self, conn: Connection) -> None:
        if isinstance(conn, PostgresConnection):
            # psycopg2 rolls back any open transaction when a connection is returned
            pg_pool = self._pg_pool
            if pg_pool is not None:
                pg_pool.putconn(conn.raw)
            else:
                conn.close()
        else:
            conn.close()

    @contextmanager
    def connection(self) -> Iterator[Connection]:
        """Acquire a connection for the duration of the block.

        Driver exceptions raised inside the block are translated into
        PersistenceError. Uncommitted work is discarded on release.

        Raises:
            PersistenceError: If the pool is closed, exhausted past the
                acquire timeout, or a statement fails
        """
        if self._closed:
            raise PersistenceError("Connection pool is closed", kind=PersistenceError.CONNECTION)

        if not self._slots.acquire(timeout=self.acquire_timeout):
            raise PersistenceError(
                f"Timed out after {self.acquire_timeout}s waiting for a database connection",
                kind=PersistenceError.CONNECTION,
            )

        conn: Optional[Connection] = None
        try:
            try:
                conn = self._connect()
                yield conn
            except Exception as e:
                if is_driver_error(e):
                    logger.warning(f"Database error: {type(e).__name__}: {e}")
                    raise translate_driver_error(e) from e
                raise
        finally:
            try:
                if conn is not None:
                    self._release(conn)
            finally:
                self._slots.release()

    @contextmanager
    def transaction(self) -> Iterator[Connection]:
        """Acquire a connection and run the block as one transaction.

        Commits when the block completes; rolls back if it raises (including
        cancellation), so either every statement lands or none does.
        """
        with self.connection() as conn:
            try:
                yield conn
            except BaseException:
                conn.rollback()
                raise
            conn.commit()
