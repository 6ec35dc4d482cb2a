"""Error taxonomy for the track store.

Every failure surfaced by the store is one of:

- NotFound: a lookup by id, title or name matched nothing
- PersistenceError: the store rejected or could not complete a read/write
- ValidationError: a filter or patch value is outside its accepted domain

Nothing here retries; callers decide on retry policy and on how to present
the error (the web layer maps these to HTTP status codes).
"""

import sqlite3
from typing import Optional


class VibingStorageError(Exception):
    """Base exception for track store operations."""

    pass


class NotFound(VibingStorageError):
    """Raised when a lookup matched no row."""

    def __init__(self, entity: str, key: object, message: Optional[str] = None):
        self.entity = entity
        self.key = key
        super().__init__(message or f"{entity} {key!r} not found")


class ValidationError(VibingStorageError):
    """Raised when a filter or patch value is out of its accepted domain."""

    pass


class PersistenceError(VibingStorageError):
    """Raised when the underlying store could not complete a statement.

    `kind` is one of QUERY_TIMEOUT, CONNECTION, CONSTRAINT or DATABASE.
    """

    QUERY_TIMEOUT = "query_timeout"
    CONNECTION = "connection"
    CONSTRAINT = "constraint"
    DATABASE = "database"

    def __init__(self, message: str, kind: str = DATABASE):
        self.kind = kind
        super().__init__(message)


# PostgreSQL SQLSTATE codes that get their own kind
_PG_QUERY_CANCELED = "57014"
_PG_INTEGRITY_CLASS = "23"
_PG_CONNECTION_CLASS = "08"


def is_driver_error(error: BaseException) -> bool:
    """Check if an exception was raised by a database driver."""
    if isinstance(error, sqlite3.Error):
        return True
    # psycopg2 errors all carry pgcode/pgerror; avoid importing psycopg2 for SQLite users
    return type(error).__module__.startswith("psycopg2")


def translate_driver_error(error: BaseException) -> PersistenceError:
    """Map a sqlite3/psycopg2 exception onto a PersistenceError kind."""
    if isinstance(error, sqlite3.IntegrityError):
        kind = PersistenceError.CONSTRAINT
    elif isinstance(error, sqlite3.OperationalError) and "locked" in str(error).lower():
        kind = PersistenceError.QUERY_TIMEOUT
    elif isinstance(error, sqlite3.Error):
        kind = PersistenceError.DATABASE
    else:
        pgcode = getattr(error, "pgcode", None) or ""
        if pgcode == _PG_QUERY_CANCELED:
            kind = PersistenceError.QUERY_TIMEOUT
        elif pgcode.startswith(_PG_INTEGRITY_CLASS):
            kind = PersistenceError.CONSTRAINT
        elif pgcode.startswith(_PG_CONNECTION_CLASS) or type(error).__name__ in (
            "OperationalError",
            "InterfaceError",
            "PoolError",
        ):
            kind = PersistenceError.CONNECTION
        else:
            kind = PersistenceError.DATABASE

    return PersistenceError(f"{type(error).__name__}: {error}", kind=kind)
