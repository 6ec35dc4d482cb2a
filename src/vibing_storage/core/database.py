"""
Database bootstrap for Vibing Storage: shared pool and schema.
"""

import threading
from pathlib import Path
from typing import Optional

from loguru import logger

from .config import DatabaseConfig, get_data_dir, load_config
from .db_adapter import ConnectionPool, get_database_url


# Database schema version for migrations
SCHEMA_VERSION = 1

_pool: Optional[ConnectionPool] = None
_pool_lock = threading.Lock()


def get_database_path(config: Optional[DatabaseConfig] = None) -> Path:
    """Get the path to the SQLite database file."""
    if config is not None and config.sqlite_path:
        return Path(config.sqlite_path)
    return get_data_dir() / "vibing_storage.db"


def create_pool(
    config: Optional[DatabaseConfig] = None, database_url: Optional[str] = None
) -> ConnectionPool:
    """Create a connection pool from database config and DATABASE_URL."""
    config = config or DatabaseConfig()
    url = database_url if database_url is not None else get_database_url()
    sqlite_path = get_database_path(config)
    sqlite_path.parent.mkdir(parents=True, exist_ok=True)

    return ConnectionPool(
        database_url=url,
        sqlite_path=sqlite_path,
        max_connections=config.max_connections,
        acquire_timeout=config.acquire_timeout,
    )


def get_pool() -> ConnectionPool:
    """Get the process-wide connection pool, creating it on first use."""
    global _pool
    with _pool_lock:
        if _pool is None:
            _pool = create_pool(load_config().database)
            _pool.open()
        return _pool


def set_pool(pool: Optional[ConnectionPool]) -> None:
    """Replace the process-wide pool (closing the previous one)."""
    global _pool
    with _pool_lock:
        if _pool is not None and _pool is not pool:
            _pool.close()
        _pool = pool


def close_pool() -> None:
    """Close the process-wide pool if one is open."""
    set_pool(None)


def init_database(pool: ConnectionPool) -> None:
    """Initialize the database with required tables."""
    id_column = "SERIAL PRIMARY KEY" if pool.is_postgres else "INTEGER PRIMARY KEY AUTOINCREMENT"

    with pool.transaction() as conn:
        conn.execute("""
            CREATE TABLE IF NOT EXISTS schema_version (
                version INTEGER PRIMARY KEY
            )
        """)

        conn.execute(f"""
            CREATE TABLE IF NOT EXISTS tracks (
                track_id {id_column},
                path TEXT UNIQUE NOT NULL,
                title TEXT,
                author TEXT,
                genre TEXT,
                duration INTEGER,
                vote_count INTEGER NOT NULL DEFAULT 0 CHECK (vote_count >= 0),
                total_rating BIGINT NOT NULL DEFAULT 0 CHECK (total_rating >= 0),
                download_count INTEGER NOT NULL DEFAULT 0 CHECK (download_count >= 0)
            )
        """)

        conn.execute(f"""
            CREATE TABLE IF NOT EXISTS vibe_groups (
                vibe_group_id {id_column},
                name TEXT UNIQUE NOT NULL
            )
        """)

        conn.execute(f"""
            CREATE TABLE IF NOT EXISTS vibes (
                vibe_id {id_column},
                name TEXT NOT NULL,
                vibe_group INTEGER NOT NULL REFERENCES vibe_groups (vibe_group_id) ON DELETE CASCADE,
                UNIQUE (vibe_group, name)
            )
        """)

        # Rows referencing a track are removed explicitly by the deletion protocol
        conn.execute("""
            CREATE TABLE IF NOT EXISTS tracks_with_vibes (
                track INTEGER NOT NULL REFERENCES tracks (track_id),
                vibe INTEGER NOT NULL REFERENCES vibes (vibe_id) ON DELETE CASCADE,
                PRIMARY KEY (track, vibe)
            )
        """)

        conn.execute("CREATE INDEX IF NOT EXISTS idx_tracks_title ON tracks (title)")
        conn.execute("CREATE INDEX IF NOT EXISTS idx_tracks_author ON tracks (author)")
        conn.execute("CREATE INDEX IF NOT EXISTS idx_vibes_name ON vibes (name)")
        conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_tracks_with_vibes_vibe ON tracks_with_vibes (vibe)"
        )

        row = conn.execute("SELECT MAX(version) AS version FROM schema_version").fetchone()
        current_version = row["version"] if row and row["version"] is not None else 0
        if current_version < SCHEMA_VERSION:
            conn.execute(
                "INSERT INTO schema_version (version) VALUES (?)", (SCHEMA_VERSION,)
            )

    logger.info(
        f"Database initialized ({'postgres' if pool.is_postgres else pool.sqlite_path}, "
        f"schema v{SCHEMA_VERSION})"
    )
