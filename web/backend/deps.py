from vibing_storage.core import database
from vibing_storage.core.config import Config, load_config
from vibing_storage.core.db_adapter import ConnectionPool


def get_pool() -> ConnectionPool:
    """FastAPI dependency for the shared connection pool."""
    return database.get_pool()


def get_config() -> Config:
    """FastAPI dependency for configuration."""
    return load_config()
