"""Core infrastructure layer - no business logic dependencies.

This module provides foundation-level services:
- Configuration management (TOML)
- Connection pool and schema (SQLite / PostgreSQL)
- Error taxonomy
- Logging (loguru) and console (Rich)

Clean architecture principle: The core layer has no dependencies on
domain or application layers.
"""

# Configuration
from .config import (
    Config,
    DatabaseConfig,
    LibraryConfig,
    load_config,
    get_config_dir,
    get_config_path,
    get_data_dir,
    create_default_config,
    ensure_directories,
)

# Database
from .db_adapter import ConnectionPool
from .database import (
    get_database_path,
    create_pool,
    get_pool,
    set_pool,
    close_pool,
    init_database,
)

# Errors
from .exceptions import (
    VibingStorageError,
    NotFound,
    PersistenceError,
    ValidationError,
)

# Console
from .console import get_console, safe_print

__all__ = [
    # Config
    "Config",
    "DatabaseConfig",
    "LibraryConfig",
    "load_config",
    "get_config_dir",
    "get_config_path",
    "get_data_dir",
    "create_default_config",
    "ensure_directories",
    # Database
    "ConnectionPool",
    "get_database_path",
    "create_pool",
    "get_pool",
    "set_pool",
    "close_pool",
    "init_database",
    # Errors
    "VibingStorageError",
    "NotFound",
    "PersistenceError",
    "ValidationError",
    # Console
    "get_console",
    "safe_print",
]
