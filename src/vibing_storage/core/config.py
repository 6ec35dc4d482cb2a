"""
Configuration management for Vibing Storage
"""

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional


@dataclass
class LibraryConfig:
    """Configuration for the audio library on disk."""

    library_paths: List[str] = field(
        default_factory=lambda: [str(Path.home() / "Music")]
    )
    resource_dir: Optional[str] = None  # Directory imported by `vibing-storage import`
    supported_formats: List[str] = field(default_factory=lambda: [".mp3"])


@dataclass
class DatabaseConfig:
    """Configuration for the track store and its connection pool."""

    sqlite_path: Optional[str] = None  # Default: <data dir>/vibing_storage.db
    max_connections: int = 20
    acquire_timeout: float = 30.0  # Seconds to wait for a pooled connection

    def validate(self) -> None:
        """Validate database configuration values.

        Raises:
            ValueError: If configuration values are invalid
        """
        if self.max_connections < 1:
            raise ValueError(
                f"max_connections must be at least 1, got {self.max_connections}"
            )
        if self.acquire_timeout <= 0:
            raise ValueError(
                f"acquire_timeout must be positive, got {self.acquire_timeout}"
            )


@dataclass
class ServerConfig:
    """Configuration for the HTTP API."""

    host: str = "127.0.0.1"
    port: int = 8000
    cors_origins: List[str] = field(
        default_factory=lambda: ["http://localhost:3000"]
    )


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_file: Optional[str] = (
        None  # Custom log file path (default: ~/.local/share/vibing-storage/vibing-storage.log)
    )
    max_file_size_mb: int = 10  # Maximum log file size before rotation
    backup_count: int = 5  # Number of rotated files to keep
    console_output: bool = False  # Also output to stderr


@dataclass
class Config:
    """Main configuration object."""

    library: LibraryConfig = field(default_factory=LibraryConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def get_config_dir() -> Path:
    """Get the configuration directory path."""
    config_home = os.environ.get("XDG_CONFIG_HOME")
    if config_home:
        return Path(config_home) / "vibing-storage"
    return Path.home() / ".config" / "vibing-storage"


def _find_project_config() -> Optional[Path]:
    """Find config.toml in project root by looking for pyproject.toml.

    Returns:
        Path to config.toml in project root, or None if not found
    """
    current = Path(__file__).resolve().parent
    for parent in [current] + list(current.parents):
        if (parent / "pyproject.toml").exists():
            config_path = parent / "config.toml"
            if config_path.exists():
                return config_path
            # Found project root but no config.toml there
            return None
    return None


def get_config_path() -> Path:
    """Get the main configuration file path.

    Checks for config.toml in the following order:
    1. VIBING_STORAGE_CONFIG environment variable
    2. Project root (detected via pyproject.toml) - for development
    3. Current working directory
    4. XDG_CONFIG_HOME/vibing-storage (or ~/.config/vibing-storage)
    """
    override = os.environ.get("VIBING_STORAGE_CONFIG")
    if override:
        return Path(override).expanduser()

    project_config = _find_project_config()
    if project_config:
        return project_config

    local_config = Path.cwd() / "config.toml"
    if local_config.exists():
        return local_config

    return get_config_dir() / "config.toml"


def get_data_dir() -> Path:
    """Get the data directory path."""
    data_home = os.environ.get("XDG_DATA_HOME")
    if data_home:
        return Path(data_home) / "vibing-storage"
    return Path.home() / ".local" / "share" / "vibing-storage"


def create_default_config() -> str:
    """Create a default configuration TOML content."""
    return """
# Vibing Storage Configuration

[library]
# Directories tracks may be downloaded or streamed from
library_paths = ["~/Music"]

# Directory scanned by `vibing-storage import` when no path is given
# resource_dir = "~/Music/vibes"

# Audio file extensions picked up by the importer
supported_formats = [".mp3"]

[database]
# SQLite file used when DATABASE_URL is not set
# sqlite_path = "~/.local/share/vibing-storage/vibing_storage.db"

# Maximum number of concurrently open connections
max_connections = 20

# Seconds to wait for a free connection before failing
acquire_timeout = 30.0

[server]
host = "127.0.0.1"
port = 8000
cors_origins = ["http://localhost:3000"]

[logging]
# Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
level = "INFO"

# Custom log file path (default: ~/.local/share/vibing-storage/vibing-storage.log)
# log_file = "/path/to/custom/vibing-storage.log"

# Maximum log file size in MB before rotation
max_file_size_mb = 10

# Number of rotated log files to keep
backup_count = 5

# Also output logs to stderr (useful for debugging)
console_output = false
""".strip()


def load_config() -> Config:
    """Load configuration from file or create default.

    Environment variables from a `.env` file in the config directory are
    loaded first, so DATABASE_URL can live there.
    """
    from dotenv import load_dotenv

    env_path = get_config_dir() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    config_path = get_config_path()

    if not config_path.exists():
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "w", encoding="utf-8") as f:
            f.write(create_default_config())
        print(f"Created default configuration at: {config_path}")
        return Config()

    try:
        with open(config_path, "rb") as f:
            toml_data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        print(f"Error loading configuration from {config_path}: {e}")
        print("Using default configuration.")
        return Config()

    return parse_config(toml_data)


def parse_config(toml_data: dict) -> Config:
    """Build a Config from parsed TOML data, falling back to defaults per key."""
    config = Config()

    if "library" in toml_data:
        library_data = toml_data["library"]
        resource_dir = library_data.get("resource_dir")
        config.library = LibraryConfig(
            library_paths=[
                str(Path(p).expanduser())
                for p in library_data.get("library_paths", config.library.library_paths)
            ],
            resource_dir=str(Path(resource_dir).expanduser()) if resource_dir else None,
            supported_formats=[
                ext.lower()
                for ext in library_data.get(
                    "supported_formats", config.library.supported_formats
                )
            ],
        )

    if "database" in toml_data:
        database_data = toml_data["database"]
        sqlite_path = database_data.get("sqlite_path")
        config.database = DatabaseConfig(
            sqlite_path=str(Path(sqlite_path).expanduser()) if sqlite_path else None,
            max_connections=database_data.get(
                "max_connections", config.database.max_connections
            ),
            acquire_timeout=database_data.get(
                "acquire_timeout", config.database.acquire_timeout
            ),
        )
        try:
            config.database.validate()
        except ValueError as e:
            print(f"Warning: Invalid database configuration: {e}")
            print("Using default database configuration.")
            config.database = DatabaseConfig(sqlite_path=config.database.sqlite_path)

    if "server" in toml_data:
        server_data = toml_data["server"]
        config.server = ServerConfig(
            host=server_data.get("host", config.server.host),
            port=server_data.get("port", config.server.port),
            cors_origins=server_data.get("cors_origins", config.server.cors_origins),
        )

    if "logging" in toml_data:
        logging_data = toml_data["logging"]
        config.logging = LoggingConfig(
            level=logging_data.get("level", config.logging.level),
            log_file=logging_data.get("log_file"),
            max_file_size_mb=logging_data.get(
                "max_file_size_mb", config.logging.max_file_size_mb
            ),
            backup_count=logging_data.get(
                "backup_count", config.logging.backup_count
            ),
            console_output=logging_data.get(
                "console_output", config.logging.console_output
            ),
        )

    return config


def ensure_directories() -> None:
    """Ensure the configuration and data directories exist."""
    get_config_dir().mkdir(parents=True, exist_ok=True)
    get_data_dir().mkdir(parents=True, exist_ok=True)
