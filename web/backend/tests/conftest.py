"""Pytest configuration for backend tests.

Points configuration at a throwaway file before the app module is imported,
and provides a client wired to a temporary SQLite database and library.
"""

import os
import tempfile
from pathlib import Path

import pytest

_config_dir = Path(tempfile.mkdtemp(prefix="vibing-storage-test-"))
os.environ.setdefault("VIBING_STORAGE_CONFIG", str(_config_dir / "config.toml"))
os.environ.setdefault("ALLOWED_ORIGINS", "http://localhost:3000")

from fastapi.testclient import TestClient  # noqa: E402

from vibing_storage.core.config import Config, LibraryConfig  # noqa: E402
from vibing_storage.core.database import init_database  # noqa: E402
from vibing_storage.core.db_adapter import ConnectionPool  # noqa: E402
from web.backend.deps import get_config, get_pool  # noqa: E402
from web.backend.main import app  # noqa: E402


@pytest.fixture
def library(tmp_path):
    """Library root containing one audio file."""
    lib_path = tmp_path / "music"
    lib_path.mkdir()
    (lib_path / "Artist - Song.mp3").write_bytes(b"ID3fake-audio-bytes")
    return lib_path


@pytest.fixture
def pool(tmp_path):
    pool = ConnectionPool(sqlite_path=tmp_path / "api.db", max_connections=4, acquire_timeout=2.0)
    pool.open()
    init_database(pool)
    yield pool
    pool.close()


@pytest.fixture
def client(pool, library):
    config = Config(library=LibraryConfig(library_paths=[str(library)]))
    app.dependency_overrides[get_pool] = lambda: pool
    app.dependency_overrides[get_config] = lambda: config
    yield TestClient(app)
    app.dependency_overrides.clear()
