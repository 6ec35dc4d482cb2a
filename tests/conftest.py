"""Shared fixtures: a fresh SQLite track store per test."""

import pytest

from vibing_storage.core.database import init_database
from vibing_storage.core.db_adapter import ConnectionPool
from vibing_storage.domain.tracks import TrackMetadata, create_track
from vibing_storage.domain.vibes import create_vibe


@pytest.fixture
def pool(tmp_path):
    """Connection pool over an initialized temporary SQLite database."""
    pool = ConnectionPool(sqlite_path=tmp_path / "test.db", max_connections=4, acquire_timeout=2.0)
    pool.open()
    init_database(pool)
    yield pool
    pool.close()


@pytest.fixture
def vibes(pool):
    """Seed two vibe groups. Returns {(group, name): Vibe}."""
    seeded = {}
    for group, name in [
        ("mood", "chill"),
        ("mood", "hype"),
        ("mood", "sad"),
        ("tempo", "slow"),
        ("tempo", "fast"),
    ]:
        seeded[(group, name)] = create_vibe(group, name, pool, create_group=True)
    return seeded


@pytest.fixture
def make_track(pool):
    """Factory creating tracks with sensible defaults."""
    counter = {"n": 0}

    def _make(**fields):
        counter["n"] += 1
        fields.setdefault("path", f"/music/track_{counter['n']}.mp3")
        return create_track(TrackMetadata(**fields), pool)

    return _make
