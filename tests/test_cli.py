"""Tests for the vibing-storage command line."""

from unittest.mock import patch

import pytest

from vibing_storage.cli import build_parser, run_import, run_init_db, run_stats
from vibing_storage.core.config import Config, DatabaseConfig, LibraryConfig


@pytest.fixture
def config(tmp_path):
    resource = tmp_path / "resource"
    resource.mkdir()
    (resource / "Artist - Song.mp3").write_bytes(b"\x00")
    return Config(
        library=LibraryConfig(library_paths=[str(tmp_path)], resource_dir=str(resource)),
        database=DatabaseConfig(sqlite_path=str(tmp_path / "cli.db")),
    )


class TestParser:
    """Test argument parsing."""

    def test_import_directory_optional(self):
        args = build_parser().parse_args(["import"])
        assert args.subcommand == "import"
        assert args.directory is None

    def test_serve_options(self):
        args = build_parser().parse_args(["serve", "--port", "9000"])
        assert args.port == 9000
        assert args.host is None
        assert args.reload is False

    def test_add_vibe(self):
        args = build_parser().parse_args(["add-vibe", "mood", "chill"])
        assert (args.group, args.name) == ("mood", "chill")


class TestCommands:
    """Test command handlers against a temporary database."""

    def test_init_db(self, config, monkeypatch, tmp_path):
        monkeypatch.delenv("DATABASE_URL", raising=False)
        assert run_init_db(config) == 0
        assert (tmp_path / "cli.db").exists()

    def test_import_uses_resource_dir(self, config, monkeypatch):
        monkeypatch.delenv("DATABASE_URL", raising=False)
        with patch("vibing_storage.domain.library.metadata.MutagenFile", return_value=None):
            assert run_import(config, None) == 0
        assert run_stats(config) == 0

    def test_import_without_directory(self, config):
        config.library.resource_dir = None
        assert run_import(config, None) == 1

    def test_import_missing_directory(self, config, monkeypatch, tmp_path):
        monkeypatch.delenv("DATABASE_URL", raising=False)
        assert run_import(config, str(tmp_path / "missing")) == 1
