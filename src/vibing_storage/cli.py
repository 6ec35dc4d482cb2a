"""
Vibing Storage CLI - database setup, library import and the API server
"""

import argparse
import sys
from pathlib import Path
from typing import Optional

from loguru import logger

from vibing_storage import __version__
from vibing_storage.core import (
    Config,
    VibingStorageError,
    create_pool,
    ensure_directories,
    get_console,
    init_database,
    load_config,
    safe_print,
)
from vibing_storage.core.db_adapter import ConnectionPool
from vibing_storage.core.logging import setup_logging_from_config


def _open_pool(config: Config) -> ConnectionPool:
    pool = create_pool(config.database)
    pool.open()
    init_database(pool)
    return pool


def run_init_db(config: Config) -> int:
    """Create the schema (idempotent)."""
    pool = _open_pool(config)
    try:
        backend = "PostgreSQL" if pool.is_postgres else str(pool.sqlite_path)
        safe_print(f"Database ready: {backend}", "green")
    finally:
        pool.close()
    return 0


def run_import(config: Config, directory: Optional[str]) -> int:
    """Import every supported audio file of a directory as a track.

    Args:
        config: Loaded configuration
        directory: Directory to import (default: [library] resource_dir)

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    from vibing_storage.domain.library import import_directory

    target = directory or config.library.resource_dir
    if not target:
        safe_print(
            "No directory given and no resource_dir set in [library]", "red"
        )
        return 1

    pool = _open_pool(config)
    try:
        result = import_directory(target, pool, config.library.supported_formats)
    except NotADirectoryError:
        safe_print(f"Not a directory: {target}", "red")
        return 1
    finally:
        pool.close()

    for track_full in result.created:
        track = track_full.track
        label = f"{track.author} - {track.title}" if track.author else track.title
        safe_print(f"  + #{track.id} {label or Path(track.path).name}")
    safe_print(
        f"Imported {result.created_count} tracks, skipped {len(result.skipped)} already stored",
        "green",
    )
    return 0


def run_stats(config: Config) -> int:
    """Print track, vibe and vibe group counts."""
    from rich.table import Table

    from vibing_storage.domain.tracks import count_tracks
    from vibing_storage.domain.vibes import count_vibe_groups, count_vibes

    pool = _open_pool(config)
    try:
        table = Table(title="Vibing Storage")
        table.add_column("Entity")
        table.add_column("Count", justify="right")
        table.add_row("Tracks", str(count_tracks(pool)))
        table.add_row("Vibes", str(count_vibes(pool)))
        table.add_row("Vibe groups", str(count_vibe_groups(pool)))
    finally:
        pool.close()

    get_console().print(table)
    return 0


def run_add_vibe(config: Config, group: str, name: str) -> int:
    """Add a vibe to a group, creating the group if needed."""
    from vibing_storage.domain.vibes import create_vibe

    pool = _open_pool(config)
    try:
        vibe = create_vibe(group, name, pool, create_group=True)
    finally:
        pool.close()

    safe_print(f"Added vibe {vibe.group_name}/{vibe.name} (#{vibe.id})", "green")
    return 0


def run_serve(config: Config, host: Optional[str], port: Optional[int], reload: bool) -> int:
    """Run the web API with uvicorn."""
    import uvicorn

    uvicorn.run(
        "web.backend.main:app",
        host=host or config.server.host,
        port=port or config.server.port,
        reload=reload,
    )
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vibing-storage",
        description="Vibing Storage - rate, tag and download music",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest="subcommand", help="Available commands")

    subparsers.add_parser("init-db", help="Create the database schema")

    import_parser = subparsers.add_parser(
        "import", help="Import the audio files of a directory as tracks"
    )
    import_parser.add_argument(
        "directory",
        nargs="?",
        help="Directory to import (default: [library] resource_dir)",
    )

    subparsers.add_parser("stats", help="Show track, vibe and vibe group counts")

    vibe_parser = subparsers.add_parser("add-vibe", help="Add a vibe to a vibe group")
    vibe_parser.add_argument("group", help="Vibe group name (created if missing)")
    vibe_parser.add_argument("name", help="Vibe name")

    serve_parser = subparsers.add_parser("serve", help="Run the web API")
    serve_parser.add_argument("--host", help="Bind address (default: [server] host)")
    serve_parser.add_argument("--port", type=int, help="Port (default: [server] port)")
    serve_parser.add_argument(
        "--reload", action="store_true", help="Reload on code changes (development)"
    )

    return parser


def main(argv: Optional[list[str]] = None) -> None:
    """Main entry point for the vibing-storage command."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.subcommand:
        parser.print_help()
        sys.exit(1)

    config = load_config()
    ensure_directories()
    setup_logging_from_config(config.logging)

    try:
        if args.subcommand == "init-db":
            sys.exit(run_init_db(config))

        elif args.subcommand == "import":
            sys.exit(run_import(config, args.directory))

        elif args.subcommand == "stats":
            sys.exit(run_stats(config))

        elif args.subcommand == "add-vibe":
            sys.exit(run_add_vibe(config, args.group, args.name))

        elif args.subcommand == "serve":
            sys.exit(run_serve(config, args.host, args.port, args.reload))

    except VibingStorageError as e:
        logger.exception(f"Command {args.subcommand} failed")
        safe_print(f"Error: {e}", "red")
        sys.exit(1)


if __name__ == "__main__":
    main()
