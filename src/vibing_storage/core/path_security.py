"""
Path security validation utilities for Vibing Storage.

Provides pure functions to validate file paths are within allowed library directories,
preventing directory traversal attacks and symlink escapes.
"""

from pathlib import Path
from typing import Optional

from .config import LibraryConfig


def is_path_within_library(file_path: Path, library_paths: list[str]) -> bool:
    """Pure function - validates path is within allowed directories.

    Uses Path.resolve() to handle symlinks and relative paths, then checks if the
    resolved path is a child of any configured library root directory.

    Args:
        file_path: The file path to validate
        library_paths: List of allowed library root paths as strings

    Returns:
        True if path is within library boundaries, False otherwise
    """
    try:
        resolved_path = file_path.resolve()

        for lib_path_str in library_paths:
            lib_path = Path(lib_path_str).expanduser().resolve()
            if resolved_path.is_relative_to(lib_path):
                return True

        return False
    except (OSError, RuntimeError):
        # Path.resolve() can raise OSError for invalid paths or RuntimeError for recursion
        return False


def validate_track_path(file_path: Path, config: LibraryConfig) -> Optional[Path]:
    """Pure function - returns validated path or None.

    Args:
        file_path: The file path to validate
        config: Library configuration containing library paths

    Returns:
        The resolved Path if it exists and lies inside the library, None otherwise
    """
    if not file_path.is_file():
        return None

    if not is_path_within_library(file_path, config.library_paths):
        return None

    return file_path.resolve()
