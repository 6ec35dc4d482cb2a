"""
Directory import.

Scans a resource directory for audio files and creates one track per file.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from loguru import logger

from vibing_storage.core.db_adapter import ConnectionPool
from vibing_storage.core.exceptions import PersistenceError
from vibing_storage.domain.tracks.models import TrackFull
from vibing_storage.domain.tracks.repository import create_track

from .metadata import extract_track_metadata

DEFAULT_FORMATS = [".mp3"]


@dataclass
class ImportResult:
    """Outcome of importing one directory."""

    created: list[TrackFull] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)  # Paths already stored

    @property
    def created_count(self) -> int:
        return len(self.created)


def is_supported_format(path: Path, supported_formats: list[str]) -> bool:
    """Check if file format is supported."""
    return path.suffix.lower() in supported_formats


def find_audio_files(directory: Path, supported_formats: list[str]) -> list[Path]:
    """List supported audio files directly inside a directory, sorted by name.

    Subdirectories are not descended into.
    """
    return sorted(
        entry
        for entry in directory.iterdir()
        if entry.is_file() and is_supported_format(entry, supported_formats)
    )


def import_directory(
    directory: str | Path,
    pool: ConnectionPool,
    supported_formats: Optional[list[str]] = None,
) -> ImportResult:
    """Create a track for every supported audio file of a directory.

    Files whose path is already stored are skipped, so importing the same
    directory twice is harmless.

    Args:
        directory: Directory to import from
        pool: Connection pool
        supported_formats: File extensions to import (default: .mp3)

    Returns:
        ImportResult listing created tracks and skipped paths

    Raises:
        NotADirectoryError: If the directory does not exist
        PersistenceError: If a track could not be stored for another reason
    """
    path = Path(directory).expanduser()
    if not path.is_dir():
        raise NotADirectoryError(str(path))

    formats = [fmt.lower() for fmt in (supported_formats or DEFAULT_FORMATS)]
    files = find_audio_files(path, formats)
    logger.info(f"Importing {len(files)} audio files from {path}")

    result = ImportResult()
    for file_path in files:
        metadata = extract_track_metadata(str(file_path.resolve()))
        try:
            result.created.append(create_track(metadata, pool))
        except PersistenceError as e:
            if e.kind != PersistenceError.CONSTRAINT:
                raise
            logger.debug(f"Skipping already stored track: {metadata.path}")
            result.skipped.append(metadata.path)

    logger.info(
        f"Import complete: {result.created_count} created, {len(result.skipped)} skipped"
    )
    return result
