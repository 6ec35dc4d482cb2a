"""Audio files on disk: metadata, directory import and file serving."""

from .files import AUDIO_MIME_TYPES, DownloadableFile, get_mime_type
from .metadata import (
    extract_metadata_from_filename,
    extract_track_metadata,
    fill_missing_metadata,
    get_tag_value,
)
from .scanner import ImportResult, find_audio_files, import_directory

__all__ = [
    "AUDIO_MIME_TYPES",
    "DownloadableFile",
    "get_mime_type",
    "extract_metadata_from_filename",
    "extract_track_metadata",
    "fill_missing_metadata",
    "get_tag_value",
    "ImportResult",
    "find_audio_files",
    "import_directory",
]
