"""
Audio file metadata extraction.

Reads title, author, genre and duration from audio files using Mutagen.
Extraction is best-effort: unreadable files fall back to what the filename
tells us, and only the path is ever guaranteed.
"""

from dataclasses import replace
from pathlib import Path
from typing import Optional

from loguru import logger
from mutagen import File as MutagenFile
from mutagen import MutagenError

from vibing_storage.domain.tracks.models import TrackMetadata

# ID3 (MP3), MP4, and Vorbis/Opus tag names
TITLE_TAGS = ["TIT2", "\xa9nam", "TITLE", "title"]
AUTHOR_TAGS = ["TPE1", "\xa9ART", "ARTIST", "artist"]
GENRE_TAGS = ["TCON", "\xa9gen", "GENRE", "genre"]


def get_tag_value(audio_file: MutagenFile, tag_names: list[str]) -> Optional[str]:
    """Get tag value, trying multiple possible tag names."""
    for tag_name in tag_names:
        try:
            value = audio_file.get(tag_name)
        except (KeyError, ValueError):
            # Vorbis raises ValueError for non-existent keys
            continue
        if value:
            if isinstance(value, list):
                return str(value[0])
            return str(value)
    return None


def extract_metadata_from_filename(path: str) -> TrackMetadata:
    """Build metadata from an "Author - Title.ext" style filename."""
    title = Path(path).stem
    author = None

    if " - " in title:
        author, title = (part.strip() for part in title.split(" - ", 1))

    return TrackMetadata(path=path, title=title or None, author=author or None)


def extract_track_metadata(path: str) -> TrackMetadata:
    """Extract metadata from an audio file using mutagen.

    Missing tags stay None, except the title which falls back to the file
    stem. Duration is whole seconds.

    Raises:
        FileNotFoundError: If the file does not exist
    """
    if not Path(path).is_file():
        raise FileNotFoundError(path)

    try:
        audio_file = MutagenFile(path)
    except (MutagenError, OSError) as e:
        logger.warning(f"Could not read metadata from {path}: {e}")
        return extract_metadata_from_filename(path)

    if audio_file is None:
        logger.debug(f"Unrecognized audio format, using filename: {path}")
        return extract_metadata_from_filename(path)

    fallback = extract_metadata_from_filename(path)
    title = get_tag_value(audio_file, TITLE_TAGS) or fallback.title
    author = get_tag_value(audio_file, AUTHOR_TAGS) or fallback.author
    genre = get_tag_value(audio_file, GENRE_TAGS)

    duration = None
    info = getattr(audio_file, "info", None)
    length = getattr(info, "length", None)
    if length is not None:
        duration = int(length)

    return TrackMetadata(
        path=path, title=title, author=author, genre=genre, duration=duration
    )


def fill_missing_metadata(metadata: TrackMetadata) -> TrackMetadata:
    """Fill the fields a caller left empty with what the file itself carries.

    Fields already set are never overwritten.

    Raises:
        FileNotFoundError: If metadata.path does not exist
    """
    from_file = extract_track_metadata(metadata.path)
    return replace(
        metadata,
        title=metadata.title if metadata.title is not None else from_file.title,
        author=metadata.author if metadata.author is not None else from_file.author,
        genre=metadata.genre if metadata.genre is not None else from_file.genre,
        duration=(
            metadata.duration if metadata.duration is not None else from_file.duration
        ),
    )
