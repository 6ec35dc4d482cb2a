"""Serving stored audio files to clients."""

import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Iterator

CHUNK_SIZE = 64 * 1024

AUDIO_MIME_TYPES: dict[str, str] = {
    ".mp3": "audio/mpeg",
    ".opus": "audio/opus",
    ".ogg": "audio/ogg",
    ".m4a": "audio/mp4",
    ".flac": "audio/flac",
    ".wav": "audio/wav",
}


def get_mime_type(file_path: Path) -> str:
    """Pure function - deterministic MIME type detection."""
    mime = AUDIO_MIME_TYPES.get(file_path.suffix.lower())
    if mime:
        return mime
    guessed, _ = mimetypes.guess_type(str(file_path))
    return guessed or "application/octet-stream"


@dataclass
class DownloadableFile:
    """An open file ready to be sent: its name, content type and bytes.

    Use as a context manager, or call close() once the bytes are sent.
    """

    name: str
    content_type: str
    file: BinaryIO

    @classmethod
    def open(cls, path: str | Path) -> "DownloadableFile":
        """Open a file for sending.

        Raises:
            FileNotFoundError: If the file does not exist
        """
        file_path = Path(path)
        return cls(
            name=file_path.name,
            content_type=get_mime_type(file_path),
            file=file_path.open("rb"),
        )

    def iter_chunks(self, chunk_size: int = CHUNK_SIZE) -> Iterator[bytes]:
        """Yield the file contents in chunks, closing the file at the end."""
        try:
            while chunk := self.file.read(chunk_size):
                yield chunk
        finally:
            self.close()

    def close(self) -> None:
        self.file.close()

    def __enter__(self) -> "DownloadableFile":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
