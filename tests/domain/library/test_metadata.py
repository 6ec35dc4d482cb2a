"""
Tests for audio metadata extraction.
"""

from unittest.mock import Mock, patch

import pytest
from mutagen import MutagenError

from vibing_storage.domain.library.metadata import (
    extract_metadata_from_filename,
    extract_track_metadata,
    fill_missing_metadata,
    get_tag_value,
)
from vibing_storage.domain.tracks import TrackMetadata

MUTAGEN_FILE = "vibing_storage.domain.library.metadata.MutagenFile"


def make_audio(tags: dict, length=None):
    audio = Mock()
    audio.get.side_effect = lambda key: tags.get(key)
    audio.info = Mock(length=length)
    return audio


@pytest.fixture
def audio_path(tmp_path):
    path = tmp_path / "Artist Name - Track Title.mp3"
    path.write_bytes(b"\x00" * 16)
    return path


class TestGetTagValue:
    """Test reading the first present tag."""

    def test_first_matching_tag(self):
        audio = make_audio({"TITLE": ["Vorbis Title"], "title": ["lower"]})
        assert get_tag_value(audio, ["TIT2", "TITLE", "title"]) == "Vorbis Title"

    def test_non_list_value(self):
        audio = make_audio({"TIT2": "Plain"})
        assert get_tag_value(audio, ["TIT2"]) == "Plain"

    def test_missing(self):
        assert get_tag_value(make_audio({}), ["TIT2"]) is None

    def test_value_error_skipped(self):
        audio = Mock()
        audio.get.side_effect = [ValueError("bad key"), ["Found"]]
        assert get_tag_value(audio, ["bad", "good"]) == "Found"


class TestExtractMetadataFromFilename:
    """Test the filename fallback."""

    def test_author_and_title(self):
        metadata = extract_metadata_from_filename("/music/Artist Name - Track Title.mp3")
        assert metadata.author == "Artist Name"
        assert metadata.title == "Track Title"
        assert metadata.path == "/music/Artist Name - Track Title.mp3"

    def test_title_only(self):
        metadata = extract_metadata_from_filename("/music/Just A Song.mp3")
        assert metadata.author is None
        assert metadata.title == "Just A Song"


class TestExtractTrackMetadata:
    """Test tag extraction with mutagen."""

    def test_reads_tags_and_duration(self, audio_path):
        audio = make_audio(
            {"TIT2": ["Tagged"], "TPE1": ["Tagger"], "TCON": ["House"]}, length=183.7
        )
        with patch(MUTAGEN_FILE, return_value=audio):
            metadata = extract_track_metadata(str(audio_path))

        assert metadata == TrackMetadata(
            path=str(audio_path), title="Tagged", author="Tagger", genre="House", duration=183
        )

    def test_missing_tags_use_filename(self, audio_path):
        with patch(MUTAGEN_FILE, return_value=make_audio({}, length=60.0)):
            metadata = extract_track_metadata(str(audio_path))

        assert metadata.title == "Track Title"
        assert metadata.author == "Artist Name"
        assert metadata.genre is None
        assert metadata.duration == 60

    def test_unrecognized_format(self, audio_path):
        with patch(MUTAGEN_FILE, return_value=None):
            metadata = extract_track_metadata(str(audio_path))
        assert metadata.title == "Track Title"
        assert metadata.duration is None

    def test_unreadable_file(self, audio_path):
        with patch(MUTAGEN_FILE, side_effect=MutagenError("corrupt")):
            metadata = extract_track_metadata(str(audio_path))
        assert metadata.title == "Track Title"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            extract_track_metadata(str(tmp_path / "nope.mp3"))


class TestFillMissingMetadata:
    """Test merging caller metadata with file tags."""

    def test_only_missing_fields_filled(self, audio_path):
        audio = make_audio(
            {"TIT2": ["Tagged"], "TPE1": ["Tagger"], "TCON": ["House"]}, length=200.0
        )
        given = TrackMetadata(path=str(audio_path), title="Chosen", duration=10)

        with patch(MUTAGEN_FILE, return_value=audio):
            filled = fill_missing_metadata(given)

        assert filled == TrackMetadata(
            path=str(audio_path), title="Chosen", author="Tagger", genre="House", duration=10
        )
