"""
Track domain models.

A Track is the persisted row for one audio file and its statistics; a
TrackFull is a Track together with the vibes attached to it, and is the unit
every track operation reads and writes.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, Optional, TypeVar

from vibing_storage.core.exceptions import ValidationError
from vibing_storage.domain.vibes.models import Vibe, VibeRef

MIN_VOTE = 0
MAX_VOTE = 255


@dataclass
class Track:
    """A track row.

    vote_count grows by one per vote and total_rating by the vote value, so
    the average is always total_rating / vote_count (0 without votes).
    """

    id: int
    path: str
    title: Optional[str] = None
    author: Optional[str] = None
    genre: Optional[str] = None
    duration: Optional[int] = None  # in seconds
    vote_count: int = 0
    total_rating: int = 0
    download_count: int = 0

    @property
    def average_rating(self) -> float:
        if self.vote_count > 0:
            return self.total_rating / self.vote_count
        return 0.0


@dataclass
class TrackFull:
    """A track with its attached vibes (no duplicate vibe ids)."""

    track: Track
    vibes: list[Vibe] = field(default_factory=list)

    @property
    def id(self) -> int:
        return self.track.id

    @property
    def average_rating(self) -> float:
        return self.track.average_rating

    @property
    def vibe_ids(self) -> set[int]:
        return {vibe.id for vibe in self.vibes}


@dataclass(frozen=True)
class TrackMetadata:
    """Fields needed to create a track. Only the path is required."""

    path: str
    title: Optional[str] = None
    author: Optional[str] = None
    genre: Optional[str] = None
    duration: Optional[int] = None


class TrackOrder(str, Enum):
    """Sort keys accepted by track listings. Anything else is ignored."""

    RATING = "rating"
    MOST_DOWNLOADED = "most-downloaded"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["TrackOrder"]:
        """Return the matching order, or None for missing/unknown keys."""
        if value is None:
            return None
        try:
            return cls(value)
        except ValueError:
            return None


@dataclass(frozen=True)
class TrackFilter:
    """Search criteria for listing tracks.

    Attributes:
        pattern: Case-insensitive substring matched against title or author
        author: Exact author match
        vibes: Vibe names; a track matches if it carries at least one
        limit: Maximum number of tracks returned
        order_by: "rating" or "most-downloaded"; other values are ignored
    """

    pattern: Optional[str] = None
    author: Optional[str] = None
    vibes: Optional[list[str]] = None
    limit: Optional[int] = None
    order_by: Optional[str] = None

    def validate(self) -> None:
        """Raises ValidationError if the limit is negative."""
        if self.limit is not None and self.limit < 0:
            raise ValidationError(f"limit must not be negative, got {self.limit}")


@dataclass
class TrackPatch:
    """Sparse set of changes to a track. Absent fields mean "no change".

    Attributes:
        new_vote: Rating value 0-255 to record as one vote
        new_download: Record one download
        add_vibes: Vibes to attach (ids or (group, name) pairs)
        remove_vibes: Vibes to detach (ids or (group, name) pairs)
    """

    path: Optional[str] = None
    title: Optional[str] = None
    author: Optional[str] = None
    genre: Optional[str] = None
    duration: Optional[int] = None
    new_vote: Optional[int] = None
    new_download: bool = False
    add_vibes: list[VibeRef] = field(default_factory=list)
    remove_vibes: list[VibeRef] = field(default_factory=list)

    def has_track_changes(self) -> bool:
        """Check if the patch touches the track row itself."""
        return (
            any(
                value is not None
                for value in (self.path, self.title, self.author, self.genre, self.duration)
            )
            or self.new_vote is not None
            or self.new_download
        )

    def validate(self) -> None:
        """Check every present value is in its accepted domain.

        Raises:
            ValidationError: On a vote outside 0-255, an empty path or a
                negative duration
        """
        if self.new_vote is not None:
            if isinstance(self.new_vote, bool) or not isinstance(self.new_vote, int):
                raise ValidationError(f"Vote must be an integer, got {self.new_vote!r}")
            if not MIN_VOTE <= self.new_vote <= MAX_VOTE:
                raise ValidationError(
                    f"Vote must be between {MIN_VOTE} and {MAX_VOTE}, got {self.new_vote}"
                )
        if self.path is not None and not self.path.strip():
            raise ValidationError("Track path must not be empty")
        if self.duration is not None and self.duration < 0:
            raise ValidationError(f"Duration must not be negative, got {self.duration}")


T = TypeVar("T")


@dataclass
class Page(Generic[T]):
    """A counted slice of a listing. page_num is 1-based."""

    items: list[T] = field(default_factory=list)
    total_items: int = 0
    total_page: int = 0
    page_num: int = 1
    page_size: int = 0
