from pydantic import BaseModel, Field
from typing import Optional

from vibing_storage.domain.tracks import MAX_VOTE, MIN_VOTE, Page, TrackFull
from vibing_storage.domain.vibes import Vibe, VibeGroupFull


class ResponseVibe(BaseModel):
    group_name: str
    name: str

    @classmethod
    def from_vibe(cls, vibe: Vibe) -> "ResponseVibe":
        return cls(group_name=vibe.group_name, name=vibe.name)


class ResponseTrack(BaseModel):
    id: int
    path: str
    title: Optional[str] = None
    author: Optional[str] = None
    genre: Optional[str] = None
    duration: Optional[int] = None
    vibes: list[ResponseVibe] = []
    average_rating: float
    vote_count: int
    download_count: int

    @classmethod
    def from_track_full(cls, track_full: TrackFull) -> "ResponseTrack":
        track = track_full.track
        return cls(
            id=track.id,
            path=track.path,
            title=track.title,
            author=track.author,
            genre=track.genre,
            duration=track.duration,
            vibes=[ResponseVibe.from_vibe(vibe) for vibe in track_full.vibes],
            average_rating=track.average_rating,
            vote_count=track.vote_count,
            download_count=track.download_count,
        )


class TrackPageResponse(BaseModel):
    items: list[ResponseTrack]
    total_items: int
    total_page: int
    page: int
    size: int

    @classmethod
    def from_page(cls, page: Page[TrackFull]) -> "TrackPageResponse":
        return cls(
            items=[ResponseTrack.from_track_full(item) for item in page.items],
            total_items=page.total_items,
            total_page=page.total_page,
            page=page.page_num,
            size=page.page_size,
        )


class ResponseVibeGroup(BaseModel):
    id: int
    name: str
    vibes: list[str] = []

    @classmethod
    def from_group_full(cls, group_full: VibeGroupFull) -> "ResponseVibeGroup":
        return cls(
            id=group_full.group.id,
            name=group_full.group.name,
            vibes=[vibe.name for vibe in group_full.vibes],
        )


class VibePair(BaseModel):
    """A vibe addressed by its group and name."""

    group_name: str
    name: str


class UploadRequest(BaseModel):
    path: str = Field(min_length=1)
    title: Optional[str] = None
    author: Optional[str] = None
    genre: Optional[str] = None
    duration: Optional[int] = Field(default=None, ge=0)


class TrackPatchRequest(BaseModel):
    path: Optional[str] = Field(default=None, min_length=1)
    title: Optional[str] = None
    author: Optional[str] = None
    genre: Optional[str] = None
    duration: Optional[int] = Field(default=None, ge=0)
    rating: Optional[int] = Field(default=None, ge=MIN_VOTE, le=MAX_VOTE)
    add_vibes: list[VibePair] = []
    remove_vibes: list[VibePair] = []


class VoteRequest(BaseModel):
    track_id: int
    rating: int = Field(ge=MIN_VOTE, le=MAX_VOTE)
