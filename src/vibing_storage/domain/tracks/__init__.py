"""Track aggregates: persistence, search and patching."""

from .models import (
    MAX_VOTE,
    MIN_VOTE,
    Page,
    Track,
    TrackFilter,
    TrackFull,
    TrackMetadata,
    TrackOrder,
    TrackPatch,
)
from .repository import (
    count_tracks,
    create_track,
    get_all_tracks,
    get_track_by_id,
    get_track_by_title,
    remove_track,
)
from .filters import get_track_page, get_tracks_by_filter
from .patch import apply_patch

__all__ = [
    "MAX_VOTE",
    "MIN_VOTE",
    "Page",
    "Track",
    "TrackFilter",
    "TrackFull",
    "TrackMetadata",
    "TrackOrder",
    "TrackPatch",
    "count_tracks",
    "create_track",
    "get_all_tracks",
    "get_track_by_id",
    "get_track_by_title",
    "remove_track",
    "get_track_page",
    "get_tracks_by_filter",
    "apply_patch",
]
