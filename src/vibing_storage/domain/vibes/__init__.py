"""Vibe catalog: tags grouped into vibe groups."""

from .models import Vibe, VibeGroup, VibeGroupFull, VibeKey, VibeRef
from .catalog import (
    count_vibe_groups,
    count_vibes,
    create_vibe,
    create_vibe_group,
    get_all_vibe_groups,
    get_all_vibes,
    get_vibe_by_id,
    get_vibe_by_key,
    get_vibe_by_name,
    get_vibe_group_by_id,
    get_vibe_group_by_name,
    get_vibes_by_track_id,
    get_vibes_by_track_ids,
)

__all__ = [
    "Vibe",
    "VibeGroup",
    "VibeGroupFull",
    "VibeKey",
    "VibeRef",
    "count_vibe_groups",
    "count_vibes",
    "create_vibe",
    "create_vibe_group",
    "get_all_vibe_groups",
    "get_all_vibes",
    "get_vibe_by_id",
    "get_vibe_by_key",
    "get_vibe_by_name",
    "get_vibe_group_by_id",
    "get_vibe_group_by_name",
    "get_vibes_by_track_id",
    "get_vibes_by_track_ids",
]
