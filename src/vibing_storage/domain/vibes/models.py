"""
Vibe catalog domain models.

Vibes are tags grouped into vibe groups. They are reference data: the track
store reads them but never mutates them while handling tracks.
"""

from dataclasses import dataclass, field
from typing import NamedTuple, Union


@dataclass(frozen=True)
class Vibe:
    """A named tag belonging to exactly one vibe group.

    The group name is carried on every vibe so it can be displayed directly.
    """

    id: int
    name: str
    group_name: str


@dataclass(frozen=True)
class VibeGroup:
    """A named grouping of vibes (e.g. "mood", "tempo")."""

    id: int
    name: str


@dataclass(frozen=True)
class VibeGroupFull:
    """A vibe group together with all of its vibes."""

    group: VibeGroup
    vibes: list[Vibe] = field(default_factory=list)


class VibeKey(NamedTuple):
    """Identifies a vibe by its group and name when the id is not known."""

    group_name: str
    name: str


# A reference to a vibe: its id, or its (group, name) pair
VibeRef = Union[int, VibeKey]
