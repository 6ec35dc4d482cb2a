"""
Tests for vibe catalog lookups and seeding.
"""

import pytest

from vibing_storage.core.exceptions import NotFound, PersistenceError, ValidationError
from vibing_storage.domain.tracks import TrackPatch, apply_patch
from vibing_storage.domain.vibes import (
    VibeKey,
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
from vibing_storage.domain.vibes.catalog import resolve_vibe_refs, split_vibe_refs


class TestVibeLookups:
    """Test single and bulk vibe lookups."""

    def test_get_by_id_carries_group(self, pool, vibes):
        chill = vibes[("mood", "chill")]
        vibe = get_vibe_by_id(chill.id, pool)
        assert vibe.name == "chill"
        assert vibe.group_name == "mood"

    def test_get_by_id_missing(self, pool):
        with pytest.raises(NotFound):
            get_vibe_by_id(42, pool)

    def test_get_by_name_prefers_earliest(self, pool, vibes):
        create_vibe("energy", "chill", pool, create_group=True)
        assert get_vibe_by_name("chill", pool).group_name == "mood"

    def test_get_by_key(self, pool, vibes):
        create_vibe("energy", "chill", pool, create_group=True)
        assert get_vibe_by_key("energy", "chill", pool).group_name == "energy"
        with pytest.raises(NotFound):
            get_vibe_by_key("tempo", "chill", pool)

    def test_get_all_vibes_ordered(self, pool, vibes):
        names = [(v.group_name, v.name) for v in get_all_vibes(pool)]
        assert names == [
            ("mood", "chill"),
            ("mood", "hype"),
            ("mood", "sad"),
            ("tempo", "fast"),
            ("tempo", "slow"),
        ]

    def test_vibes_by_track_ids(self, pool, vibes, make_track):
        first, second, bare = make_track(), make_track(), make_track()
        apply_patch(first, TrackPatch(add_vibes=[VibeKey("mood", "chill")]), pool)
        apply_patch(
            second, TrackPatch(add_vibes=[VibeKey("mood", "sad"), VibeKey("tempo", "slow")]), pool
        )

        result = get_vibes_by_track_ids([first.id, second.id, bare.id], pool)

        assert [v.name for v in result[first.id]] == ["chill"]
        assert {v.name for v in result[second.id]} == {"sad", "slow"}
        assert bare.id not in result
        assert get_vibes_by_track_id(bare.id, pool) == []
        assert get_vibes_by_track_ids([], pool) == {}

    def test_counts(self, pool, vibes):
        assert count_vibes(pool) == 5
        assert count_vibe_groups(pool) == 2


class TestVibeGroups:
    """Test vibe group lookups."""

    def test_group_by_name_with_vibes(self, pool, vibes):
        group_full = get_vibe_group_by_name("tempo", pool)
        assert group_full.group.name == "tempo"
        assert [v.name for v in group_full.vibes] == ["fast", "slow"]

    def test_group_by_id(self, pool, vibes):
        group_id = get_vibe_group_by_name("mood", pool).group.id
        assert get_vibe_group_by_id(group_id, pool).group.name == "mood"

    def test_group_missing(self, pool):
        with pytest.raises(NotFound):
            get_vibe_group_by_name("nope", pool)

    def test_all_groups_include_empty(self, pool, vibes):
        create_vibe_group("empty", pool)
        groups = {g.group.name: [v.name for v in g.vibes] for g in get_all_vibe_groups(pool)}
        assert groups == {
            "empty": [],
            "mood": ["chill", "hype", "sad"],
            "tempo": ["fast", "slow"],
        }


class TestSeeding:
    """Test creating groups and vibes."""

    def test_vibe_requires_group(self, pool):
        with pytest.raises(NotFound):
            create_vibe("ghost", "boo", pool)

    def test_duplicate_vibe_in_group(self, pool, vibes):
        with pytest.raises(PersistenceError) as exc_info:
            create_vibe("mood", "chill", pool)
        assert exc_info.value.kind == PersistenceError.CONSTRAINT

    def test_blank_names_rejected(self, pool):
        with pytest.raises(ValidationError):
            create_vibe_group("   ", pool)
        with pytest.raises(ValidationError):
            create_vibe("mood", "", pool, create_group=True)


class TestVibeRefs:
    """Test splitting and resolving vibe references."""

    def test_split(self):
        ids, keys = split_vibe_refs([3, ("mood", "chill"), VibeKey("tempo", "slow")])
        assert ids == [3]
        assert keys == [VibeKey("mood", "chill"), VibeKey("tempo", "slow")]

    @pytest.mark.parametrize("ref", [True, "chill", ("only-one",), None])
    def test_split_rejects_malformed(self, ref):
        with pytest.raises(ValidationError):
            split_vibe_refs([ref])

    def test_resolve_dedups(self, pool, vibes):
        chill = vibes[("mood", "chill")]
        with pool.connection() as conn:
            resolved = resolve_vibe_refs([chill.id, VibeKey("mood", "chill")], conn)
        assert resolved == [chill]

    def test_resolve_unknown(self, pool, vibes):
        with pool.connection() as conn:
            with pytest.raises(NotFound):
                resolve_vibe_refs([999], conn)
