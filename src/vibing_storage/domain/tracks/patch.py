"""Applying a TrackPatch to a track aggregate.

A patch runs in three steps, always in this order:

1. Update the track row: present fields are overwritten; a vote bumps
   vote_count by one and total_rating by the vote value, a download bumps
   download_count by one. Counters are incremented inside the UPDATE
   statement itself, never computed from the in-memory values, so
   concurrent votes and downloads are never lost.
2. Detach the vibes in remove_vibes.
3. Attach the vibes in add_vibes (already attached vibes are left alone).

Removal runs before addition, so a vibe in both sets ends up attached.

By default each step commits on its own. If a later step fails, the earlier
steps stay applied in the database and in the aggregate; every step is safe
to retry. Pass atomic=True to run all steps in one transaction instead: on
failure nothing is written and the passed aggregate is left untouched.
"""

import copy
from contextlib import contextmanager
from typing import Iterator, Sequence

from loguru import logger

from vibing_storage.core.db_adapter import Connection, ConnectionPool
from vibing_storage.core.exceptions import NotFound
from vibing_storage.domain.vibes.catalog import (
    fetch_vibes_by_keys,
    resolve_vibe_refs,
    split_vibe_refs,
)
from vibing_storage.domain.vibes.models import VibeRef

from .models import TrackFull, TrackPatch

# Columns a patch may overwrite directly
PATCHABLE_COLUMNS = ("path", "title", "author", "genre", "duration")


def update_track_row(track_full: TrackFull, patch: TrackPatch, db_conn: Connection) -> bool:
    """Persist field, vote and download changes and mirror them in memory.

    Returns:
        True if a write was issued, False if the patch had no row changes

    Raises:
        NotFound: If the track row no longer exists
    """
    assignments: list[str] = []
    params: list = []

    for column in PATCHABLE_COLUMNS:
        value = getattr(patch, column)
        if value is not None:
            assignments.append(f"{column} = ?")
            params.append(value)

    if patch.new_vote is not None:
        assignments.append("vote_count = vote_count + 1")
        assignments.append("total_rating = total_rating + ?")
        params.append(patch.new_vote)

    if patch.new_download:
        assignments.append("download_count = download_count + 1")

    if not assignments:
        return False

    track = track_full.track
    cursor = db_conn.execute(
        f"UPDATE tracks SET {', '.join(assignments)} WHERE track_id = ?",
        [*params, track.id],
    )
    if cursor.rowcount == 0:
        raise NotFound("Track", track.id)

    for column in PATCHABLE_COLUMNS:
        value = getattr(patch, column)
        if value is not None:
            setattr(track, column, value)

    if patch.new_vote is not None:
        track.vote_count += 1
        track.total_rating += patch.new_vote

    if patch.new_download:
        track.download_count += 1

    return True


def remove_track_vibes(track_full: TrackFull, refs: Sequence[VibeRef], db_conn: Connection) -> int:
    """Delete association rows for the given vibes and drop them from memory.

    References to vibes that do not exist are ignored.

    Returns:
        Number of association rows deleted
    """
    if not refs:
        return 0

    vibe_ids, keys = split_vibe_refs(refs)
    vibe_ids.extend(vibe.id for vibe in fetch_vibes_by_keys(keys, db_conn))
    vibe_ids = list(dict.fromkeys(vibe_ids))
    if not vibe_ids:
        return 0

    placeholders = ",".join("?" * len(vibe_ids))
    cursor = db_conn.execute(
        f"DELETE FROM tracks_with_vibes WHERE track = ? AND vibe IN ({placeholders})",
        [track_full.track.id, *vibe_ids],
    )

    removed = set(vibe_ids)
    track_full.vibes = [vibe for vibe in track_full.vibes if vibe.id not in removed]
    return cursor.rowcount


def add_track_vibes(track_full: TrackFull, refs: Sequence[VibeRef], db_conn: Connection) -> int:
    """Insert association rows for the given vibes and add them to memory.

    Adding a vibe that is already attached is a no-op.

    Returns:
        Number of vibes newly added to the aggregate

    Raises:
        NotFound: If a reference matches no vibe (nothing is inserted)
    """
    if not refs:
        return 0

    vibes = resolve_vibe_refs(refs, db_conn)
    db_conn.executemany(
        "INSERT INTO tracks_with_vibes (track, vibe) VALUES (?, ?) ON CONFLICT DO NOTHING",
        [(track_full.track.id, vibe.id) for vibe in vibes],
    )

    present = track_full.vibe_ids
    added = [vibe for vibe in vibes if vibe.id not in present]
    track_full.vibes.extend(added)
    return len(added)


@contextmanager
def _step(pool: ConnectionPool, shared: Connection | None) -> Iterator[Connection]:
    if shared is not None:
        yield shared
    else:
        with pool.transaction() as conn:
            yield conn


def _run_steps(
    track_full: TrackFull, patch: TrackPatch, pool: ConnectionPool, shared: Connection | None
) -> None:
    with _step(pool, shared) as conn:
        updated = update_track_row(track_full, patch, conn)

    with _step(pool, shared) as conn:
        removed = remove_track_vibes(track_full, patch.remove_vibes, conn)

    with _step(pool, shared) as conn:
        added = add_track_vibes(track_full, patch.add_vibes, conn)

    logger.info(
        f"Patched track #{track_full.track.id}: "
        f"row={'updated' if updated else 'unchanged'}, -{removed} vibes, +{added} vibes"
    )


def apply_patch(
    track_full: TrackFull, patch: TrackPatch, pool: ConnectionPool, atomic: bool = False
) -> TrackFull:
    """Apply a patch to a track aggregate and return the updated aggregate.

    Args:
        track_full: Aggregate to patch (updated in place unless atomic)
        patch: Changes to apply
        pool: Connection pool
        atomic: Run all steps in one transaction (all-or-nothing)

    Raises:
        ValidationError: If a patch value is out of range (nothing is written)
        NotFound: If the track or a vibe to add does not exist
        PersistenceError: If a write fails
    """
    patch.validate()

    if not atomic:
        _run_steps(track_full, patch, pool, shared=None)
        return track_full

    working = copy.deepcopy(track_full)
    with pool.transaction() as conn:
        _run_steps(working, patch, pool, shared=conn)
    return working
