"""
Track aggregate persistence: create, load, count and remove.

Loading many tracks always resolves vibes with one bulk query keyed by the
loaded track ids, never one query per track.
"""

from typing import Sequence

from loguru import logger

from vibing_storage.core.db_adapter import Connection, ConnectionPool
from vibing_storage.core.exceptions import NotFound, ValidationError
from vibing_storage.domain.vibes.catalog import fetch_vibes_by_track_ids

from .models import Track, TrackFull, TrackMetadata

_TRACK_FIELDS = (
    "track_id AS id",
    "path",
    "title",
    "author",
    "genre",
    "duration",
    "vote_count",
    "total_rating",
    "download_count",
)

# Selected from `tracks t`
TRACK_COLUMNS = ", ".join(f"t.{name}" for name in _TRACK_FIELDS)
# Unqualified, for RETURNING clauses
RETURNING_COLUMNS = ", ".join(_TRACK_FIELDS)


def row_to_track(row: dict) -> Track:
    """Build a Track from a row selected with TRACK_COLUMNS."""
    return Track(
        id=row["id"],
        path=row["path"],
        title=row["title"],
        author=row["author"],
        genre=row["genre"],
        duration=row["duration"],
        vote_count=row["vote_count"],
        total_rating=row["total_rating"],
        download_count=row["download_count"],
    )


def build_aggregates(tracks: Sequence[Track], db_conn: Connection) -> list[TrackFull]:
    """Resolve vibes for tracks in bulk and build the aggregates, keeping order."""
    if not tracks:
        return []

    vibes_by_track = fetch_vibes_by_track_ids([track.id for track in tracks], db_conn)
    return [
        TrackFull(track=track, vibes=vibes_by_track.get(track.id, []))
        for track in tracks
    ]


def create_track(metadata: TrackMetadata, pool: ConnectionPool) -> TrackFull:
    """Insert a new track. The aggregate starts with no vibes.

    Raises:
        ValidationError: If the path is empty
        PersistenceError: If the insert violates a storage constraint
            (e.g. the path is already stored)
    """
    if not metadata.path or not metadata.path.strip():
        raise ValidationError("Track path must not be empty")
    if metadata.duration is not None and metadata.duration < 0:
        raise ValidationError(f"Duration must not be negative, got {metadata.duration}")

    with pool.transaction() as conn:
        row = conn.execute(
            f"""
            INSERT INTO tracks (path, title, author, genre, duration)
            VALUES (?, ?, ?, ?, ?)
            RETURNING {RETURNING_COLUMNS}
            """,
            (
                metadata.path,
                metadata.title,
                metadata.author,
                metadata.genre,
                metadata.duration,
            ),
        ).fetchone()

    track = row_to_track(row)
    logger.info(f"Created track #{track.id}: {track.path}")
    return TrackFull(track=track, vibes=[])


def _get_one(column: str, value: object, pool: ConnectionPool) -> TrackFull:
    with pool.connection() as conn:
        row = conn.execute(
            f"SELECT {TRACK_COLUMNS} FROM tracks t WHERE t.{column} = ? ORDER BY t.track_id LIMIT 1",
            (value,),
        ).fetchone()
        if not row:
            raise NotFound("Track", value)

        track = row_to_track(row)
        vibes = fetch_vibes_by_track_ids([track.id], conn).get(track.id, [])

    logger.debug(f"Loaded track #{track.id} with {len(vibes)} vibes")
    return TrackFull(track=track, vibes=vibes)


def get_track_by_id(track_id: int, pool: ConnectionPool) -> TrackFull:
    """Load a track and its vibes by ID.

    Raises:
        NotFound: If no track has this ID
    """
    return _get_one("track_id", track_id, pool)


def get_track_by_title(title: str, pool: ConnectionPool) -> TrackFull:
    """Load a track and its vibes by exact title.

    Titles are not unique; the earliest created match is returned.

    Raises:
        NotFound: If no track has this title
    """
    return _get_one("title", title, pool)


def get_all_tracks(pool: ConnectionPool) -> list[TrackFull]:
    """Load every track with its vibes (two queries in total)."""
    with pool.connection() as conn:
        rows = conn.execute(
            f"SELECT {TRACK_COLUMNS} FROM tracks t ORDER BY t.track_id"
        ).fetchall()
        return build_aggregates([row_to_track(row) for row in rows], conn)


def count_tracks(pool: ConnectionPool) -> int:
    """Count all tracks."""
    with pool.connection() as conn:
        row = conn.execute("SELECT COUNT(*) AS tracks_count FROM tracks").fetchone()
    return row["tracks_count"]


def remove_track(track_full: TrackFull, pool: ConnectionPool) -> None:
    """Delete a track and every vibe association referencing it.

    Both deletes run in one transaction: either both commit or neither does.
    The aggregate must not be used after this returns.

    Raises:
        PersistenceError: If either delete or the commit fails
    """
    track_id = track_full.track.id

    with pool.transaction() as conn:
        links = conn.execute(
            "DELETE FROM tracks_with_vibes WHERE track = ?", (track_id,)
        ).rowcount
        conn.execute("DELETE FROM tracks WHERE track_id = ?", (track_id,))

    logger.info(f"Removed track #{track_id} ({links} vibe links)")
