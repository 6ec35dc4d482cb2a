"""
Vibe catalog queries.

Read-only lookups over vibes and vibe groups, plus the bulk lookup the track
store uses to attach vibes to many tracks with a single query.

Functions taking `db_conn` run on a connection the caller already holds;
functions taking `pool` acquire their own.
"""

from typing import Iterable, Optional, Sequence

from loguru import logger

from vibing_storage.core.db_adapter import Connection, ConnectionPool
from vibing_storage.core.exceptions import NotFound, ValidationError

from .models import Vibe, VibeGroup, VibeGroupFull, VibeKey, VibeRef

VIBE_COLUMNS = "vb.vibe_id AS id, vb.name AS name, vg.name AS group_name"
VIBE_FROM = "FROM vibes AS vb JOIN vibe_groups AS vg ON vb.vibe_group = vg.vibe_group_id"


def _row_to_vibe(row: dict) -> Vibe:
    return Vibe(id=row["id"], name=row["name"], group_name=row["group_name"])


def _placeholders(count: int) -> str:
    return ",".join("?" * count)


# Connection-level queries


def fetch_vibes_by_track_ids(
    track_ids: Sequence[int], db_conn: Connection
) -> dict[int, list[Vibe]]:
    """Batch-fetch vibes for multiple tracks efficiently.

    Args:
        track_ids: Track IDs to fetch vibes for
        db_conn: Database connection

    Returns:
        Dict mapping track_id -> list of vibes. Tracks without vibes are absent.
    """
    if not track_ids:
        return {}

    unique_ids = list(dict.fromkeys(track_ids))
    cursor = db_conn.execute(
        f"SELECT twv.track AS track_id, {VIBE_COLUMNS} "
        f"{VIBE_FROM} "
        f"JOIN tracks_with_vibes AS twv ON vb.vibe_id = twv.vibe "
        f"WHERE twv.track IN ({_placeholders(len(unique_ids))}) "
        f"ORDER BY twv.track, vb.vibe_id",
        unique_ids,
    )

    result: dict[int, list[Vibe]] = {}
    for row in cursor.fetchall():
        result.setdefault(row["track_id"], []).append(_row_to_vibe(row))

    return result


def fetch_vibes_by_ids(vibe_ids: Sequence[int], db_conn: Connection) -> list[Vibe]:
    """Fetch the vibes with the given IDs (unknown IDs are skipped)."""
    if not vibe_ids:
        return []

    unique_ids = list(dict.fromkeys(vibe_ids))
    cursor = db_conn.execute(
        f"SELECT {VIBE_COLUMNS} {VIBE_FROM} "
        f"WHERE vb.vibe_id IN ({_placeholders(len(unique_ids))}) "
        f"ORDER BY vb.vibe_id",
        unique_ids,
    )
    return [_row_to_vibe(row) for row in cursor.fetchall()]


def fetch_vibes_by_keys(keys: Sequence[VibeKey], db_conn: Connection) -> list[Vibe]:
    """Fetch the vibes matching the given (group, name) pairs (unknown pairs are skipped)."""
    if not keys:
        return []

    unique_keys = list(dict.fromkeys(keys))
    clauses = " OR ".join("(vg.name = ? AND vb.name = ?)" for _ in unique_keys)
    params: list = []
    for key in unique_keys:
        params.extend([key.group_name, key.name])

    cursor = db_conn.execute(
        f"SELECT {VIBE_COLUMNS} {VIBE_FROM} WHERE {clauses} ORDER BY vb.vibe_id",
        params,
    )
    return [_row_to_vibe(row) for row in cursor.fetchall()]


def split_vibe_refs(refs: Iterable[VibeRef]) -> tuple[list[int], list[VibeKey]]:
    """Split vibe references into IDs and (group, name) keys.

    Raises:
        ValidationError: If a reference is neither an int nor a (group, name) pair
    """
    ids: list[int] = []
    keys: list[VibeKey] = []
    for ref in refs:
        if isinstance(ref, bool):
            raise ValidationError(f"Invalid vibe reference: {ref!r}")
        if isinstance(ref, int):
            ids.append(ref)
        elif isinstance(ref, (tuple, list)) and len(ref) == 2:
            keys.append(VibeKey(str(ref[0]), str(ref[1])))
        else:
            raise ValidationError(
                f"Invalid vibe reference: {ref!r}. Expected an id or a (group, name) pair"
            )
    return ids, keys


def resolve_vibe_refs(refs: Iterable[VibeRef], db_conn: Connection) -> list[Vibe]:
    """Resolve vibe references to full vibe records.

    Returns one vibe per distinct ID, in first-reference order.

    Raises:
        NotFound: If any reference matches no vibe
        ValidationError: If a reference is malformed
    """
    ids, keys = split_vibe_refs(refs)

    by_id = {vibe.id: vibe for vibe in fetch_vibes_by_ids(ids, db_conn)}
    missing_ids = [vibe_id for vibe_id in ids if vibe_id not in by_id]
    if missing_ids:
        raise NotFound("Vibe", missing_ids[0])

    by_key = {
        VibeKey(vibe.group_name, vibe.name): vibe
        for vibe in fetch_vibes_by_keys(keys, db_conn)
    }
    missing_keys = [key for key in keys if key not in by_key]
    if missing_keys:
        key = missing_keys[0]
        raise NotFound("Vibe", tuple(key), f"Vibe '{key.name}' not found in group '{key.group_name}'")

    resolved: dict[int, Vibe] = {}
    for vibe_id in ids:
        resolved.setdefault(vibe_id, by_id[vibe_id])
    for key in keys:
        vibe = by_key[key]
        resolved.setdefault(vibe.id, vibe)
    return list(resolved.values())


# Vibe lookups


def get_vibe_by_id(vibe_id: int, pool: ConnectionPool) -> Vibe:
    """Get a vibe by ID.

    Raises:
        NotFound: If no vibe has this ID
    """
    with pool.connection() as conn:
        row = conn.execute(
            f"SELECT {VIBE_COLUMNS} {VIBE_FROM} WHERE vb.vibe_id = ?", (vibe_id,)
        ).fetchone()

    if not row:
        raise NotFound("Vibe", vibe_id)
    return _row_to_vibe(row)


def get_vibe_by_name(name: str, pool: ConnectionPool) -> Vibe:
    """Get a vibe by name.

    Names are unique within a group only; when several groups share the
    name, the earliest created vibe wins. Use get_vibe_by_key to be exact.

    Raises:
        NotFound: If no vibe has this name
    """
    with pool.connection() as conn:
        row = conn.execute(
            f"SELECT {VIBE_COLUMNS} {VIBE_FROM} WHERE vb.name = ? ORDER BY vb.vibe_id LIMIT 1",
            (name,),
        ).fetchone()

    if not row:
        raise NotFound("Vibe", name)
    return _row_to_vibe(row)


def get_vibe_by_key(group_name: str, name: str, pool: ConnectionPool) -> Vibe:
    """Get a vibe by its group and name.

    Raises:
        NotFound: If the group has no vibe with this name
    """
    with pool.connection() as conn:
        vibes = fetch_vibes_by_keys([VibeKey(group_name, name)], conn)

    if not vibes:
        raise NotFound("Vibe", (group_name, name), f"Vibe '{name}' not found in group '{group_name}'")
    return vibes[0]


def get_all_vibes(pool: ConnectionPool) -> list[Vibe]:
    """Get every vibe, ordered by group then name."""
    with pool.connection() as conn:
        cursor = conn.execute(f"SELECT {VIBE_COLUMNS} {VIBE_FROM} ORDER BY vg.name, vb.name")
        return [_row_to_vibe(row) for row in cursor.fetchall()]


def get_vibes_by_track_id(track_id: int, pool: ConnectionPool) -> list[Vibe]:
    """Get the vibes attached to one track."""
    return get_vibes_by_track_ids([track_id], pool).get(track_id, [])


def get_vibes_by_track_ids(
    track_ids: Sequence[int], pool: ConnectionPool
) -> dict[int, list[Vibe]]:
    """Get vibes for many tracks with one query. See fetch_vibes_by_track_ids."""
    if not track_ids:
        return {}
    with pool.connection() as conn:
        return fetch_vibes_by_track_ids(track_ids, conn)


def count_vibes(pool: ConnectionPool) -> int:
    """Count all vibes."""
    with pool.connection() as conn:
        row = conn.execute("SELECT COUNT(*) AS vibes_count FROM vibes").fetchone()
    return row["vibes_count"]


# Vibe group lookups


def _fetch_group_vibes(group_ids: Sequence[int], db_conn: Connection) -> dict[int, list[Vibe]]:
    if not group_ids:
        return {}

    cursor = db_conn.execute(
        f"SELECT vb.vibe_group AS group_id, {VIBE_COLUMNS} {VIBE_FROM} "
        f"WHERE vb.vibe_group IN ({_placeholders(len(group_ids))}) "
        f"ORDER BY vb.name",
        list(group_ids),
    )

    result: dict[int, list[Vibe]] = {}
    for row in cursor.fetchall():
        result.setdefault(row["group_id"], []).append(_row_to_vibe(row))
    return result


def _get_vibe_group(column: str, value: object, pool: ConnectionPool) -> VibeGroupFull:
    with pool.connection() as conn:
        row = conn.execute(
            f"SELECT vibe_group_id AS id, name FROM vibe_groups WHERE {column} = ?",
            (value,),
        ).fetchone()
        if not row:
            raise NotFound("VibeGroup", value)

        group = VibeGroup(id=row["id"], name=row["name"])
        vibes = _fetch_group_vibes([group.id], conn).get(group.id, [])

    return VibeGroupFull(group=group, vibes=vibes)


def get_vibe_group_by_id(group_id: int, pool: ConnectionPool) -> VibeGroupFull:
    """Get a vibe group and its vibes by group ID.

    Raises:
        NotFound: If no group has this ID
    """
    return _get_vibe_group("vibe_group_id", group_id, pool)


def get_vibe_group_by_name(name: str, pool: ConnectionPool) -> VibeGroupFull:
    """Get a vibe group and its vibes by group name.

    Raises:
        NotFound: If no group has this name
    """
    return _get_vibe_group("name", name, pool)


def get_all_vibe_groups(pool: ConnectionPool) -> list[VibeGroupFull]:
    """Get every vibe group with its vibes (two queries in total)."""
    with pool.connection() as conn:
        rows = conn.execute(
            "SELECT vibe_group_id AS id, name FROM vibe_groups ORDER BY name"
        ).fetchall()
        if not rows:
            return []

        groups = [VibeGroup(id=row["id"], name=row["name"]) for row in rows]
        vibes_by_group = _fetch_group_vibes([group.id for group in groups], conn)

    return [
        VibeGroupFull(group=group, vibes=vibes_by_group.get(group.id, []))
        for group in groups
    ]


def count_vibe_groups(pool: ConnectionPool) -> int:
    """Count all vibe groups."""
    with pool.connection() as conn:
        row = conn.execute("SELECT COUNT(*) AS groups_count FROM vibe_groups").fetchone()
    return row["groups_count"]


# Seeding


def create_vibe_group(name: str, pool: ConnectionPool) -> VibeGroup:
    """Create a vibe group.

    Raises:
        ValidationError: If the name is blank
        PersistenceError: If a group with this name already exists
    """
    name = name.strip()
    if not name:
        raise ValidationError("Vibe group name must not be empty")

    with pool.transaction() as conn:
        row = conn.execute(
            "INSERT INTO vibe_groups (name) VALUES (?) RETURNING vibe_group_id AS id, name",
            (name,),
        ).fetchone()

    logger.info(f"Created vibe group '{name}' (#{row['id']})")
    return VibeGroup(id=row["id"], name=row["name"])


def create_vibe(
    group_name: str, name: str, pool: ConnectionPool, create_group: bool = False
) -> Vibe:
    """Create a vibe inside a group.

    Args:
        group_name: Owning group
        name: Vibe name, unique within the group
        pool: Connection pool
        create_group: Create the group when it does not exist yet

    Raises:
        ValidationError: If a name is blank
        NotFound: If the group does not exist and create_group is False
        PersistenceError: If the group already has a vibe with this name
    """
    group_name = group_name.strip()
    name = name.strip()
    if not group_name or not name:
        raise ValidationError("Vibe and vibe group names must not be empty")

    with pool.transaction() as conn:
        group_row: Optional[dict] = conn.execute(
            "SELECT vibe_group_id AS id FROM vibe_groups WHERE name = ?", (group_name,)
        ).fetchone()

        if not group_row:
            if not create_group:
                raise NotFound("VibeGroup", group_name)
            group_row = conn.execute(
                "INSERT INTO vibe_groups (name) VALUES (?) RETURNING vibe_group_id AS id",
                (group_name,),
            ).fetchone()
            logger.info(f"Created vibe group '{group_name}' (#{group_row['id']})")

        row = conn.execute(
            "INSERT INTO vibes (name, vibe_group) VALUES (?, ?) RETURNING vibe_id AS id",
            (name, group_row["id"]),
        ).fetchone()

    logger.info(f"Created vibe '{group_name}/{name}' (#{row['id']})")
    return Vibe(id=row["id"], name=name, group_name=group_name)
