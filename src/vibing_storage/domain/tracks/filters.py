"""Track search: filtered listings and pagination.

Filters are turned into SQL by accumulating clause fragments and bound
parameters. User input only ever reaches the database as a parameter, and
sort keys are checked against TrackOrder before any ORDER BY is emitted.
"""

import math
from dataclasses import dataclass, field
from typing import Optional

from loguru import logger

from vibing_storage.core.db_adapter import ConnectionPool
from vibing_storage.core.exceptions import ValidationError

from .models import Page, TrackFilter, TrackFull, TrackOrder
from .repository import TRACK_COLUMNS, build_aggregates, row_to_track

# Zero votes rate 0; the CASE keeps the division away from vote_count = 0
RATING_EXPRESSION = (
    "CASE WHEN t.vote_count > 0 THEN t.total_rating * 1.0 / t.vote_count ELSE 0 END"
)

VIBE_JOIN = (
    "JOIN tracks_with_vibes twv ON t.track_id = twv.track "
    "JOIN vibes vb ON twv.vibe = vb.vibe_id"
)

# Track id breaks ties so pages never overlap
ORDER_CLAUSES = {
    TrackOrder.RATING: "ORDER BY average_rating DESC, t.track_id",
    TrackOrder.MOST_DOWNLOADED: "ORDER BY t.download_count DESC, t.track_id",
}
DEFAULT_ORDER_CLAUSE = "ORDER BY t.track_id"


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so the value is matched literally."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


@dataclass
class TrackQuery:
    """Clause builder for track selections over `tracks t`."""

    joins: list[str] = field(default_factory=list)
    conditions: list[str] = field(default_factory=list)
    params: list = field(default_factory=list)

    def join(self, clause: str) -> "TrackQuery":
        if clause not in self.joins:
            self.joins.append(clause)
        return self

    def where(self, condition: str, *params: object) -> "TrackQuery":
        self.conditions.append(condition)
        self.params.extend(params)
        return self

    def from_clause(self) -> str:
        return " ".join(["FROM tracks t", *self.joins])

    def where_clause(self) -> str:
        if not self.conditions:
            return ""
        return "WHERE " + " AND ".join(self.conditions)

    def count_sql(self) -> str:
        return (
            f"SELECT COUNT(DISTINCT t.track_id) AS count "
            f"{self.from_clause()} {self.where_clause()}"
        )

    def select_sql(self) -> str:
        return (
            f"SELECT DISTINCT {TRACK_COLUMNS}, {RATING_EXPRESSION} AS average_rating "
            f"{self.from_clause()} {self.where_clause()}"
        )


def build_track_query(track_filter: TrackFilter) -> TrackQuery:
    """Translate a filter into joins, conditions and parameters.

    Vibe tables are only joined when the filter names vibes.
    """
    query = TrackQuery()
    vibe_names = [name for name in (track_filter.vibes or []) if name]

    if vibe_names:
        query.join(VIBE_JOIN)

    if track_filter.pattern:
        like = f"%{escape_like(track_filter.pattern.lower())}%"
        query.where(
            "(LOWER(t.title) LIKE ? ESCAPE '\\' OR LOWER(t.author) LIKE ? ESCAPE '\\')",
            like,
            like,
        )

    if track_filter.author is not None:
        query.where("t.author = ?", track_filter.author)

    if vibe_names:
        placeholders = ",".join("?" * len(vibe_names))
        query.where(f"vb.name IN ({placeholders})", *vibe_names)

    return query


def order_clause(order_by: Optional[str]) -> str:
    """ORDER BY for a requested sort key; unknown keys fall back to track id order."""
    order = TrackOrder.parse(order_by)
    if order is None:
        if order_by is not None:
            logger.debug(f"Ignoring unsupported order_by value: {order_by!r}")
        return DEFAULT_ORDER_CLAUSE
    return ORDER_CLAUSES[order]


def get_tracks_by_filter(track_filter: TrackFilter, pool: ConnectionPool) -> list[TrackFull]:
    """List tracks matching a filter, ordered and limited, without counting.

    An empty filter returns every track.

    Raises:
        ValidationError: If the limit is negative
    """
    track_filter.validate()
    query = build_track_query(track_filter)

    sql = f"{query.select_sql()} {order_clause(track_filter.order_by)}"
    params = list(query.params)
    if track_filter.limit is not None:
        sql += " LIMIT ?"
        params.append(track_filter.limit)

    with pool.connection() as conn:
        rows = conn.execute(sql, params).fetchall()
        return build_aggregates([row_to_track(row) for row in rows], conn)


def get_track_page(
    track_filter: TrackFilter, page_num: int, page_size: int, pool: ConnectionPool
) -> Page[TrackFull]:
    """Get one page of tracks matching a filter.

    total_items counts every distinct matching track regardless of order,
    limit and offset. The page holds at most min(limit, page_size) tracks
    starting at (page_num - 1) * page_size. A page past the end is empty but
    still reports the totals.

    Raises:
        ValidationError: If page_num < 1, page_size < 1 or the limit is negative
    """
    if page_num < 1:
        raise ValidationError(f"Page number must be at least 1, got {page_num}")
    if page_size < 1:
        raise ValidationError(f"Page size must be at least 1, got {page_size}")
    track_filter.validate()

    query = build_track_query(track_filter)

    with pool.connection() as conn:
        total_items = conn.execute(query.count_sql(), query.params).fetchone()["count"]

        if total_items == 0:
            return Page(items=[], total_items=0, total_page=0, page_num=page_num, page_size=page_size)

        limit = page_size
        if track_filter.limit is not None:
            limit = min(track_filter.limit, page_size)
        offset = (page_num - 1) * page_size

        rows = conn.execute(
            f"{query.select_sql()} {order_clause(track_filter.order_by)} LIMIT ? OFFSET ?",
            [*query.params, limit, offset],
        ).fetchall()
        items = build_aggregates([row_to_track(row) for row in rows], conn)

    total_page = math.ceil(total_items / page_size)
    logger.debug(
        f"Track page {page_num}/{total_page}: {len(items)} of {total_items} tracks"
    )
    return Page(
        items=items,
        total_items=total_items,
        total_page=total_page,
        page_num=page_num,
        page_size=page_size,
    )
