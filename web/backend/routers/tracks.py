from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from fastapi.responses import FileResponse, StreamingResponse
from loguru import logger

from vibing_storage.core.config import Config
from vibing_storage.core.db_adapter import ConnectionPool
from vibing_storage.core.exceptions import PersistenceError
from vibing_storage.core.path_security import validate_track_path
from vibing_storage.domain.library import DownloadableFile, fill_missing_metadata, get_mime_type
from vibing_storage.domain.tracks import (
    TrackFilter,
    TrackFull,
    TrackMetadata,
    TrackPatch,
    apply_patch,
    create_track,
    get_all_tracks,
    get_track_by_id,
    get_track_by_title,
    get_track_page,
    remove_track,
)
from vibing_storage.domain.vibes import VibeKey

from ..deps import get_config, get_pool
from ..schemas import (
    ResponseTrack,
    TrackPageResponse,
    TrackPatchRequest,
    UploadRequest,
    VoteRequest,
)

router = APIRouter()

DEFAULT_PAGE_SIZE = 20


def get_library_file(file_path: Path, config: Config) -> Path:
    """Resolve a stored track path for serving.

    Raises:
        HTTPException: 404 if the file is missing, 403 if it lies outside the library
    """
    if not file_path.is_file():
        raise HTTPException(404, "Audio file not found")

    # SECURITY: Validate path within library
    validated = validate_track_path(file_path, config.library)
    if not validated:
        logger.warning(f"Blocked access outside library: {file_path}")
        raise HTTPException(403, "Access denied")

    return validated


def to_track_patch(request: TrackPatchRequest) -> TrackPatch:
    """Pure function - map the API body onto a domain patch."""
    return TrackPatch(
        path=request.path,
        title=request.title,
        author=request.author,
        genre=request.genre,
        duration=request.duration,
        new_vote=request.rating,
        add_vibes=[VibeKey(v.group_name, v.name) for v in request.add_vibes],
        remove_vibes=[VibeKey(v.group_name, v.name) for v in request.remove_vibes],
    )


@router.get("/tracks", response_model=TrackPageResponse)
def get_filtered_page(
    pattern: Optional[str] = None,
    author: Optional[str] = None,
    vibes: Optional[list[str]] = Query(None),
    limit: Optional[int] = Query(None, ge=0),
    order_by: Optional[str] = None,
    page: int = Query(1, ge=1),
    size: int = Query(DEFAULT_PAGE_SIZE, ge=1),
    pool: ConnectionPool = Depends(get_pool),
):
    track_filter = TrackFilter(
        pattern=pattern, author=author, vibes=vibes, limit=limit, order_by=order_by
    )
    return TrackPageResponse.from_page(get_track_page(track_filter, page, size, pool))


@router.get("/tracks/all", response_model=list[ResponseTrack])
def list_all_tracks(pool: ConnectionPool = Depends(get_pool)):
    return [ResponseTrack.from_track_full(t) for t in get_all_tracks(pool)]


@router.get("/tracks/{track_id}", response_model=ResponseTrack)
def get_track(track_id: int, pool: ConnectionPool = Depends(get_pool)):
    return ResponseTrack.from_track_full(get_track_by_id(track_id, pool))


@router.post("/tracks/upload", response_model=ResponseTrack, status_code=201)
def upload_track(
    request: UploadRequest,
    pool: ConnectionPool = Depends(get_pool),
    config: Config = Depends(get_config),
):
    """Register an audio file already on disk. Missing fields come from its tags."""
    file_path = get_library_file(Path(request.path).expanduser(), config)

    metadata = fill_missing_metadata(
        TrackMetadata(
            path=str(file_path),
            title=request.title,
            author=request.author,
            genre=request.genre,
            duration=request.duration,
        )
    )

    try:
        track_full = create_track(metadata, pool)
    except PersistenceError as e:
        if e.kind == PersistenceError.CONSTRAINT:
            raise HTTPException(409, "Track already stored")
        raise

    return ResponseTrack.from_track_full(track_full)


@router.patch("/tracks/{track_id}", response_model=ResponseTrack)
def update_track(
    track_id: int, request: TrackPatchRequest, pool: ConnectionPool = Depends(get_pool)
):
    track_full = get_track_by_id(track_id, pool)
    return ResponseTrack.from_track_full(
        apply_patch(track_full, to_track_patch(request), pool)
    )


@router.post("/tracks/vote", response_model=ResponseTrack)
def store_vote(vote: VoteRequest, pool: ConnectionPool = Depends(get_pool)):
    track_full = get_track_by_id(vote.track_id, pool)
    apply_patch(track_full, TrackPatch(new_vote=vote.rating), pool)
    return ResponseTrack.from_track_full(track_full)


@router.delete("/tracks")
def delete_track(
    track_id: Optional[int] = Query(None, alias="id"),
    title: Optional[str] = None,
    pool: ConnectionPool = Depends(get_pool),
):
    """Delete a track by id, or by title when no id is given."""
    track_full: TrackFull
    if track_id is not None:
        track_full = get_track_by_id(track_id, pool)
    elif title is not None:
        track_full = get_track_by_title(title, pool)
    else:
        raise HTTPException(400, "Either id or title is required")

    remove_track(track_full, pool)
    return {"deleted": track_full.id}


@router.get("/tracks/{track_id}/download")
def download_track(
    track_id: int,
    pool: ConnectionPool = Depends(get_pool),
    config: Config = Depends(get_config),
):
    track_full = get_track_by_id(track_id, pool)
    file_path = get_library_file(Path(track_full.track.path), config)

    downloadable = DownloadableFile.open(file_path)
    try:
        apply_patch(track_full, TrackPatch(new_download=True), pool)
    except Exception:
        downloadable.close()
        raise

    logger.info(f"Downloading track {track_id}: {downloadable.name}")
    return StreamingResponse(
        downloadable.iter_chunks(),
        media_type=downloadable.content_type,
        headers={"Content-Disposition": f'attachment; filename="{downloadable.name}"'},
    )


@router.get("/tracks/{track_id}/stream")
def stream_audio(
    track_id: int,
    pool: ConnectionPool = Depends(get_pool),
    config: Config = Depends(get_config),
) -> Response:
    track_full = get_track_by_id(track_id, pool)
    file_path = get_library_file(Path(track_full.track.path), config)

    logger.debug(f"Streaming track {track_id}: {file_path.name}")
    return FileResponse(
        file_path,
        media_type=get_mime_type(file_path),
        headers={"Cache-Control": "no-cache"},
    )
