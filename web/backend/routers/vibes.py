from fastapi import APIRouter, Depends

from vibing_storage.core.db_adapter import ConnectionPool
from vibing_storage.domain.vibes import (
    get_all_vibe_groups,
    get_all_vibes,
    get_vibe_group_by_name,
)

from ..deps import get_pool
from ..schemas import ResponseVibe, ResponseVibeGroup

router = APIRouter()


@router.get("/vibes", response_model=list[ResponseVibe])
def list_vibes(pool: ConnectionPool = Depends(get_pool)):
    return [ResponseVibe.from_vibe(vibe) for vibe in get_all_vibes(pool)]


@router.get("/vibe-groups", response_model=list[ResponseVibeGroup])
def list_vibe_groups(pool: ConnectionPool = Depends(get_pool)):
    return [ResponseVibeGroup.from_group_full(g) for g in get_all_vibe_groups(pool)]


@router.get("/vibe-groups/{name}", response_model=ResponseVibeGroup)
def get_vibe_group(name: str, pool: ConnectionPool = Depends(get_pool)):
    return ResponseVibeGroup.from_group_full(get_vibe_group_by_name(name, pool))
