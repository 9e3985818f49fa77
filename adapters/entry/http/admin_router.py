from __future__ import annotations

from typing import Dict, List

from fastapi import APIRouter, Depends, Query

from core.usecases.get_map_tile_use_case import GetMapTileUseCase
from core.usecases.rebuild_leaderboard_use_case import RebuildLeaderboardUseCase

from .deps import get_map_tile_use_case, get_rebuild_leaderboard_use_case
from .dtos.popular_spot_dtos import PopularSpotOutDTO

router = APIRouter(prefix="/admin", tags=["admin"])


@router.post("/leaderboard/rebuild", response_model=List[PopularSpotOutDTO], response_model_by_alias=True)
async def rebuild_leaderboard(
    max_entries: int = Query(50, alias="maxEntries", ge=1, le=500),
    uc: RebuildLeaderboardUseCase = Depends(get_rebuild_leaderboard_use_case),
) -> List[PopularSpotOutDTO]:
    """
    Rebuild the popular-spots leaderboard now (entry count is clamped to [5, 200]).

    Same job the periodic worker runs; useful after bulk imports.
    """
    spots = await uc.execute(max_entries)
    return [PopularSpotOutDTO.model_validate(s.model_dump()) for s in spots]


@router.delete("/map/tiles/cache")
async def clear_tile_cache(uc: GetMapTileUseCase = Depends(get_map_tile_use_case)) -> Dict[str, bool]:
    """
    Drop every cached tile. Only latency is affected.
    """
    uc.clear_cache()
    return {"cleared": True}
