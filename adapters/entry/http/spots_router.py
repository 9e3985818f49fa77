from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from core.usecases.fetch_popular_spots_use_case import FetchPopularSpotsUseCase

from .deps import get_fetch_popular_use_case, get_viewer_id
from .dtos.popular_spot_dtos import PopularSpotOutDTO

router = APIRouter(prefix="/spots", tags=["spots"])


@router.get("/popular", response_model=List[PopularSpotOutDTO], response_model_by_alias=True)
async def list_popular_spots(
    limit: int = Query(10, ge=1, le=50),
    viewer_id: Optional[str] = Depends(get_viewer_id),
    uc: FetchPopularSpotsUseCase = Depends(get_fetch_popular_use_case),
) -> List[PopularSpotOutDTO]:
    """
    Top spots from the popularity leaderboard, joined with current spot details.
    """
    spots = await uc.execute(limit=limit, viewer_id=viewer_id)
    return [PopularSpotOutDTO.model_validate(s.model_dump()) for s in spots]
