from __future__ import annotations

import re
from typing import Optional

from fastapi import Depends, Header, Request

from core.domain.errors import InvalidAuthTokenError
from core.repositories.token_verifier import TokenVerifier
from core.usecases.fetch_popular_spots_use_case import FetchPopularSpotsUseCase
from core.usecases.get_map_tile_use_case import GetMapTileUseCase
from core.usecases.rebuild_leaderboard_use_case import RebuildLeaderboardUseCase

_BEARER_PREFIX = re.compile(r"^Bearer\s+", re.IGNORECASE)


def get_map_tile_use_case(request: Request) -> GetMapTileUseCase:
    return request.app.state.map_tile_uc


def get_fetch_popular_use_case(request: Request) -> FetchPopularSpotsUseCase:
    return request.app.state.fetch_popular_uc


def get_rebuild_leaderboard_use_case(request: Request) -> RebuildLeaderboardUseCase:
    return request.app.state.rebuild_leaderboard_uc


def get_token_verifier(request: Request) -> TokenVerifier:
    return request.app.state.token_verifier


async def get_viewer_id(
    authorization: Optional[str] = Header(None),
    verifier: TokenVerifier = Depends(get_token_verifier),
) -> Optional[str]:
    """
    Resolve the optional bearer token. A missing or empty header means an anonymous
    viewer; a header that does not verify is rejected.
    """
    if not authorization:
        return None
    token = _BEARER_PREFIX.sub("", authorization).strip()
    if not token:
        raise InvalidAuthTokenError()
    return await verifier.verify(token)
