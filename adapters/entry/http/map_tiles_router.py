from __future__ import annotations

import asyncio
import hashlib
import json
import time
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Header, Query, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from core.domain.entities.map_tile_entity import MapTileLayer, MapTileRequestOptions
from core.usecases.get_map_tile_use_case import GetMapTileUseCase

from .deps import get_map_tile_use_case, get_viewer_id
from .dtos.map_tile_dtos import MapTileOutDTO, MapTilesBatchOutDTO, MapTilesBatchRequestDTO, TileFilterDTO

router = APIRouter(prefix="/map/tiles", tags=["map-tiles"])

PRIVATE_CACHE_CONTROL = "private, max-age=30"
PUBLIC_CACHE_CONTROL = "public, max-age=30, stale-while-revalidate=120"


def cache_control_for(viewer_id: Optional[str]) -> str:
    """
    Personalized responses stay in the browser; anonymous ones may be shared.
    """
    return PRIVATE_CACHE_CONTROL if viewer_id else PUBLIC_CACHE_CONTROL


def tile_etag(dto: MapTileOutDTO) -> str:
    """
    MD5 over the tile's features and generation time.
    """
    content = json.dumps(
        {
            "features": [f.model_dump(mode="json", by_alias=True) for f in dto.features],
            "generatedAt": dto.generated_at,
        },
        separators=(",", ":"),
    )
    return hashlib.md5(content.encode("utf-8")).hexdigest()


@router.get("/{z}/{x}/{y}", response_model=MapTileOutDTO)
async def get_map_tile(
    z: int,
    x: int,
    y: int,
    layer: Optional[MapTileLayer] = Query(None),
    categories: Optional[List[str]] = Query(None, description="Comma-separated or repeated"),
    premium_only: bool = Query(False, alias="premiumOnly"),
    since: Optional[float] = Query(None, ge=0, description="Epoch ms of the client's cached copy"),
    if_none_match: Optional[str] = Header(None),
    viewer_id: Optional[str] = Depends(get_viewer_id),
    uc: GetMapTileUseCase = Depends(get_map_tile_use_case),
) -> Response:
    """
    Markers for one slippy-map tile.

    Replies 304 when If-None-Match matches the tile's current ETag.
    """
    try:
        filters = TileFilterDTO(layer=layer, categories=categories, premium_only=premium_only)
    except ValidationError as exc:
        raise RequestValidationError(exc.errors()) from exc

    tile = await uc.execute(
        z,
        x,
        y,
        MapTileRequestOptions(
            layer=filters.layer,
            categories=filters.categories,
            premium_only=filters.premium_only,
            viewer_id=viewer_id,
            since=since,
        ),
    )

    dto = MapTileOutDTO.model_validate(tile.model_dump())
    etag = tile_etag(dto)
    headers = {"ETag": etag, "Cache-Control": cache_control_for(viewer_id)}

    if if_none_match and if_none_match == etag:
        return Response(status_code=304, headers=headers)

    dto.etag = etag
    return JSONResponse(content=dto.model_dump(mode="json", by_alias=True), headers=headers)


@router.post("/batch", response_model=MapTilesBatchOutDTO)
async def get_map_tiles_batch(
    body: MapTilesBatchRequestDTO = Body(...),
    viewer_id: Optional[str] = Depends(get_viewer_id),
    uc: GetMapTileUseCase = Depends(get_map_tile_use_case),
) -> Response:
    """
    Several tiles in one round trip, computed concurrently.

    A tile whose client etag still matches comes back with notModified=true and no features.
    """

    async def _one(req) -> MapTileOutDTO:
        tile = await uc.execute(
            req.z,
            req.x,
            req.y,
            MapTileRequestOptions(
                layer=body.layer,
                categories=body.categories,
                premium_only=body.premium_only,
                viewer_id=viewer_id,
                since=req.since,
            ),
        )
        dto = MapTileOutDTO.model_validate(tile.model_dump())
        etag = tile_etag(dto)
        if req.etag and req.etag == etag:
            return MapTileOutDTO(
                z=req.z,
                x=req.x,
                y=req.y,
                generated_at=dto.generated_at,
                next_sync_at=dto.next_sync_at,
                dom_budget=dto.dom_budget,
                features=[],
                etag=etag,
                not_modified=True,
            )
        dto.etag = etag
        return dto

    tiles = await asyncio.gather(*(_one(req) for req in body.tiles))
    out = MapTilesBatchOutDTO(tiles=list(tiles), batch_generated_at=int(time.time() * 1000))
    return JSONResponse(
        content=out.model_dump(mode="json", by_alias=True),
        headers={"Cache-Control": cache_control_for(viewer_id)},
    )
