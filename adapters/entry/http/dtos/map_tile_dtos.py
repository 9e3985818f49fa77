from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from config.settings import settings
from core.domain.entities.map_tile_entity import MapTileLayer
from core.domain.entities.spot_entity import SpotCategory


class CamelDTO(BaseModel):
    """
    Base for map-client payloads: snake_case in Python, camelCase on the wire.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def parse_categories(raw: Any) -> Optional[List[str]]:
    """
    Accept repeated values and/or comma-separated lists; every value must be a known category.
    """
    if raw is None:
        return None
    values = raw if isinstance(raw, list) else [raw]
    out: List[str] = []
    allowed = {c.value for c in SpotCategory}
    for value in values:
        for item in str(value).split(","):
            item = item.strip().lower()
            if not item:
                continue
            if item not in allowed:
                raise ValueError(f"unknown category '{item}', expected one of {sorted(allowed)}")
            if item not in out:
                out.append(item)
    return out or None


class TileFilterDTO(CamelDTO):
    """
    Filters shared by the single-tile query string and the batch body.
    """

    layer: Optional[MapTileLayer] = None
    categories: Optional[List[str]] = None
    premium_only: bool = False

    @field_validator("categories", mode="before")
    @classmethod
    def _categories(cls, v: Any) -> Optional[List[str]]:
        return parse_categories(v)


class TileRequestDTO(CamelDTO):
    z: int
    x: int
    y: int
    since: Optional[float] = Field(default=None, ge=0)
    etag: Optional[str] = None


class MapTilesBatchRequestDTO(TileFilterDTO):
    tiles: List[TileRequestDTO] = Field(..., min_length=1, max_length=settings.TILE_BATCH_MAX)


class GeometryOutDTO(CamelDTO):
    lat: float
    lng: float


class PromotionOutDTO(CamelDTO):
    id: str
    priority: int


class SpotSummaryOutDTO(CamelDTO):
    title: str
    category: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    owner_id: str
    owner_phone_verified: bool = False
    likes: int = 0
    comments_count: int = 0
    promotion: Optional[PromotionOutDTO] = None


class MapTileFeatureOutDTO(CamelDTO):
    id: str
    type: MapTileLayer
    geometry: GeometryOutDTO
    count: Optional[int] = None
    popularity: Optional[int] = None
    premium: Optional[bool] = None
    status: Optional[str] = None
    spot: Optional[SpotSummaryOutDTO] = None


class MapTileOutDTO(CamelDTO):
    """
    Response DTO for one tile.
    """

    z: int
    x: int
    y: int
    generated_at: int
    next_sync_at: int
    dom_budget: int
    features: List[MapTileFeatureOutDTO]
    etag: Optional[str] = None
    not_modified: Optional[bool] = None


class MapTilesBatchOutDTO(CamelDTO):
    tiles: List[MapTileOutDTO]
    batch_generated_at: int
