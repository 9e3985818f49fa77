from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class MapTileLayer(str, Enum):
    CLUSTER = "cluster"
    PULSE = "pulse"
    BALLOON = "balloon"


class TileCoordinate(BaseModel):
    """
    A normalized slippy-map tile address.
    """

    z: int
    x: int
    y: int

    model_config = {"frozen": True}

    @property
    def cache_key(self) -> str:
        return f"{self.z}/{self.x}/{self.y}"


class MapTileRequestOptions(BaseModel):
    """
    Filters and hints for a single tile request.

    The tile cache is keyed by coordinate only: a cached tile can be served to a
    request whose filters differ from the ones that produced it.
    """

    layer: Optional[MapTileLayer] = None
    categories: Optional[List[str]] = None
    premium_only: bool = False
    viewer_id: Optional[str] = None
    since: Optional[float] = None  # epoch ms


class Geometry(BaseModel):
    lat: float
    lng: float


class PromotionRef(BaseModel):
    id: str
    priority: int


class SpotSummary(BaseModel):
    title: str
    category: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    owner_id: str
    owner_phone_verified: bool = False
    likes: int = 0
    comments_count: int = 0
    promotion: Optional[PromotionRef] = None


class MapTileFeature(BaseModel):
    """
    One marker on a tile: either a cluster (count set, spot unset) or a single
    spot rendered with the resolved layer (spot set).
    """

    id: str
    type: MapTileLayer
    geometry: Geometry
    count: Optional[int] = None
    popularity: Optional[int] = None
    premium: Optional[bool] = None
    status: Optional[str] = None
    spot: Optional[SpotSummary] = None


class TileComputation(BaseModel):
    """
    What the tile cache stores for a coordinate.
    """

    generated_at: int  # epoch ms
    features: List[MapTileFeature] = Field(default_factory=list)


class MapTileResponse(BaseModel):
    z: int
    x: int
    y: int
    generated_at: int
    next_sync_at: int
    dom_budget: int
    features: List[MapTileFeature] = Field(default_factory=list)
