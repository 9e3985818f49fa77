from __future__ import annotations

from datetime import datetime
from typing import Optional

from .map_tile_dtos import CamelDTO


class PopularSpotOutDTO(CamelDTO):
    """
    Response DTO for a ranked popular spot.
    """

    id: str
    title: str
    description: str = ""
    category: Optional[str] = None
    lat: float
    lng: float
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    image_url: Optional[str] = None

    owner_id: str
    owner_display_name: Optional[str] = None
    owner_photo_url: Optional[str] = None
    owner_phone_verified: bool = False

    likes: int = 0
    comments_count: int = 0
    view_count: int = 0
    premium: bool = False
    created_at: Optional[datetime] = None

    liked_by_viewer: Optional[bool] = None
    followed_by_viewer: Optional[bool] = None
    favorited_by_viewer: Optional[bool] = None

    popularity_score: float
    popularity_rank: int
