from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, field_validator

from core.domain.entities.base_entity import as_counter, as_utc
from core.domain.entities.spot_entity import SpotEntity


class LeaderboardEntryEntity(BaseModel):
    """
    One ranked row of the popular-spots leaderboard.

    Owned by the rebuild job: the whole set is replaced on every rebuild and rows
    are never patched in between. A row can outlive its spot; readers skip those.
    """

    spot_id: str
    popularity_score: float
    likes: int = 0
    comments_count: int = 0
    view_count: int = 0
    rank: int
    updated_at: datetime

    @field_validator("likes", "comments_count", "view_count", mode="before")
    @classmethod
    def _counter(cls, v: Any) -> int:
        return as_counter(v)

    @field_validator("updated_at")
    @classmethod
    def _utc(cls, v: datetime) -> datetime:
        return as_utc(v)


class PopularSpotEntity(SpotEntity):
    """
    A spot joined with its leaderboard position and owner/viewer enrichment.
    """

    popularity_score: float
    popularity_rank: int

    owner_display_name: Optional[str] = None
    owner_photo_url: Optional[str] = None
    owner_phone_verified: bool = False

    liked_by_viewer: Optional[bool] = None
    followed_by_viewer: Optional[bool] = None
    favorited_by_viewer: Optional[bool] = None
