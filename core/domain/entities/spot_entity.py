from __future__ import annotations

import math
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import field_validator

from core.domain.entities.base_entity import MongoEntity, as_coordinate, as_counter, as_datetime


class SpotCategory(str, Enum):
    LIVE = "live"
    EVENT = "event"
    CAFE = "cafe"
    COUPON = "coupon"
    SPORTS = "sports"


class SpotLifecycle(str, Enum):
    UPCOMING = "upcoming"
    LIVE = "live"
    ENDED = "ended"


# Counter fields that collaborators bump with atomic increments.
COUNTER_FIELDS = ("likes", "comments_count", "view_count")


class SpotEntity(MongoEntity):
    """
    A geotagged spot stored in the `spots` collection.

    likes / comments_count / view_count are eventually consistent: they are read
    as-is and never trusted to be present or non-negative.
    """

    title: str = ""
    description: str = ""
    category: Optional[SpotCategory] = None

    lat: float = math.nan
    lng: float = math.nan

    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None

    owner_id: str = ""

    likes: int = 0
    comments_count: int = 0
    view_count: int = 0

    premium: bool = False
    image_url: Optional[str] = None
    created_at: Optional[datetime] = None

    @field_validator("likes", "comments_count", "view_count", mode="before")
    @classmethod
    def _counter(cls, v: Any) -> int:
        return as_counter(v)

    @field_validator("title", "description", mode="before")
    @classmethod
    def _text(cls, v: Any) -> str:
        return str(v or "")

    @field_validator("lat", "lng", mode="before")
    @classmethod
    def _coordinate(cls, v: Any) -> float:
        return as_coordinate(v)

    @field_validator("start_time", "end_time", "created_at", mode="before")
    @classmethod
    def _time(cls, v: Any) -> Optional[datetime]:
        return as_datetime(v)

    @field_validator("image_url", mode="before")
    @classmethod
    def _url(cls, v: Any) -> Optional[str]:
        return v if isinstance(v, str) else None

    @field_validator("premium", mode="before")
    @classmethod
    def _flag(cls, v: Any) -> bool:
        return bool(v)

    @field_validator("category", mode="before")
    @classmethod
    def _category(cls, v: Any) -> Optional[str]:
        # Unknown categories from older documents are dropped rather than rejected.
        if v is None:
            return None
        if isinstance(v, SpotCategory):
            return v.value
        s = str(v).strip().lower()
        return s if s in {c.value for c in SpotCategory} else None

    @field_validator("owner_id", mode="before")
    @classmethod
    def _owner(cls, v: Any) -> str:
        return str(v or "")

    @property
    def has_coordinates(self) -> bool:
        return math.isfinite(self.lat) and math.isfinite(self.lng)

    def lifecycle(self, now: datetime) -> SpotLifecycle:
        """
        Lifecycle relative to `now`. A spot without a usable schedule is reported as upcoming.
        """
        if self.start_time is None or self.end_time is None:
            return SpotLifecycle.UPCOMING
        if now < self.start_time:
            return SpotLifecycle.UPCOMING
        if now > self.end_time:
            return SpotLifecycle.ENDED
        return SpotLifecycle.LIVE
