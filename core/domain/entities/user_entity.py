from __future__ import annotations

from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator

from core.domain.entities.base_entity import MongoEntity, as_counter


class PosterTier(str, Enum):
    """
    Poster monetization level, ordered by influence:
    tier_a (top) > tier_b (mid) > tier_c (base).
    """

    TIER_A = "tier_a"
    TIER_B = "tier_b"
    TIER_C = "tier_c"


class OwnerMetricsEntity(MongoEntity):
    """
    Read-only, denormalized view of a spot owner taken from the `users` collection.

    Every field defaults to the "no boost / not verified" value so a missing or
    partial user document never changes scoring or rendering in the owner's favour.
    """

    tier: PosterTier = PosterTier.TIER_C
    followers_count: int = 0
    is_sponsor: bool = False
    phone_verified: bool = False

    display_name: Optional[str] = None
    photo_url: Optional[str] = None

    @field_validator("tier", mode="before")
    @classmethod
    def _tier(cls, v: Any) -> str:
        if isinstance(v, PosterTier):
            return v.value
        s = str(v or "").strip().lower()
        return s if s in {t.value for t in PosterTier} else PosterTier.TIER_C.value

    @field_validator("followers_count", mode="before")
    @classmethod
    def _followers(cls, v: Any) -> int:
        return as_counter(v)

    @field_validator("is_sponsor", "phone_verified", mode="before")
    @classmethod
    def _flag(cls, v: Any) -> bool:
        return bool(v)

    @classmethod
    def from_user_doc(cls, doc: dict[str, Any]) -> "OwnerMetricsEntity":
        """
        Build owner metrics from a raw user document (poster_tier, flags.is_sponsor, ...).
        """
        flags = doc.get("flags") if isinstance(doc.get("flags"), dict) else {}
        display_name = doc.get("display_name")
        photo_url = doc.get("photo_url")
        return cls(
            id=str(doc.get("_id")),
            tier=doc.get("poster_tier"),
            followers_count=doc.get("followers_count"),
            is_sponsor=flags.get("is_sponsor"),
            phone_verified=doc.get("phone_verified"),
            display_name=display_name if isinstance(display_name, str) else None,
            photo_url=photo_url if isinstance(photo_url, str) else None,
        )


class ViewerStateEntity(BaseModel):
    """
    What a signed-in viewer has liked, followed and favourited.
    """

    viewer_id: str
    liked_spot_ids: List[str] = Field(default_factory=list)
    followed_owner_ids: List[str] = Field(default_factory=list)
    favorite_spot_ids: List[str] = Field(default_factory=list)
