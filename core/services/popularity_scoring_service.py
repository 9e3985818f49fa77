from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Optional

from core.domain.entities.spot_entity import SpotCategory, SpotEntity
from core.domain.entities.user_entity import OwnerMetricsEntity, PosterTier


class PopularityScoringService:
    """
    Pure popularity score for a spot.

    score = engagement * recency + boosts

    - engagement: likes*3 + views*1.2 + comments*0.8
    - recency:
        live window         -> 1.6
        starts within 2h    -> 1.4
        starts within 6h    -> 1.25
        starts within 24h   -> 1.1
        ended               -> max(0.45, 1 - hours_since_end/24)
    - boosts (additive, not scaled by recency):
        log10(followers+1)*8, tier_a +18 / tier_b +9, sponsor +12, "event" +4

    Boosts stay outside the multiplication so a fresh post from a top-tier sponsor
    outranks older engagement only when the boost sum beats the decayed gap.
    """

    LIKES_WEIGHT = 3.0
    VIEWS_WEIGHT = 1.2
    COMMENTS_WEIGHT = 0.8

    LIVE_MULTIPLIER = 1.6
    ENDED_FLOOR = 0.45
    # (hours until start, multiplier), checked in order
    UPCOMING_STEPS = ((2.0, 1.4), (6.0, 1.25), (24.0, 1.1))

    FOLLOWER_WEIGHT = 8.0
    TIER_BOOST = {PosterTier.TIER_A.value: 18.0, PosterTier.TIER_B.value: 9.0}
    SPONSOR_BOOST = 12.0
    EVENT_CATEGORY_BOOST = 4.0

    @classmethod
    def engagement(cls, spot: SpotEntity) -> float:
        return (
            spot.likes * cls.LIKES_WEIGHT
            + spot.view_count * cls.VIEWS_WEIGHT
            + spot.comments_count * cls.COMMENTS_WEIGHT
        )

    @classmethod
    def recency_multiplier(cls, spot: SpotEntity, now: datetime) -> float:
        start, end = spot.start_time, spot.end_time
        if start is None or end is None:
            return 1.0

        if start <= now <= end:
            return cls.LIVE_MULTIPLIER

        if now < start:
            hours_until = (start - now).total_seconds() / 3600.0
            for threshold, multiplier in cls.UPCOMING_STEPS:
                if hours_until <= threshold:
                    return multiplier
            return 1.0

        hours_since = (now - end).total_seconds() / 3600.0
        return max(cls.ENDED_FLOOR, 1.0 - hours_since / 24.0)

    @classmethod
    def boosts(cls, spot: SpotEntity, owner: Optional[OwnerMetricsEntity]) -> float:
        followers = owner.followers_count if owner else 0
        tier = PosterTier(owner.tier).value if owner else PosterTier.TIER_C.value
        is_sponsor = owner.is_sponsor if owner else False

        follower_boost = math.log10(followers + 1) * cls.FOLLOWER_WEIGHT
        tier_boost = cls.TIER_BOOST.get(tier, 0.0)
        sponsor_boost = cls.SPONSOR_BOOST if is_sponsor else 0.0
        category_boost = cls.EVENT_CATEGORY_BOOST if spot.category == SpotCategory.EVENT.value else 0.0
        return follower_boost + tier_boost + sponsor_boost + category_boost

    @classmethod
    def score(
        cls,
        spot: SpotEntity,
        owner: Optional[OwnerMetricsEntity] = None,
        *,
        now: Optional[datetime] = None,
    ) -> float:
        """
        Popularity score of `spot` at `now` (defaults to the current UTC time).
        """
        now = now or datetime.now(tz=timezone.utc)
        return cls.engagement(spot) * cls.recency_multiplier(spot, now) + cls.boosts(spot, owner)
