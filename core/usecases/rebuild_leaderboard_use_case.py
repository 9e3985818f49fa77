from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Callable, Dict, List, Tuple

from core.domain.entities.leaderboard_entry_entity import LeaderboardEntryEntity, PopularSpotEntity
from core.domain.entities.spot_entity import COUNTER_FIELDS, SpotEntity
from core.repositories.leaderboard_repository import LeaderboardRepository
from core.repositories.spot_repository import SpotRepository
from core.services.owner_metadata_service import OwnerMetadataService
from core.services.popularity_scoring_service import PopularityScoringService

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


class RebuildLeaderboardUseCase:
    """
    Re-ranks spots by popularity and replaces the persisted leaderboard.

    Candidates are the union of the top 2N spots by likes, comments_count and
    view_count (first seen wins). A spot that is only top-N by score, without
    being top-2N on any raw counter, can be missed; that approximation avoids
    scoring the whole collection.

    Ordering: score desc, likes desc, comments_count desc, created_at desc.
    """

    MIN_ENTRIES = 5
    MAX_ENTRIES = 200

    def __init__(
        self,
        *,
        spot_repository: SpotRepository,
        leaderboard_repository: LeaderboardRepository,
        owner_metadata_service: OwnerMetadataService,
        scorer: type[PopularityScoringService] = PopularityScoringService,
        clock: Callable[[], datetime] = _utcnow,
        logger: logging.Logger | None = None,
    ):
        self._spots = spot_repository
        self._leaderboard = leaderboard_repository
        self._owners = owner_metadata_service
        self._scorer = scorer
        self._clock = clock
        self._logger = logger or logging.getLogger(self.__class__.__name__)
        self._lock = asyncio.Lock()

    @classmethod
    def clamp_entries(cls, max_entries: int) -> int:
        return max(cls.MIN_ENTRIES, min(int(max_entries), cls.MAX_ENTRIES))

    async def execute(self, max_entries: int = 50) -> List[PopularSpotEntity]:
        """
        Rebuild and persist the leaderboard. Concurrent calls run one at a time.
        """
        async with self._lock:
            return await self._rebuild(self.clamp_entries(max_entries))

    async def _rebuild(self, limit: int) -> List[PopularSpotEntity]:
        batches = await asyncio.gather(
            *(self._spots.top_by_field(field, limit * 2) for field in COUNTER_FIELDS)
        )

        candidates: Dict[str, SpotEntity] = {}
        for batch in batches:
            for spot in batch:
                if spot.id and spot.id not in candidates:
                    candidates[spot.id] = spot

        owners = await self._owners.owner_metrics(s.owner_id for s in candidates.values())

        now = self._clock()
        scored: List[Tuple[SpotEntity, float]] = [
            (spot, self._scorer.score(spot, owners.get(spot.owner_id), now=now))
            for spot in candidates.values()
        ]
        scored.sort(
            key=lambda item: (
                item[1],
                item[0].likes,
                item[0].comments_count,
                item[0].created_at or _EPOCH,
            ),
            reverse=True,
        )
        top = scored[:limit]

        existing = await self._leaderboard.list_entries()
        keep_ids = {spot.id for spot, _ in top}
        removed = [e.spot_id for e in existing if e.spot_id not in keep_ids]

        entries = [
            LeaderboardEntryEntity(
                spot_id=spot.id,
                popularity_score=score,
                likes=spot.likes,
                comments_count=spot.comments_count,
                view_count=spot.view_count,
                rank=rank,
                updated_at=now,
            )
            for rank, (spot, score) in enumerate(top, start=1)
        ]
        if entries or existing:
            await self._leaderboard.replace_entries(entries)

        self._logger.info(
            "Popular spots leaderboard rebuilt: candidates=%s kept=%s removed=%s",
            len(candidates),
            len(entries),
            len(removed),
        )

        out: List[PopularSpotEntity] = []
        for entry, (spot, _) in zip(entries, top):
            owner = owners.get(spot.owner_id)
            out.append(
                PopularSpotEntity.model_validate(
                    {
                        **spot.model_dump(),
                        "popularity_score": entry.popularity_score,
                        "popularity_rank": entry.rank,
                        "owner_display_name": owner.display_name if owner else None,
                        "owner_photo_url": owner.photo_url if owner else None,
                        "owner_phone_verified": owner.phone_verified if owner else False,
                    }
                )
            )
        return out
