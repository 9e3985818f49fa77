from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional

from core.domain.entities.leaderboard_entry_entity import LeaderboardEntryEntity, PopularSpotEntity
from core.domain.entities.user_entity import ViewerStateEntity
from core.repositories.leaderboard_repository import LeaderboardRepository
from core.repositories.spot_repository import SpotRepository
from core.repositories.user_repository import UserRepository
from core.services.owner_metadata_service import OwnerMetadataService
from core.usecases.rebuild_leaderboard_use_case import RebuildLeaderboardUseCase


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


class FetchPopularSpotsUseCase:
    """
    Read path for the popular-spots leaderboard.

    Behavior:
      - an empty leaderboard, or one whose freshest row is older than
        `stale_after`, is rebuilt synchronously and read again
      - rows are joined with current spot details; rows whose spot is gone are skipped
      - owner display data and, for a signed-in viewer, like/follow/favourite flags are attached
    """

    MAX_LIMIT = 50

    def __init__(
        self,
        *,
        leaderboard_repository: LeaderboardRepository,
        spot_repository: SpotRepository,
        user_repository: UserRepository,
        owner_metadata_service: OwnerMetadataService,
        rebuild_use_case: RebuildLeaderboardUseCase,
        rebuild_entries: int = 50,
        stale_after: timedelta = timedelta(minutes=10),
        clock: Callable[[], datetime] = _utcnow,
        logger: logging.Logger | None = None,
    ):
        self._leaderboard = leaderboard_repository
        self._spots = spot_repository
        self._users = user_repository
        self._owners = owner_metadata_service
        self._rebuild = rebuild_use_case
        self._rebuild_entries = int(rebuild_entries)
        self._stale_after = stale_after
        self._clock = clock
        self._logger = logger or logging.getLogger(self.__class__.__name__)

    async def execute(self, limit: int = 10, viewer_id: Optional[str] = None) -> List[PopularSpotEntity]:
        limit = max(1, min(int(limit), self.MAX_LIMIT))

        entries = await self._leaderboard.list_entries(limit)
        if not entries:
            self._logger.info("Popular spots leaderboard is empty; rebuilding")
            entries = await self._rebuild_and_read(limit)
        elif self._is_stale(entries):
            self._logger.info("Popular spots leaderboard is stale; rebuilding")
            entries = await self._rebuild_and_read(limit)

        if not entries:
            return []

        spot_ids = [e.spot_id for e in entries]
        spots = await self._spots.get_spots(spot_ids)
        live = [(entry, spot) for entry, spot in zip(entries, spots) if spot is not None]

        owners = await self._owners.owner_metrics(spot.owner_id for _, spot in live)
        viewer: Optional[ViewerStateEntity] = None
        if viewer_id:
            viewer = await self._users.get_viewer_state(viewer_id)

        out: List[PopularSpotEntity] = []
        for index, (entry, spot) in enumerate(live):
            owner = owners.get(spot.owner_id)
            item = PopularSpotEntity.model_validate(
                {
                    **spot.model_dump(),
                    "popularity_score": entry.popularity_score,
                    "popularity_rank": entry.rank or index + 1,
                    "owner_display_name": owner.display_name if owner else None,
                    "owner_photo_url": owner.photo_url if owner else None,
                    "owner_phone_verified": owner.phone_verified if owner else False,
                }
            )
            if viewer is not None:
                item.liked_by_viewer = spot.id in viewer.liked_spot_ids
                item.followed_by_viewer = spot.owner_id in viewer.followed_owner_ids
                item.favorited_by_viewer = spot.id in viewer.favorite_spot_ids
            out.append(item)
        return out

    def _is_stale(self, entries: List[LeaderboardEntryEntity]) -> bool:
        freshest = max(e.updated_at for e in entries)
        return self._clock() - freshest > self._stale_after

    async def _rebuild_and_read(self, limit: int) -> List[LeaderboardEntryEntity]:
        await self._rebuild.execute(max(limit, self._rebuild_entries))
        return await self._leaderboard.list_entries(limit)
