from __future__ import annotations

import contextlib
import logging
from datetime import timedelta

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from adapters.external.cache.in_memory_tile_cache import InMemoryTileCache
from adapters.external.database.leaderboard_repository_mongodb import LeaderboardRepositoryMongoDB
from adapters.external.database.mongodb_client import get_mongo_client
from adapters.external.database.spot_repository_mongodb import SpotRepositoryMongoDB
from adapters.external.database.user_repository_mongodb import UserRepositoryMongoDB
from adapters.external.identity.identity_http_client import IdentityHttpClient
from config.settings import settings
from core.services.owner_metadata_service import OwnerMetadataService
from core.usecases.fetch_popular_spots_use_case import FetchPopularSpotsUseCase
from core.usecases.get_map_tile_use_case import GetMapTileUseCase
from core.usecases.rebuild_leaderboard_use_case import RebuildLeaderboardUseCase
from workers.leaderboard_worker import LeaderboardWorker


class AppSupervisor:
    """
    High-level supervisor for spotmap-api.

    Responsibilities:
    - Connect to MongoDB and ensure indexes.
    - Wire repositories, the tile cache, services and use cases.
    - Start the periodic leaderboard rebuild (optional via settings).
    """

    def __init__(self) -> None:
        self._logger = logging.getLogger(self.__class__.__name__)
        self._mongo_client: AsyncIOMotorClient | None = None
        self._db: AsyncIOMotorDatabase | None = None

        self._identity: IdentityHttpClient | None = None
        self._worker: LeaderboardWorker | None = None

        self.map_tile_uc: GetMapTileUseCase | None = None
        self.rebuild_leaderboard_uc: RebuildLeaderboardUseCase | None = None
        self.fetch_popular_uc: FetchPopularSpotsUseCase | None = None

    @property
    def token_verifier(self) -> IdentityHttpClient | None:
        return self._identity

    async def start(self, *, run_worker: bool = True) -> None:
        """
        Initialize DB, ensure indexes, wire use cases and start the leaderboard worker.
        """
        self._mongo_client = get_mongo_client()
        self._db = self._mongo_client[settings.MONGODB_DB_NAME]

        spot_repo = SpotRepositoryMongoDB(self._db)
        user_repo = UserRepositoryMongoDB(self._db, batch_size=settings.OWNER_BATCH_SIZE)
        leaderboard_repo = LeaderboardRepositoryMongoDB(self._db)

        await spot_repo.ensure_indexes()

        owner_svc = OwnerMetadataService(user_repository=user_repo)
        tile_cache = InMemoryTileCache(
            max_entries=settings.TILE_CACHE_MAX_ENTRIES,
            ttl_s=settings.TILE_CACHE_TTL_S,
        )

        self.map_tile_uc = GetMapTileUseCase(
            spot_repository=spot_repo,
            owner_metadata_service=owner_svc,
            tile_cache=tile_cache,
            max_results=settings.TILE_MAX_RESULTS,
            dom_budget=settings.TILE_DOM_BUDGET,
            next_sync_ms=int(settings.TILE_NEXT_SYNC_S * 1000),
        )
        self.rebuild_leaderboard_uc = RebuildLeaderboardUseCase(
            spot_repository=spot_repo,
            leaderboard_repository=leaderboard_repo,
            owner_metadata_service=owner_svc,
        )
        self.fetch_popular_uc = FetchPopularSpotsUseCase(
            leaderboard_repository=leaderboard_repo,
            spot_repository=spot_repo,
            user_repository=user_repo,
            owner_metadata_service=owner_svc,
            rebuild_use_case=self.rebuild_leaderboard_uc,
            rebuild_entries=settings.LEADERBOARD_MAX_ENTRIES,
            stale_after=timedelta(seconds=settings.LEADERBOARD_STALE_AFTER_S),
        )

        self._identity = IdentityHttpClient(
            verify_url=settings.AUTH_VERIFY_URL,
            timeout_s=settings.AUTH_TIMEOUT_S,
        )

        self._worker = LeaderboardWorker(
            rebuild_use_case=self.rebuild_leaderboard_uc,
            max_entries=settings.LEADERBOARD_MAX_ENTRIES,
            every_s=settings.LEADERBOARD_REBUILD_EVERY_S,
        )
        if run_worker and settings.LEADERBOARD_WORKER_ENABLED:
            self._worker.start()
            self._logger.info(
                "Leaderboard worker started. every_s=%s max_entries=%s",
                settings.LEADERBOARD_REBUILD_EVERY_S,
                settings.LEADERBOARD_MAX_ENTRIES,
            )

    @property
    def worker(self) -> LeaderboardWorker | None:
        return self._worker

    async def stop(self) -> None:
        """
        Stop the worker and close the MongoDB connection.
        """
        if self._worker is not None:
            with contextlib.suppress(Exception):
                await self._worker.stop()

        if self._mongo_client:
            self._mongo_client.close()
