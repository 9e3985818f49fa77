"""
Shared fixtures for the spotmap-api tests.

No MongoDB or identity service is needed: use cases are wired with the in-memory
fakes from tests/fakes.py and injected through app.dependency_overrides. httpx's
ASGITransport does not run the lifespan, so the supervisor never starts.
"""

import pytest
from httpx import ASGITransport, AsyncClient

from adapters.external.cache.in_memory_tile_cache import InMemoryTileCache
from core.services.owner_metadata_service import OwnerMetadataService
from core.usecases.fetch_popular_spots_use_case import FetchPopularSpotsUseCase
from core.usecases.get_map_tile_use_case import GetMapTileUseCase
from core.usecases.rebuild_leaderboard_use_case import RebuildLeaderboardUseCase
from tests.fakes import (
    FakeClock,
    FakeLeaderboardRepository,
    FakeSpotRepository,
    FakeTimer,
    FakeTokenVerifier,
    FakeUserRepository,
)


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def timer():
    return FakeTimer()


@pytest.fixture()
def spot_repo():
    return FakeSpotRepository()


@pytest.fixture()
def user_repo():
    return FakeUserRepository()


@pytest.fixture()
def leaderboard_repo():
    return FakeLeaderboardRepository()


@pytest.fixture()
def tile_cache(timer):
    return InMemoryTileCache(max_entries=100, ttl_s=60, timer=timer)


@pytest.fixture()
def owner_service(user_repo):
    return OwnerMetadataService(user_repository=user_repo)


@pytest.fixture()
def map_tile_uc(spot_repo, owner_service, tile_cache, clock):
    return GetMapTileUseCase(
        spot_repository=spot_repo,
        owner_metadata_service=owner_service,
        tile_cache=tile_cache,
        clock=clock,
    )


@pytest.fixture()
def rebuild_uc(spot_repo, leaderboard_repo, owner_service, clock):
    return RebuildLeaderboardUseCase(
        spot_repository=spot_repo,
        leaderboard_repository=leaderboard_repo,
        owner_metadata_service=owner_service,
        clock=clock,
    )


@pytest.fixture()
def fetch_popular_uc(spot_repo, user_repo, leaderboard_repo, owner_service, rebuild_uc, clock):
    return FetchPopularSpotsUseCase(
        leaderboard_repository=leaderboard_repo,
        spot_repository=spot_repo,
        user_repository=user_repo,
        owner_metadata_service=owner_service,
        rebuild_use_case=rebuild_uc,
        clock=clock,
    )


@pytest.fixture()
def token_verifier():
    return FakeTokenVerifier({"good-token": "viewer-1"})


@pytest.fixture()
async def client(map_tile_uc, fetch_popular_uc, rebuild_uc, token_verifier):
    """
    HTTPX async test client wired to the FastAPI app with in-memory collaborators.
    """
    from adapters.entry.http import deps
    from main import app

    app.dependency_overrides[deps.get_map_tile_use_case] = lambda: map_tile_uc
    app.dependency_overrides[deps.get_fetch_popular_use_case] = lambda: fetch_popular_uc
    app.dependency_overrides[deps.get_rebuild_leaderboard_use_case] = lambda: rebuild_uc
    app.dependency_overrides[deps.get_token_verifier] = lambda: token_verifier

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
