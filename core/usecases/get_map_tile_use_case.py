# core/usecases/get_map_tile_use_case.py
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Dict, Optional

from core.domain.entities.map_tile_entity import (
    Geometry,
    MapTileFeature,
    MapTileLayer,
    MapTileRequestOptions,
    MapTileResponse,
    SpotSummary,
    TileComputation,
    TileCoordinate,
)
from core.domain.entities.spot_entity import SpotEntity
from core.repositories.spot_repository import SpotRepository
from core.repositories.tile_cache_repository import TileCacheRepository
from core.services.cluster_engine_service import ClusterEngineService, ClusterGroup, ClusterKind, ClusterResult
from core.services.owner_metadata_service import OwnerMetadataService
from core.services.tile_math_service import TileMathService


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


class GetMapTileUseCase:
    """
    Builds the marker list for one map tile.

    Flow:
      - normalize (z, x, y); the cache key ignores filter options
      - if a non-zero `since` is given and the cached tile is at least that fresh, return it
      - fetch spots by latitude band from the store, then filter longitude,
        premium flag in memory (categories are pushed into the store query)
      - resolve the rendering layer from the explicit request, density and zoom
      - cluster, enrich with owner verification, cache, return

    The cache is written only once a tile has been fully computed.
    """

    MAX_CATEGORIES = 10
    CLUSTER_MIN_POINTS = 3
    CLUSTER_RADIUS = 60
    CLUSTER_MAX_ZOOM = 18

    def __init__(
        self,
        *,
        spot_repository: SpotRepository,
        owner_metadata_service: OwnerMetadataService,
        tile_cache: TileCacheRepository,
        max_results: int = 2000,
        dom_budget: int = 300,
        next_sync_ms: int = 60_000,
        clock: Callable[[], datetime] = _utcnow,
        logger: logging.Logger | None = None,
    ):
        self._spots = spot_repository
        self._owners = owner_metadata_service
        self._cache = tile_cache
        self._max_results = int(max_results)
        self._dom_budget = int(dom_budget)
        self._next_sync_ms = int(next_sync_ms)
        self._clock = clock
        self._logger = logger or logging.getLogger(self.__class__.__name__)

    @staticmethod
    def resolve_layer(requested: Optional[MapTileLayer], zoom: int, density: int) -> MapTileLayer:
        """
        Explicit layer wins. Otherwise high density or low zoom clusters,
        mid zoom pulses and only sparse high-zoom tiles get full balloons.
        """
        if requested:
            return MapTileLayer(requested)
        if density > 1000 or zoom <= 8:
            return MapTileLayer.CLUSTER
        if density > 300:
            return MapTileLayer.CLUSTER
        if zoom <= 12:
            return MapTileLayer.PULSE
        return MapTileLayer.BALLOON

    def clear_cache(self) -> None:
        self._cache.clear()

    async def execute(
        self,
        z: float,
        x: float,
        y: float,
        options: Optional[MapTileRequestOptions] = None,
    ) -> MapTileResponse:
        options = options or MapTileRequestOptions()
        tile = TileMathService.normalize(z, x, y)
        key = tile.cache_key

        if options.since:
            cached = self._cache.get(key)
            if cached is not None and cached.generated_at >= options.since:
                return self._response(tile, cached)

        min_lng, min_lat, max_lng, max_lat = TileMathService.tile_to_bbox(tile)

        categories = list(options.categories or [])[: self.MAX_CATEGORIES] or None
        raw = await self._spots.query_by_lat_range(
            min_lat,
            max_lat,
            categories=categories,
            limit=self._max_results,
        )
        if len(raw) >= self._max_results:
            self._logger.warning(
                "Map tile result hit limit tile=%s fetched=%s limit=%s",
                key,
                len(raw),
                self._max_results,
            )

        spots = [s for s in raw if min_lng <= s.lng <= max_lng]
        if options.premium_only:
            spots = [s for s in spots if s.premium]

        density = len(spots)
        layer = self.resolve_layer(options.layer, tile.z, density)

        if not spots:
            computed = TileComputation(generated_at=self._now_ms(), features=[])
            self._cache.set(key, computed)
            return self._response(tile, computed)

        phone_verified = await self._owners.phone_verified_by_owner(s.owner_id for s in spots)

        engine: ClusterEngineService[SpotEntity] = ClusterEngineService(
            min_points=self.CLUSTER_MIN_POINTS,
            radius=self.CLUSTER_RADIUS,
            max_zoom=self.CLUSTER_MAX_ZOOM,
        ).load([(s.lng, s.lat, s) for s in spots])
        results = engine.get_clusters((min_lng, min_lat, max_lng, max_lat), tile.z)

        now = self._clock()
        features = [self._to_feature(r, tile, layer, phone_verified, now) for r in results]

        computed = TileComputation(generated_at=self._now_ms(), features=features)
        self._cache.set(key, computed)
        return self._response(tile, computed)

    def _to_feature(
        self,
        result: ClusterResult,
        tile: TileCoordinate,
        layer: MapTileLayer,
        phone_verified: Dict[str, bool],
        now: datetime,
    ) -> MapTileFeature:
        geometry = Geometry(lat=result.lat, lng=result.lng)

        if result.kind == ClusterKind.CLUSTER:
            group: ClusterGroup = result
            abbreviated = group.point_count_abbreviated
            return MapTileFeature(
                id=str(group.cluster_id),
                type=MapTileLayer.CLUSTER,
                geometry=geometry,
                count=group.point_count,
                popularity=abbreviated if isinstance(abbreviated, int) else None,
            )

        spot: SpotEntity = result.payload
        return MapTileFeature(
            id=spot.id or f"{tile.z}-{result.lat}-{result.lng}",
            type=layer,
            geometry=geometry,
            popularity=spot.likes,
            premium=spot.premium,
            status=spot.lifecycle(now).value,
            spot=SpotSummary(
                title=spot.title,
                category=spot.category,
                start_time=spot.start_time,
                end_time=spot.end_time,
                owner_id=spot.owner_id,
                owner_phone_verified=phone_verified.get(spot.owner_id, False),
                likes=spot.likes,
                comments_count=spot.comments_count,
                promotion=None,
            ),
        )

    def _response(self, tile: TileCoordinate, computed: TileComputation) -> MapTileResponse:
        return MapTileResponse(
            z=tile.z,
            x=tile.x,
            y=tile.y,
            generated_at=computed.generated_at,
            next_sync_at=computed.generated_at + self._next_sync_ms,
            dom_budget=self._dom_budget,
            features=list(computed.features),
        )

    def _now_ms(self) -> int:
        return int(self._clock().timestamp() * 1000)
