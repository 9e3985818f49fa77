from __future__ import annotations

import math
from typing import Tuple

from core.domain.entities.map_tile_entity import TileCoordinate

BBox = Tuple[float, float, float, float]  # (min_lng, min_lat, max_lng, max_lat)


class TileMathService:
    """
    Web Mercator helpers for slippy-map tiles.

    Rules:
    - z is floored and clamped to [MIN_ZOOM, MAX_ZOOM]
    - x / y are floored and clamped to >= 0; they are not checked against 2^z,
      an out-of-range tile simply covers no spots.
    """

    MIN_ZOOM = 5
    MAX_ZOOM = 20
    MAX_LAT = 85.0511287798066

    @classmethod
    def normalize(cls, z: float, x: float, y: float) -> TileCoordinate:
        return TileCoordinate(
            z=max(cls.MIN_ZOOM, min(cls.MAX_ZOOM, math.floor(z))),
            x=max(0, math.floor(x)),
            y=max(0, math.floor(y)),
        )

    @staticmethod
    def tile_to_lng(x: int, z: int) -> float:
        return x / (2 ** z) * 360.0 - 180.0

    @staticmethod
    def tile_to_lat(y: int, z: int) -> float:
        # rows past the map edge collapse onto the pole
        y = min(y, 2 ** z)
        n = math.pi - 2.0 * math.pi * y / (2 ** z)
        return math.degrees(math.atan(0.5 * (math.exp(n) - math.exp(-n))))

    @classmethod
    def tile_to_bbox(cls, tile: TileCoordinate) -> BBox:
        west = cls.tile_to_lng(tile.x, tile.z)
        east = cls.tile_to_lng(tile.x + 1, tile.z)
        north = cls.tile_to_lat(tile.y, tile.z)
        south = cls.tile_to_lat(tile.y + 1, tile.z)
        return west, south, east, north

    @classmethod
    def point_to_tile(cls, lng: float, lat: float, z: int) -> Tuple[int, int]:
        """
        Tile (x, y) containing a WGS84 point at zoom z.
        """
        lat = max(-cls.MAX_LAT, min(cls.MAX_LAT, lat))
        n = 2 ** z
        x = math.floor((lng + 180.0) / 360.0 * n)
        rad = math.radians(lat)
        y = math.floor((1.0 - math.log(math.tan(rad) + 1.0 / math.cos(rad)) / math.pi) / 2.0 * n)
        return min(max(x, 0), n - 1), min(max(y, 0), n - 1)

    # Normalized [0, 1] Mercator plane used by the cluster engine.

    @staticmethod
    def lng_to_x(lng: float) -> float:
        return lng / 360.0 + 0.5

    @staticmethod
    def lat_to_y(lat: float) -> float:
        s = math.sin(math.radians(lat))
        if s >= 1.0:
            return 0.0
        if s <= -1.0:
            return 1.0
        y = 0.5 - 0.25 * math.log((1.0 + s) / (1.0 - s)) / math.pi
        return min(1.0, max(0.0, y))

    @staticmethod
    def x_to_lng(x: float) -> float:
        return (x - 0.5) * 360.0

    @staticmethod
    def y_to_lat(y: float) -> float:
        y2 = (180.0 - y * 360.0) * math.pi / 180.0
        return 360.0 * math.atan(math.exp(y2)) / math.pi - 90.0
