from __future__ import annotations

import math
from collections import defaultdict
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Generic, List, Optional, Sequence, Tuple, TypeVar, Union

from core.services.tile_math_service import BBox, TileMathService

P = TypeVar("P")


class ClusterKind(str, Enum):
    CLUSTER = "cluster"
    POINT = "point"


@dataclass(frozen=True)
class ClusterGroup:
    """
    Several nearby input points merged at a given zoom.
    """

    cluster_id: int
    lat: float
    lng: float
    point_count: int
    kind: ClusterKind = ClusterKind.CLUSTER

    @property
    def point_count_abbreviated(self) -> Union[int, str]:
        if self.point_count >= 10_000:
            return f"{round(self.point_count / 1000)}k"
        if self.point_count >= 1000:
            return f"{round(self.point_count / 100) / 10}k"
        return self.point_count


@dataclass(frozen=True)
class ClusterPoint(Generic[P]):
    """
    A single input point that was not absorbed into a cluster.
    """

    lat: float
    lng: float
    payload: P
    kind: ClusterKind = ClusterKind.POINT


ClusterResult = Union[ClusterGroup, ClusterPoint]


@dataclass
class _Node:
    x: float
    y: float
    count: int
    source_index: Optional[int] = None  # set for raw points
    cluster_id: Optional[int] = None  # set for clusters


class ClusterEngineService(Generic[P]):
    """
    Hierarchical greedy point clustering on the Web Mercator plane.

    Points are loaded once, then merged level by level from max_zoom down to
    min_zoom: at each zoom, a point absorbs every unvisited neighbour within
    `radius` pixels (on a tile of `extent` pixels) if the group holds at least
    `min_points` points. When it does not, the point and its neighbours are
    all kept as they are for that zoom. Above max_zoom, raw points are returned.
    """

    def __init__(
        self,
        *,
        min_points: int = 3,
        radius: float = 60.0,
        extent: int = 512,
        min_zoom: int = 0,
        max_zoom: int = 18,
    ) -> None:
        self._min_points = int(min_points)
        self._radius = float(radius)
        self._extent = int(extent)
        self._min_zoom = int(min_zoom)
        self._max_zoom = int(max_zoom)

        self._payloads: List[P] = []
        self._coords: List[Tuple[float, float]] = []  # (lng, lat) as loaded
        self._levels: Dict[int, List[_Node]] = {}

    def load(self, points: Sequence[Tuple[float, float, P]]) -> "ClusterEngineService[P]":
        """
        Index (lng, lat, payload) triples. Replaces any previous load.
        """
        self._payloads = [p for _, _, p in points]
        self._coords = [(float(lng), float(lat)) for lng, lat, _ in points]

        nodes = [
            _Node(
                x=TileMathService.lng_to_x(lng),
                y=TileMathService.lat_to_y(lat),
                count=1,
                source_index=i,
            )
            for i, (lng, lat) in enumerate(self._coords)
        ]

        self._levels = {self._max_zoom + 1: nodes}
        for zoom in range(self._max_zoom, self._min_zoom - 1, -1):
            nodes = self._cluster(nodes, zoom)
            self._levels[zoom] = nodes
        return self

    def get_clusters(self, bbox: BBox, zoom: int) -> List[ClusterResult]:
        """
        Clusters and loose points intersecting `bbox` at `zoom`.
        """
        level = self._levels.get(self._limit_zoom(zoom), [])
        min_lng, min_lat, max_lng, max_lat = bbox
        min_x = TileMathService.lng_to_x(min_lng)
        max_x = TileMathService.lng_to_x(max_lng)
        # y grows southwards
        min_y = TileMathService.lat_to_y(max_lat)
        max_y = TileMathService.lat_to_y(min_lat)

        out: List[ClusterResult] = []
        for node in level:
            if not (min_x <= node.x <= max_x and min_y <= node.y <= max_y):
                continue
            out.append(self._to_result(node))
        return out

    def _limit_zoom(self, zoom: int) -> int:
        return max(self._min_zoom, min(int(zoom), self._max_zoom + 1))

    def _to_result(self, node: _Node) -> ClusterResult:
        if node.cluster_id is not None:
            return ClusterGroup(
                cluster_id=node.cluster_id,
                lat=TileMathService.y_to_lat(node.y),
                lng=TileMathService.x_to_lng(node.x),
                point_count=node.count,
            )
        idx = int(node.source_index)
        lng, lat = self._coords[idx]
        return ClusterPoint(lat=lat, lng=lng, payload=self._payloads[idx])

    def _cluster(self, nodes: List[_Node], zoom: int) -> List[_Node]:
        r = self._radius / (self._extent * (2 ** zoom))
        r2 = r * r

        grid: Dict[Tuple[int, int], List[int]] = defaultdict(list)
        for i, n in enumerate(nodes):
            grid[(math.floor(n.x / r), math.floor(n.y / r))].append(i)

        visited = [False] * len(nodes)
        out: List[_Node] = []

        for i, node in enumerate(nodes):
            if visited[i]:
                continue
            visited[i] = True

            cx, cy = math.floor(node.x / r), math.floor(node.y / r)
            neighbours: List[int] = []
            for gx in (cx - 1, cx, cx + 1):
                for gy in (cy - 1, cy, cy + 1):
                    for j in grid.get((gx, gy), ()):
                        if visited[j]:
                            continue
                        other = nodes[j]
                        dx, dy = other.x - node.x, other.y - node.y
                        if dx * dx + dy * dy <= r2:
                            neighbours.append(j)

            total = node.count + sum(nodes[j].count for j in neighbours)
            if total >= self._min_points and neighbours:
                wx = node.x * node.count
                wy = node.y * node.count
                for j in neighbours:
                    visited[j] = True
                    wx += nodes[j].x * nodes[j].count
                    wy += nodes[j].y * nodes[j].count
                out.append(
                    _Node(
                        x=wx / total,
                        y=wy / total,
                        count=total,
                        cluster_id=(i << 5) + (zoom + 1),
                    )
                )
            else:
                # too few to merge; the neighbours are settled at this zoom too
                out.append(node)
                for j in neighbours:
                    visited[j] = True
                    out.append(nodes[j])

        return out
