import pytest

from core.services.cluster_engine_service import ClusterEngineService, ClusterGroup, ClusterKind
from core.services.tile_math_service import TileMathService
from tests.fakes import SHIBUYA_LAT, SHIBUYA_LNG

WORLD = (-180.0, -85.0, 180.0, 85.0)


def _engine(points):
    return ClusterEngineService(min_points=3, radius=60, max_zoom=18).load(points)


class TestClusterEngine:

    def test_two_points_never_cluster(self):
        engine = _engine([(SHIBUYA_LNG, SHIBUYA_LAT, "a"), (SHIBUYA_LNG, SHIBUYA_LAT, "b")])
        results = engine.get_clusters(WORLD, 15)
        assert [r.kind for r in results] == [ClusterKind.POINT, ClusterKind.POINT]
        assert {r.payload for r in results} == {"a", "b"}

    def test_three_close_points_form_a_cluster(self):
        pts = [(SHIBUYA_LNG + i * 0.0001, SHIBUYA_LAT, f"p{i}") for i in range(3)]
        results = _engine(pts).get_clusters(WORLD, 15)
        assert len(results) == 1
        group = results[0]
        assert isinstance(group, ClusterGroup)
        assert group.point_count == 3
        assert group.lng == pytest.approx(SHIBUYA_LNG + 0.0001, abs=1e-6)
        assert group.lat == pytest.approx(SHIBUYA_LAT, abs=1e-6)

    def test_points_above_max_zoom_are_raw(self):
        pts = [(SHIBUYA_LNG + i * 0.0001, SHIBUYA_LAT, f"p{i}") for i in range(3)]
        results = _engine(pts).get_clusters(WORLD, 20)
        assert len(results) == 3
        assert all(r.kind == ClusterKind.POINT for r in results)

    def test_far_points_stay_apart(self):
        pts = [(SHIBUYA_LNG, SHIBUYA_LAT, "tokyo"), (-0.1276, 51.5072, "london"), (2.3522, 48.8566, "paris")]
        results = _engine(pts).get_clusters(WORLD, 15)
        assert len(results) == 3

    def test_low_zoom_merges_more(self):
        pts = [(SHIBUYA_LNG + i * 0.01, SHIBUYA_LAT, f"p{i}") for i in range(5)]
        engine = _engine(pts)
        assert len(engine.get_clusters(WORLD, 18)) == 5
        assert len(engine.get_clusters(WORLD, 5)) == 1

    def test_bbox_filters_results(self):
        pts = [(SHIBUYA_LNG, SHIBUYA_LAT, "tokyo"), (-0.1276, 51.5072, "london")]
        x, y = TileMathService.point_to_tile(SHIBUYA_LNG, SHIBUYA_LAT, 15)
        bbox = TileMathService.tile_to_bbox(TileMathService.normalize(15, x, y))
        results = _engine(pts).get_clusters(bbox, 15)
        assert [r.payload for r in results] == ["tokyo"]

    def test_cluster_id_encodes_zoom(self):
        pts = [(SHIBUYA_LNG + i * 0.0001, SHIBUYA_LAT, f"p{i}") for i in range(3)]
        group = _engine(pts).get_clusters(WORLD, 15)[0]
        # first merged at zoom 17
        assert group.cluster_id & 0b11111 == 18

    def test_neighbours_of_a_small_group_are_not_reused(self):
        # p1 is near every other point, but p0 goes first and only reaches p1
        a = 0.9 * 60 / (512 * 2 ** 18) * 360
        pts = [(0.0, 0.0, "p0"), (a, 0.0, "p1"), (2 * a, 0.0, "p2"), (a, a, "p3")]
        engine = _engine(pts)

        at_18 = engine.get_clusters(WORLD, 18)
        assert all(r.kind == ClusterKind.POINT for r in at_18)
        assert {r.payload for r in at_18} == {"p0", "p1", "p2", "p3"}

        at_17 = engine.get_clusters(WORLD, 17)
        assert [r.point_count for r in at_17] == [4]

    def test_empty_load(self):
        assert _engine([]).get_clusters(WORLD, 10) == []


class TestAbbreviation:

    def test_small_counts_are_numeric(self):
        assert ClusterGroup(cluster_id=1, lat=0, lng=0, point_count=999).point_count_abbreviated == 999

    def test_thousands(self):
        assert ClusterGroup(cluster_id=1, lat=0, lng=0, point_count=1234).point_count_abbreviated == "1.2k"

    def test_ten_thousands(self):
        assert ClusterGroup(cluster_id=1, lat=0, lng=0, point_count=12_600).point_count_abbreviated == "13k"
