from adapters.external.cache.in_memory_tile_cache import InMemoryTileCache
from core.domain.entities.map_tile_entity import TileComputation
from tests.fakes import FakeTimer


def _tile(ms: int) -> TileComputation:
    return TileComputation(generated_at=ms, features=[])


class TestInMemoryTileCache:

    def test_get_returns_what_was_set(self):
        cache = InMemoryTileCache(timer=FakeTimer())
        cache.set("15/1/2", _tile(1))
        assert cache.get("15/1/2").generated_at == 1
        assert cache.get("15/1/3") is None

    def test_ttl_expires_regardless_of_reads(self):
        timer = FakeTimer()
        cache = InMemoryTileCache(ttl_s=60, timer=timer)
        cache.set("k", _tile(1))

        timer.t += 59
        assert cache.get("k") is not None
        timer.t += 1
        assert cache.get("k") is None
        assert len(cache) == 0

    def test_overwrite_resets_ttl(self):
        timer = FakeTimer()
        cache = InMemoryTileCache(ttl_s=60, timer=timer)
        cache.set("k", _tile(1))
        timer.t += 50
        cache.set("k", _tile(2))
        timer.t += 50
        assert cache.get("k").generated_at == 2

    def test_lru_eviction(self):
        cache = InMemoryTileCache(max_entries=2, timer=FakeTimer())
        cache.set("a", _tile(1))
        cache.set("b", _tile(2))
        cache.get("a")  # b is now least recently used
        cache.set("c", _tile(3))

        assert cache.get("b") is None
        assert cache.get("a") is not None
        assert cache.get("c") is not None
        assert len(cache) == 2

    def test_clear(self):
        cache = InMemoryTileCache(timer=FakeTimer())
        cache.set("a", _tile(1))
        cache.set("b", _tile(2))
        cache.clear()
        assert len(cache) == 0
        assert cache.get("a") is None
