from __future__ import annotations

import threading
import time
from collections import OrderedDict
from typing import Callable, Optional, Tuple

from core.domain.entities.map_tile_entity import TileComputation
from core.repositories.tile_cache_repository import TileCacheRepository


class InMemoryTileCache(TileCacheRepository):
    """
    Process-local LRU tile cache with a fixed per-entry TTL.

    - capacity overflow evicts the least recently used entry
    - an entry expires `ttl_s` after it was written, however often it is read
    - a lock guards every mutation so concurrent requests share it safely
    """

    def __init__(
        self,
        *,
        max_entries: int = 100,
        ttl_s: float = 60.0,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        self._max_entries = max(1, int(max_entries))
        self._ttl_s = float(ttl_s)
        self._timer = timer
        self._entries: "OrderedDict[str, Tuple[float, TileComputation]]" = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[TileComputation]:
        with self._lock:
            item = self._entries.get(key)
            if item is None:
                return None
            expires_at, value = item
            if self._timer() >= expires_at:
                del self._entries[key]
                return None
            self._entries.move_to_end(key)
            return value

    def set(self, key: str, value: TileComputation) -> None:
        with self._lock:
            self._entries[key] = (self._timer() + self._ttl_s, value)
            self._entries.move_to_end(key)
            while len(self._entries) > self._max_entries:
                self._entries.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
