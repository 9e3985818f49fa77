from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from core.domain.entities.map_tile_entity import TileComputation


class TileCacheRepository(ABC):
    """
    Short-lived tile store keyed by normalized "z/x/y".

    Pure accelerator: dropping any entry must only cost latency. Calls are
    synchronous and must be safe under concurrent requests.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[TileComputation]: ...

    @abstractmethod
    def set(self, key: str, value: TileComputation) -> None: ...

    @abstractmethod
    def clear(self) -> None: ...
