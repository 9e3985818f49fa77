from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from core.domain.entities.spot_entity import SpotEntity


class SpotRepository(ABC):
    """
    Abstraction over the durable spot store.

    Only one range predicate per query is assumed to be available, so bbox queries
    filter on latitude in the store and leave longitude to the caller.
    """

    @abstractmethod
    async def ensure_indexes(self) -> None: ...

    @abstractmethod
    async def query_by_lat_range(
        self,
        min_lat: float,
        max_lat: float,
        *,
        categories: Optional[Sequence[str]] = None,
        limit: int,
    ) -> List[SpotEntity]:
        """
        Spots with min_lat <= lat <= max_lat ordered by lat, optionally restricted
        to an "in" list of categories, capped at `limit`.
        """
        raise NotImplementedError

    @abstractmethod
    async def get_spots(self, ids: Sequence[str]) -> List[Optional[SpotEntity]]:
        """
        Batch get. Output is aligned with `ids`; missing spots are None.
        """
        raise NotImplementedError

    @abstractmethod
    async def top_by_field(self, field: str, limit: int) -> List[SpotEntity]:
        """
        Top-N spots by a counter field (likes | comments_count | view_count), descending.
        """
        raise NotImplementedError

    @abstractmethod
    async def increment_counter(self, spot_id: str, field: str, delta: int) -> None:
        """
        Atomically add `delta` to a counter field.
        """
        raise NotImplementedError
