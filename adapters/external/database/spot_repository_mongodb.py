from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pydantic import ValidationError

from core.domain.entities.spot_entity import COUNTER_FIELDS, SpotEntity
from core.repositories.spot_repository import SpotRepository


class SpotRepositoryMongoDB(SpotRepository):
    """
    MongoDB implementation of the spot store.

    Documents live in `spots` with snake_case fields:
      title, category, lat, lng, start_time, end_time, owner_id,
      likes, comments_count, view_count, premium, created_at
    """

    COLLECTION = "spots"

    def __init__(self, db: AsyncIOMotorDatabase):
        """
        Args:
            db: Motor database handle.
        """
        self._db = db
        self._logger = logging.getLogger(self.__class__.__name__)

    async def ensure_indexes(self) -> None:
        """
        Latitude band scans (with and without a category filter) and the
        per-counter sorts used by the leaderboard.
        """
        col = self._db[self.COLLECTION]
        await col.create_index([("lat", 1)])
        await col.create_index([("category", 1), ("lat", 1)])
        for field in COUNTER_FIELDS:
            await col.create_index([(field, -1)])

    async def query_by_lat_range(
        self,
        min_lat: float,
        max_lat: float,
        *,
        categories: Optional[Sequence[str]] = None,
        limit: int,
    ) -> List[SpotEntity]:
        col = self._db[self.COLLECTION]
        query: Dict[str, Any] = {"lat": {"$gte": float(min_lat), "$lte": float(max_lat)}}
        if categories:
            query["category"] = {"$in": list(categories)}

        cursor = col.find(query).sort("lat", 1).limit(int(limit))
        docs = await cursor.to_list(length=int(limit))
        return self._to_entities(docs)

    async def get_spots(self, ids: Sequence[str]) -> List[Optional[SpotEntity]]:
        if not ids:
            return []
        col = self._db[self.COLLECTION]
        docs = await col.find({"_id": {"$in": self._id_values(ids)}}).to_list(length=len(ids) * 2)
        by_id = {e.id: e for e in self._to_entities(docs)}
        return [by_id.get(str(i)) for i in ids]

    async def top_by_field(self, field: str, limit: int) -> List[SpotEntity]:
        self._check_counter(field)
        col = self._db[self.COLLECTION]
        cursor = col.find({}).sort(field, -1).limit(int(limit))
        docs = await cursor.to_list(length=int(limit))
        return self._to_entities(docs)

    async def increment_counter(self, spot_id: str, field: str, delta: int) -> None:
        self._check_counter(field)
        col = self._db[self.COLLECTION]
        await col.update_one({"_id": {"$in": self._id_values([spot_id])}}, {"$inc": {field: int(delta)}})

    @staticmethod
    def _check_counter(field: str) -> None:
        if field not in COUNTER_FIELDS:
            raise ValueError(f"unsupported counter field: {field}")

    @staticmethod
    def _id_values(ids: Sequence[str]) -> List[Any]:
        """
        Spot ids may be stored as ObjectId or as plain strings; match both.
        """
        out: List[Any] = []
        for raw in ids:
            s = str(raw)
            out.append(s)
            try:
                out.append(ObjectId(s))
            except (InvalidId, TypeError):
                pass
        return out

    def _to_entities(self, docs: List[dict]) -> List[SpotEntity]:
        """
        Malformed documents are skipped with a warning so one bad spot never
        fails a whole tile or leaderboard read.
        """
        out: List[SpotEntity] = []
        for doc in docs:
            try:
                spot = SpotEntity.from_mongo(doc)
            except ValidationError as exc:
                self._logger.warning("Skipping malformed spot id=%s: %s", doc.get("_id"), exc)
                continue
            if spot is None:
                continue
            if not spot.has_coordinates:
                self._logger.warning("Skipping spot without coordinates id=%s", spot.id)
                continue
            out.append(spot)
        return out
