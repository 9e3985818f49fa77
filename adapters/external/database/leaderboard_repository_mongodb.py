from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from core.domain.entities.leaderboard_entry_entity import LeaderboardEntryEntity
from core.repositories.leaderboard_repository import LeaderboardRepository


class LeaderboardRepositoryMongoDB(LeaderboardRepository):
    """
    MongoDB leaderboard snapshot.

    The whole ranked list is one document in `leaderboards` (key "popular_spots"),
    so deleting dropped rows and upserting survivors is a single atomic
    replace: a failed rebuild leaves the previous snapshot untouched.
    """

    COLLECTION = "leaderboards"
    KEY = "popular_spots"

    def __init__(self, db: AsyncIOMotorDatabase):
        self._db = db

    async def list_entries(self, limit: Optional[int] = None) -> List[LeaderboardEntryEntity]:
        col = self._db[self.COLLECTION]
        doc = await col.find_one({"_id": self.KEY})
        if not doc:
            return []

        entries = [LeaderboardEntryEntity.model_validate(e) for e in doc.get("entries") or []]
        entries.sort(key=lambda e: (e.popularity_score, e.updated_at), reverse=True)
        if limit is not None:
            entries = entries[: int(limit)]
        return entries

    async def replace_entries(self, entries: List[LeaderboardEntryEntity]) -> None:
        col = self._db[self.COLLECTION]
        now = datetime.now(tz=timezone.utc)
        payload = {
            "_id": self.KEY,
            "entries": [e.model_dump(mode="python") for e in entries],
            "updated_at": now,
        }
        await col.replace_one({"_id": self.KEY}, payload, upsert=True)
