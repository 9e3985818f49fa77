from __future__ import annotations

from typing import Dict, List, Sequence

from motor.motor_asyncio import AsyncIOMotorDatabase

from core.domain.entities.user_entity import OwnerMetricsEntity, ViewerStateEntity
from core.repositories.user_repository import UserRepository


class UserRepositoryMongoDB(UserRepository):
    """
    Read-only MongoDB access to `users` (keyed by uid) and `likes`.

    Large owner sets are split into `batch_size` chunks and fetched sequentially,
    one `$in` query per chunk.
    """

    USERS = "users"
    LIKES = "likes"
    VIEWER_LIKES_LIMIT = 500

    _OWNER_PROJECTION = {
        "poster_tier": 1,
        "followers_count": 1,
        "flags": 1,
        "phone_verified": 1,
        "display_name": 1,
        "photo_url": 1,
    }

    def __init__(self, db: AsyncIOMotorDatabase, *, batch_size: int = 500):
        self._db = db
        self._batch_size = max(1, int(batch_size))

    async def get_owner_metrics(self, ids: Sequence[str]) -> Dict[str, OwnerMetricsEntity]:
        col = self._db[self.USERS]
        unique: List[str] = list(dict.fromkeys(str(i) for i in ids if i))
        out: Dict[str, OwnerMetricsEntity] = {}

        for start in range(0, len(unique), self._batch_size):
            chunk = unique[start : start + self._batch_size]
            docs = await col.find({"_id": {"$in": chunk}}, self._OWNER_PROJECTION).to_list(length=len(chunk))
            for doc in docs:
                metrics = OwnerMetricsEntity.from_user_doc(doc)
                out[metrics.id] = metrics
        return out

    async def get_viewer_state(self, viewer_id: str) -> ViewerStateEntity:
        users = self._db[self.USERS]
        likes = self._db[self.LIKES]

        user = await users.find_one(
            {"_id": viewer_id},
            {"followed_user_ids": 1, "favorite_spot_ids": 1},
        ) or {}
        like_docs = await (
            likes.find({"user_id": viewer_id}, {"spot_id": 1})
            .limit(self.VIEWER_LIKES_LIMIT)
            .to_list(length=self.VIEWER_LIKES_LIMIT)
        )

        return ViewerStateEntity(
            viewer_id=viewer_id,
            liked_spot_ids=[str(d["spot_id"]) for d in like_docs if d.get("spot_id")],
            followed_owner_ids=self._string_ids(user.get("followed_user_ids")),
            favorite_spot_ids=self._string_ids(user.get("favorite_spot_ids")),
        )

    @staticmethod
    def _string_ids(value) -> List[str]:
        if not isinstance(value, list):
            return []
        return [v.strip() for v in value if isinstance(v, str) and v.strip()]
