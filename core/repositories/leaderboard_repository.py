from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional

from core.domain.entities.leaderboard_entry_entity import LeaderboardEntryEntity


class LeaderboardRepository(ABC):
    """
    Persistence for the popular-spots leaderboard snapshot.
    """

    @abstractmethod
    async def list_entries(self, limit: Optional[int] = None) -> List[LeaderboardEntryEntity]:
        """
        Entries ordered by popularity_score desc, then updated_at desc.
        """
        raise NotImplementedError

    @abstractmethod
    async def replace_entries(self, entries: List[LeaderboardEntryEntity]) -> None:
        """
        Replace the whole snapshot in one atomic write: rows not in `entries`
        disappear, rows in `entries` are upserted.
        """
        raise NotImplementedError
