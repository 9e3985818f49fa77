from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, Sequence

from core.domain.entities.user_entity import OwnerMetricsEntity, ViewerStateEntity


class UserRepository(ABC):
    """
    Read-only access to user/owner data owned by the user store.
    """

    @abstractmethod
    async def get_owner_metrics(self, ids: Sequence[str]) -> Dict[str, OwnerMetricsEntity]:
        """
        Batched owner lookup keyed by owner id. Unknown ids are absent from the map.
        """
        raise NotImplementedError

    @abstractmethod
    async def get_viewer_state(self, viewer_id: str) -> ViewerStateEntity:
        """
        Likes, follows and favourites of a signed-in viewer.
        """
        raise NotImplementedError
