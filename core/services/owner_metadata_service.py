from __future__ import annotations

import logging
from typing import Dict, Iterable, List

from core.domain.entities.user_entity import OwnerMetricsEntity
from core.repositories.user_repository import UserRepository


class OwnerMetadataService:
    """
    Best-effort owner enrichment for rendered spots.

    Owner ids are de-duplicated and fetched with a single batched repository call.
    A failing user store never blocks rendering: the lookup degrades to an empty
    map and every owner reads as not phone-verified.
    """

    def __init__(self, *, user_repository: UserRepository, logger: logging.Logger | None = None) -> None:
        self._users = user_repository
        self._logger = logger or logging.getLogger(self.__class__.__name__)

    @staticmethod
    def distinct_owner_ids(owner_ids: Iterable[str]) -> List[str]:
        seen: Dict[str, None] = {}
        for oid in owner_ids:
            if oid:
                seen.setdefault(oid, None)
        return list(seen)

    async def owner_metrics(self, owner_ids: Iterable[str]) -> Dict[str, OwnerMetricsEntity]:
        ids = self.distinct_owner_ids(owner_ids)
        if not ids:
            return {}
        try:
            return await self._users.get_owner_metrics(ids)
        except Exception as exc:
            self._logger.warning("Owner metadata lookup failed owners=%s: %s", len(ids), exc)
            return {}

    async def phone_verified_by_owner(self, owner_ids: Iterable[str]) -> Dict[str, bool]:
        metrics = await self.owner_metrics(owner_ids)
        return {oid: bool(m.phone_verified) for oid, m in metrics.items()}
