# workers/leaderboard_worker.py
from __future__ import annotations

import asyncio
import contextlib
import logging

from core.usecases.rebuild_leaderboard_use_case import RebuildLeaderboardUseCase


class LeaderboardWorker:
    """
    Rebuilds the popular-spots leaderboard every `every_s` seconds in background.

    A failed rebuild is logged and retried on the next tick; the previously
    persisted leaderboard stays as it was.
    """

    def __init__(
        self,
        *,
        rebuild_use_case: RebuildLeaderboardUseCase,
        max_entries: int,
        every_s: float,
        logger: logging.Logger | None = None,
    ):
        self._rebuild = rebuild_use_case
        self._max_entries = int(max_entries)
        self._every_s = float(every_s)
        self._logger = logger or logging.getLogger(self.__class__.__name__)

        self._task: asyncio.Task | None = None
        self._stop = asyncio.Event()

    def start(self) -> None:
        """Start the rebuild loop in background."""
        if self._task is None:
            self._stop.clear()
            self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        """Stop the rebuild loop gracefully."""
        self._stop.set()
        if self._task is not None:
            await self._task
            self._task = None

    async def run_once(self) -> int:
        spots = await self._rebuild.execute(self._max_entries)
        return len(spots)

    async def _run(self) -> None:
        while not self._stop.is_set():
            try:
                kept = await self.run_once()
                self._logger.debug("Leaderboard tick done entries=%s", kept)
            except Exception as exc:
                self._logger.exception("Leaderboard rebuild loop error: %s", exc)

            with contextlib.suppress(asyncio.TimeoutError):
                await asyncio.wait_for(self._stop.wait(), timeout=self._every_s)
