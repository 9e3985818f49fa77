"""
One-shot maintenance run: rebuild the popular-spots leaderboard and exit.

    python -m workers.run_maintenance
"""

from __future__ import annotations

import asyncio
import logging
import sys

from config.settings import settings
from workers.app_supervisor import AppSupervisor


async def _run() -> int:
    logger = logging.getLogger("maintenance")
    supervisor = AppSupervisor()
    await supervisor.start(run_worker=False)
    try:
        logger.info("Starting maintenance tasks")
        kept = await supervisor.worker.run_once()
        logger.info("Rebuilt popular spots leaderboard with %s entries", kept)
        return 0
    except Exception as exc:
        logger.exception("Maintenance failed: %s", exc)
        return 1
    finally:
        await supervisor.stop()


def main() -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    sys.exit(asyncio.run(_run()))


if __name__ == "__main__":
    main()
