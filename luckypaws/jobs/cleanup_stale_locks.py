"""
Scheduled job to reclaim abandoned cards.

Finds cards stuck in `scratching` longer than the scheduled window and
force-completes them (never back to available: abandoning a card wastes
it). Runs inside the app via APScheduler, or standalone from cron.
"""

import asyncio
import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from luckypaws.config import settings
from luckypaws.db.database import async_session_factory
from luckypaws.models.failure import GameNotFoundError, KnownError
from luckypaws.services.game_repository import GameRepository

logger = logging.getLogger(__name__)

JOB_ID = "cleanup_stale_locks"


async def run_stale_lock_cleanup(
    repository: GameRepository,
    stale_after_seconds: int | None = None,
) -> list[int]:
    """
    Force-complete every stale card of the canonical game.

    Args:
        repository: Repository owning the game document
        stale_after_seconds: Lock age threshold; defaults to the scheduled window

    Returns:
        Ids of the cards that were completed
    """
    window = stale_after_seconds
    if window is None:
        window = repository.settings.scheduled_stale_lock_seconds

    try:
        completed = await repository.sweep_stale_locks(window)
    except GameNotFoundError:
        logger.info("No game document found, skipping.")
        return []
    except KnownError as e:
        logger.error("Stale lock cleanup failed: %s", e.message)
        return []

    if completed:
        logger.info("Stale locks cleaned up: %s", completed)
    else:
        logger.debug("No stale locks found.")
    return completed


def schedule_cleanup(scheduler: AsyncIOScheduler, repository: GameRepository) -> None:
    """Register the cleanup job on an AsyncIOScheduler."""
    scheduler.add_job(
        run_stale_lock_cleanup,
        "interval",
        seconds=repository.settings.sweep_interval_seconds,
        args=[repository],
        id=JOB_ID,
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )


def main() -> None:
    """CLI entry point for a single cleanup pass."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    repository = GameRepository(async_session_factory, settings)
    asyncio.run(run_stale_lock_cleanup(repository))


if __name__ == "__main__":
    main()
