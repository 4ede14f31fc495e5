"""
Stale-lock reclamation, crowdsourced path.

Every observer of the game doubles as a janitor: whenever it receives a
new state it looks for cards stuck in `scratching` past the client window
and asks the repository to force-complete them. The repository re-checks
staleness inside its transaction, so an early or duplicated report is
harmless. The scheduled path lives in jobs.cleanup_stale_locks.
"""

import logging

from luckypaws.models.failure import KnownError
from luckypaws.models.game import GameState
from luckypaws.services.card_state import find_stale_card_ids
from luckypaws.services.game_repository import GameRepository

logger = logging.getLogger(__name__)


class CrowdsourcedSweeper:
    """
    Change-feed subscriber that reports stale cards it observes.

    Usage:
        sweeper = CrowdsourcedSweeper(repository)
        unsubscribe = await repository.subscribe(sweeper)
    """

    def __init__(self, repository: GameRepository, stale_after_seconds: int | None = None):
        self.repository = repository
        if stale_after_seconds is None:
            stale_after_seconds = repository.settings.client_stale_lock_seconds
        self.stale_after_seconds = stale_after_seconds

    def stale_ids(self, state: GameState) -> list[int]:
        """Ids that look stale in the observed state."""
        now = self.repository.clock()
        return find_stale_card_ids(state.deck, now, self.stale_after_seconds * 1000)

    async def __call__(self, state: GameState | None) -> None:
        if state is None:
            return
        stale = self.stale_ids(state)
        if not stale:
            return

        logger.info("Observed %d stale cards: %s", len(stale), stale)
        try:
            completed = await self.repository.force_complete_stale(
                stale, stale_after_seconds=self.stale_after_seconds
            )
        except KnownError as e:
            logger.warning("Crowdsourced sweep failed: %s", e.message)
            return
        if completed:
            logger.info("Crowdsourced sweep completed cards %s", completed)
