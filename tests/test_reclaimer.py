"""Tests for the crowdsourced stale-lock sweeper."""

from unittest.mock import AsyncMock

from luckypaws.models.card import CardStatus
from luckypaws.models.failure import ContentionError
from luckypaws.services.game_repository import GameRepository
from luckypaws.services.reclaimer import CrowdsourcedSweeper


class TestCrowdsourcedSweeper:
    async def test_reports_stale_cards(self, published: GameRepository, clock) -> None:
        await published.claim_card(2, "A")
        clock.advance(46)
        sweeper = CrowdsourcedSweeper(published)

        await sweeper(await published.load_game())

        card = (await published.load_game()).get_card(2)
        assert card.status == CardStatus.COMPLETED

    async def test_ignores_fresh_locks(self, published: GameRepository, clock) -> None:
        await published.claim_card(2, "A")
        clock.advance(20)
        sweeper = CrowdsourcedSweeper(published)

        state = await published.load_game()
        assert sweeper.stale_ids(state) == []

        await sweeper(state)
        assert (await published.load_game()).get_card(2).status == CardStatus.SCRATCHING

    async def test_custom_window(self, published: GameRepository, clock) -> None:
        await published.claim_card(2, "A")
        clock.advance(11)
        sweeper = CrowdsourcedSweeper(published, stale_after_seconds=10)

        assert sweeper.stale_ids(await published.load_game()) == [2]

    async def test_zero_window_is_not_the_default(self, published: GameRepository, clock) -> None:
        await published.claim_card(2, "A")
        clock.advance(1)
        sweeper = CrowdsourcedSweeper(published, stale_after_seconds=0)

        assert sweeper.stale_after_seconds == 0
        assert sweeper.stale_ids(await published.load_game()) == [2]

    async def test_no_game(self, repository: GameRepository) -> None:
        sweeper = CrowdsourcedSweeper(repository)

        await sweeper(None)

    async def test_sweeps_on_change_notification(
        self, published: GameRepository, clock
    ) -> None:
        """Subscribed sweepers reclaim when any change is published."""
        await published.claim_card(1, "A")
        clock.advance(60)
        await published.subscribe(CrowdsourcedSweeper(published))

        state = await published.load_game()
        assert state.get_card(1).status == CardStatus.COMPLETED

    async def test_repository_failure_is_logged(
        self, published: GameRepository, clock, caplog
    ) -> None:
        await published.claim_card(1, "A")
        clock.advance(60)
        published.force_complete_stale = AsyncMock(side_effect=ContentionError(5))
        sweeper = CrowdsourcedSweeper(published)

        await sweeper(await published.load_game())

        assert "Crowdsourced sweep failed" in caplog.text
