"""
Tests for GameRepository.

Scenarios run against a file-backed SQLite database so that concurrent
callers really do race on separate connections.
"""

import asyncio
import random

import pytest

from luckypaws.models.card import CardStatus
from luckypaws.models.failure import (
    CardNotFoundError,
    CardOwnershipError,
    DeckConfigError,
    FailureKind,
    GameNotFoundError,
    IdentityRequiredError,
)
from luckypaws.models.game import GameConfig, GameState, PrizeTier
from luckypaws.services.deck_generator import generate_deck
from luckypaws.services.game_repository import GameRepository, require_identity


class TestPublish:
    async def test_nothing_published(self, repository: GameRepository) -> None:
        assert await repository.load_game() is None

    async def test_publish_config(self, repository: GameRepository, small_config) -> None:
        state = await repository.publish_config(small_config, random.Random(1))

        assert len(state.deck) == 4
        assert state.version == 1
        assert sorted(card.total_prize_amount for card in state.deck) == [0, 0, 0, 100]

        loaded = await repository.load_game()
        assert loaded.deck == state.deck
        assert loaded.config.win_message == "Winner!"

    async def test_republish_replaces_deck(self, published: GameRepository) -> None:
        """A new publish drops every lock on the old deck."""
        await published.claim_card(1, "A")

        bigger = GameConfig(tiers=[PrizeTier(count=2, amount=50)], total_cards=10)
        state = await published.publish_config(bigger, random.Random(2))

        assert len(state.deck) == 10
        assert state.version == 3
        assert all(card.status == CardStatus.AVAILABLE for card in state.deck)

    async def test_invalid_config_rejected(self, repository: GameRepository) -> None:
        config = GameConfig(tiers=[PrizeTier(count=10, amount=5)], total_cards=3)

        with pytest.raises(DeckConfigError):
            await repository.publish_config(config)

        assert await repository.load_game() is None

    async def test_publish_deck_as_given(self, repository: GameRepository, small_config) -> None:
        deck = generate_deck(small_config, random.Random(9))

        state = await repository.publish_deck(small_config, deck)

        assert state.deck == deck


class TestClaim:
    async def test_second_identity_rejected(self, published: GameRepository) -> None:
        """A claims card 1; B's claim of the same card fails."""
        assert await published.claim_card(1, "A") is True
        assert await published.claim_card(1, "B") is False

        card = (await published.load_game()).get_card(1)
        assert card.status == CardStatus.SCRATCHING
        assert card.locked_by == "A"

    async def test_claim_records_clock(self, published: GameRepository, clock) -> None:
        await published.claim_card(2, "A")

        card = (await published.load_game()).get_card(2)
        assert card.locked_at == clock.now

    async def test_one_active_card(self, published: GameRepository) -> None:
        await published.claim_card(1, "A")
        await published.update_progress(1, "A", 50)

        assert await published.claim_card(2, "A") is False

        state = await published.load_game()
        assert state.get_card(1).status == CardStatus.SCRATCHING
        assert state.get_card(2).status == CardStatus.AVAILABLE

    async def test_nearly_finished_card_auto_completes(self, published: GameRepository) -> None:
        """A scratches card 1 to 95% then claims card 2."""
        await published.claim_card(1, "A")
        await published.update_progress(1, "A", 95)

        assert await published.claim_card(2, "A") is True

        state = await published.load_game()
        assert state.get_card(1).status == CardStatus.COMPLETED
        assert state.get_card(1).locked_by is None
        assert state.get_card(2).locked_by == "A"

    async def test_unknown_card(self, published: GameRepository) -> None:
        with pytest.raises(CardNotFoundError):
            await published.claim_card(99, "A")

    async def test_no_game(self, repository: GameRepository) -> None:
        with pytest.raises(GameNotFoundError):
            await repository.claim_card(1, "A")


class TestConcurrency:
    async def test_simultaneous_claims_have_one_winner(self, published: GameRepository) -> None:
        results = await asyncio.gather(
            published.claim_card(1, "A"),
            published.claim_card(1, "B"),
        )

        assert sorted(results) == [False, True]
        winner = "A" if results[0] else "B"
        assert (await published.load_game()).get_card(1).locked_by == winner

    async def test_simultaneous_claims_on_different_cards(
        self, published: GameRepository
    ) -> None:
        """Every writer eventually lands; no update is lost."""
        results = await asyncio.gather(
            *(published.claim_card(card_id, f"player-{card_id}") for card_id in range(1, 5))
        )

        assert results == [True, True, True, True]
        state = await published.load_game()
        assert [card.locked_by for card in state.deck] == [
            "player-1",
            "player-2",
            "player-3",
            "player-4",
        ]


class TestProgressAndComplete:
    async def test_progress_by_holder(self, published: GameRepository) -> None:
        await published.claim_card(1, "A")

        await published.update_progress(1, "A", 140)

        assert (await published.load_game()).get_card(1).progress == 100

    async def test_progress_by_other_rejected(self, published: GameRepository) -> None:
        await published.claim_card(1, "A")

        with pytest.raises(CardOwnershipError) as exc_info:
            await published.update_progress(1, "B", 50)

        assert exc_info.value.status_code == 409
        assert (await published.load_game()).get_card(1).progress == 0

    async def test_complete(self, published: GameRepository) -> None:
        await published.claim_card(1, "A")

        await published.complete_card(1, "A")

        card = (await published.load_game()).get_card(1)
        assert card.status == CardStatus.COMPLETED
        assert card.is_played is True
        assert card.progress == 100

    async def test_complete_twice(self, published: GameRepository) -> None:
        await published.claim_card(1, "A")
        await published.complete_card(1, "A")
        version = (await published.load_game()).version

        await published.complete_card(1, "A")

        assert (await published.load_game()).version == version

    async def test_complete_by_other_rejected(self, published: GameRepository) -> None:
        await published.claim_card(1, "A")

        with pytest.raises(CardOwnershipError):
            await published.complete_card(1, "B")


class TestIdentity:
    @pytest.mark.parametrize("identity", [None, "", "   "])
    def test_require_identity(self, identity) -> None:
        with pytest.raises(IdentityRequiredError) as exc_info:
            require_identity(identity)

        assert exc_info.value.kind == FailureKind.IDENTITY_REQUIRED

    async def test_blank_identity_checked_before_store(self, repository: GameRepository) -> None:
        """No game is published, yet the identity error wins."""
        with pytest.raises(IdentityRequiredError):
            await repository.claim_card(1, "")
        with pytest.raises(IdentityRequiredError):
            await repository.update_progress(1, " ", 10)
        with pytest.raises(IdentityRequiredError):
            await repository.complete_card(1, "")


class TestStaleLocks:
    async def test_force_complete_stale(self, published: GameRepository, clock) -> None:
        """A claims card 3 and vanishes; 50 seconds later it is reclaimed."""
        await published.claim_card(3, "A")
        clock.advance(50)

        completed = await published.force_complete_stale([3])

        assert completed == [3]
        card = (await published.load_game()).get_card(3)
        assert card.status == CardStatus.COMPLETED
        assert card.locked_by is None

    async def test_fresh_lock_not_reclaimed(self, published: GameRepository, clock) -> None:
        """Reports from a client with a fast clock are re-checked."""
        await published.claim_card(3, "A")
        clock.advance(10)

        assert await published.force_complete_stale([3]) == []
        assert (await published.load_game()).get_card(3).status == CardStatus.SCRATCHING

    async def test_zero_window(self, published: GameRepository, clock) -> None:
        await published.claim_card(3, "A")
        clock.advance(1)

        assert await published.force_complete_stale([3], stale_after_seconds=0) == [3]

    async def test_empty_report(self, published: GameRepository) -> None:
        assert await published.force_complete_stale([]) == []

    async def test_sweep_stale_locks(self, published: GameRepository, clock) -> None:
        await published.claim_card(1, "A")
        clock.advance(30)
        await published.claim_card(2, "B")
        clock.advance(35)

        completed = await published.sweep_stale_locks(60)

        assert completed == [1]
        state = await published.load_game()
        assert state.get_card(1).status == CardStatus.COMPLETED
        assert state.get_card(2).status == CardStatus.SCRATCHING

    async def test_reset_all_locks(self, published: GameRepository) -> None:
        await published.claim_card(1, "A")
        await published.claim_card(2, "B")

        released = await published.reset_all_locks()

        assert released == [1, 2]
        state = await published.load_game()
        assert all(card.status == CardStatus.AVAILABLE for card in state.deck)


class TestSubscriptions:
    async def test_subscribe_delivers_current_state(self, published: GameRepository) -> None:
        received: list[GameState | None] = []

        unsubscribe = await published.subscribe(received.append)

        assert len(received) == 1
        assert received[0].version == 1
        unsubscribe()

    async def test_subscribe_before_publish(
        self, repository: GameRepository, small_config
    ) -> None:
        received: list[GameState | None] = []

        await repository.subscribe(received.append)
        await repository.publish_config(small_config, random.Random(1))

        assert received[0] is None
        assert received[1].version == 1

    async def test_committed_changes_are_published(self, published: GameRepository) -> None:
        received: list[GameState | None] = []
        await published.subscribe(received.append)

        await published.claim_card(1, "A")
        await published.claim_card(1, "B")  # rejected, nothing published
        await published.update_progress(1, "A", 40)

        assert [state.version for state in received] == [1, 2, 3]
        assert received[-1].get_card(1).progress == 40

    async def test_unsubscribe_stops_delivery(self, published: GameRepository) -> None:
        received: list[GameState | None] = []
        unsubscribe = await published.subscribe(received.append)

        unsubscribe()
        await published.claim_card(1, "A")

        assert len(received) == 1


class TestSnapshots:
    async def test_save_and_load(self, repository: GameRepository, small_config) -> None:
        deck = generate_deck(small_config, random.Random(4))

        snapshot_id = await repository.save_snapshot(small_config, deck)
        state = await repository.load_snapshot(snapshot_id)

        assert state.deck == deck
        assert state.config == small_config

    async def test_snapshot_is_independent_of_game(
        self, published: GameRepository, small_config
    ) -> None:
        game = await published.load_game()
        snapshot_id = await published.save_snapshot(game.config, game.deck)

        await published.claim_card(1, "A")

        snapshot = await published.load_snapshot(snapshot_id)
        assert snapshot.get_card(1).status == CardStatus.AVAILABLE

    async def test_unknown_snapshot(self, repository: GameRepository) -> None:
        assert await repository.load_snapshot("nope") is None
