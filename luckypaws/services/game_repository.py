"""
Game repository: the single owner of the canonical game document.

Constructed once per process and passed to whatever needs it (FastAPI
dependencies, the scheduled sweep). All card operations go through the
named transitions in services.card_state, each executed as one optimistic
transaction over the whole deck. There is no generic "patch a card"
operation.

Every committed change is published on the change feed. Transactions that
change nothing (rejected claims, empty sweeps) are not published.
"""

import logging
import random
import time
from collections.abc import Callable
from typing import TypeVar

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from luckypaws.config import Settings
from luckypaws.db.operations import (
    TransactionResult,
    create_snapshot,
    game_to_state,
    get_game,
    get_snapshot,
    replace_game,
    run_deck_transaction,
    snapshot_to_state,
)
from luckypaws.models.card import Card
from luckypaws.models.failure import ContentionError, IdentityRequiredError
from luckypaws.models.game import GameConfig, GameState
from luckypaws.services import card_state
from luckypaws.services.change_feed import (
    ChangeCallback,
    GameChangeFeed,
    Unsubscribe,
    VersionGuard,
)
from luckypaws.services.deck_generator import generate_deck, validate_config

logger = logging.getLogger(__name__)

T = TypeVar("T")


def epoch_millis() -> int:
    """Wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def require_identity(identity: str | None) -> str:
    """
    Reject missing or blank identities before touching the store.

    Raises:
        IdentityRequiredError: If no usable identity was supplied
    """
    if identity is None or not identity.strip():
        raise IdentityRequiredError()
    return identity


class GameRepository:
    """Transactional access to one canonical game and its snapshots."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        settings: Settings,
        feed: GameChangeFeed | None = None,
        clock: Callable[[], int] = epoch_millis,
    ):
        self.session_factory = session_factory
        self.settings = settings
        self.feed = feed or GameChangeFeed()
        self.clock = clock

    @property
    def game_id(self) -> str:
        return self.settings.game_id

    async def _transact(self, mutate: Callable[[list[Card]], T]) -> TransactionResult[T]:
        result = await run_deck_transaction(
            self.session_factory,
            self.game_id,
            mutate,
            max_attempts=self.settings.transaction_max_attempts,
        )
        if result.changed:
            await self.feed.publish(result.state)
        return result

    # --- Publishing ---

    async def publish_config(
        self, config: GameConfig, rng: random.Random | None = None
    ) -> GameState:
        """Generate a fresh deck for `config` and make it the canonical game."""
        deck = generate_deck(config, rng)
        return await self.publish_deck(config, deck)

    async def publish_deck(self, config: GameConfig, deck: list[Card]) -> GameState:
        """
        Replace the canonical game with `config` and `deck`.

        This is a full document replacement: any card in progress on the
        previous deck is dropped along with it.

        Raises:
            DeckConfigError: If the config is invalid
            ContentionError: If every attempt conflicted with another writer
        """
        validate_config(config)
        attempts = self.settings.transaction_max_attempts
        for attempt in range(1, attempts + 1):
            async with self.session_factory() as session:
                game = await replace_game(session, self.game_id, config, deck)
                try:
                    await session.commit()
                except (StaleDataError, IntegrityError):
                    await session.rollback()
                    logger.warning(
                        "Publish of %s conflicted (attempt %d/%d)", self.game_id, attempt, attempts
                    )
                    continue
                state = game_to_state(game)

            logger.info(
                "Published game %s: %d cards, %d winning",
                self.game_id,
                len(state.deck),
                sum(1 for card in state.deck if card.is_win),
            )
            await self.feed.publish(state)
            return state

        raise ContentionError(attempts)

    async def load_game(self) -> GameState | None:
        """Read the canonical game. Returns None if nothing is published."""
        async with self.session_factory() as session:
            game = await get_game(session, self.game_id)
            return game_to_state(game) if game is not None else None

    # --- Player Operations ---

    async def claim_card(self, card_id: int, identity: str) -> bool:
        """
        Try to lock `card_id` for `identity`.

        Returns:
            True on success. False is a normal outcome (card taken, or the
            identity still holds an unfinished card): pick another card.

        Raises:
            IdentityRequiredError: If identity is missing
            GameNotFoundError / CardNotFoundError: If the game or card does not exist
            ContentionError: If the transaction kept conflicting
        """
        identity = require_identity(identity)
        now = self.clock()
        result = await self._transact(lambda deck: card_state.claim(deck, card_id, identity, now))
        if result.value:
            logger.info("Card %d claimed by %s", card_id, identity)
        return result.value

    async def update_progress(self, card_id: int, identity: str, percent: float) -> None:
        """
        Record scratch progress on a card held by `identity`.

        Raises:
            CardOwnershipError: If the card is not scratching for `identity`
        """
        identity = require_identity(identity)
        await self._transact(
            lambda deck: card_state.update_progress(deck, card_id, identity, percent)
        )

    async def complete_card(self, card_id: int, identity: str) -> None:
        """
        Finish a card held by `identity`. Repeating the call is harmless.

        Raises:
            CardOwnershipError: If the card is held by someone else or still available
        """
        identity = require_identity(identity)
        result = await self._transact(lambda deck: card_state.complete(deck, card_id, identity))
        if result.value:
            logger.info("Card %d completed by %s", card_id, identity)

    # --- Privileged / Automatic Operations ---

    async def force_complete_stale(
        self, card_ids: list[int], stale_after_seconds: int | None = None
    ) -> list[int]:
        """
        Complete the given cards if they are still stale.

        Staleness is re-checked inside the transaction, so ids reported by a
        client with an outdated or fast clock are ignored when the card is
        not actually stale.

        Returns:
            Ids of the cards completed by this call.
        """
        if not card_ids:
            return []
        window = stale_after_seconds
        if window is None:
            window = self.settings.client_stale_lock_seconds
        now = self.clock()
        result = await self._transact(
            lambda deck: card_state.force_complete_stale(deck, card_ids, now, window * 1000)
        )
        return result.value

    async def sweep_stale_locks(self, stale_after_seconds: int) -> list[int]:
        """Scan the whole deck and complete every stale card in one transaction."""
        now = self.clock()
        window_ms = stale_after_seconds * 1000

        def sweep(deck: list[Card]) -> list[int]:
            stale = card_state.find_stale_card_ids(deck, now, window_ms)
            return card_state.force_complete_stale(deck, stale, now, window_ms)

        result = await self._transact(sweep)
        return result.value

    async def reset_all_locks(self) -> list[int]:
        """Return every scratching card to the pool. Deadlock recovery only."""
        result = await self._transact(card_state.reset_all_locks)
        if result.value:
            logger.warning("Reset %d locks on %s", len(result.value), self.game_id)
        return result.value

    # --- Subscriptions ---

    async def subscribe(self, on_change: ChangeCallback) -> Unsubscribe:
        """
        Receive the current game now and every committed change after.

        A change committed while the current game is being loaded may reach
        `on_change` first; the older loaded state is then dropped.

        Returns:
            A function that stops further notifications.
        """
        guard = VersionGuard(on_change)
        unsubscribe = self.feed.register(guard)
        await guard(await self.load_game())
        return unsubscribe

    # --- Snapshots ---

    async def save_snapshot(self, config: GameConfig, deck: list[Card]) -> str:
        """Store an immutable copy of `config` and `deck`; returns its id."""
        async with self.session_factory() as session:
            snapshot = await create_snapshot(session, config, deck)
            await session.commit()
            logger.info("Saved snapshot %s (%d cards)", snapshot.snapshot_id, len(deck))
            return snapshot.snapshot_id

    async def load_snapshot(self, snapshot_id: str) -> GameState | None:
        """Read a snapshot. Returns None if the id is unknown."""
        async with self.session_factory() as session:
            snapshot = await get_snapshot(session, snapshot_id)
            return snapshot_to_state(snapshot) if snapshot is not None else None
