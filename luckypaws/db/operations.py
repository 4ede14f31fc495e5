"""
Database operations for the game document and snapshots.

The canonical deck is only ever modified through `run_deck_transaction`,
an atomic read-modify-write over the whole deck. Concurrent writers are
serialised by the version column on GameDB; a writer that lost the race
gets StaleDataError, is rolled back and retried on a fresh read.
"""

import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from luckypaws.models.card import Card
from luckypaws.models.db import GameDB, SnapshotDB
from luckypaws.models.failure import ContentionError, GameNotFoundError
from luckypaws.models.game import GameConfig, GameState
from luckypaws.parsers.game_document import (
    CARD_SCHEMA_VERSION,
    config_from_dict,
    config_to_dict,
    deck_from_records,
    deck_to_records,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 5

T = TypeVar("T")


# --- Game Document Operations ---


async def get_game(session: AsyncSession, game_id: str) -> GameDB | None:
    """
    Get the canonical game document.

    Returns None if nothing has been published under this id.
    """
    result = await session.execute(select(GameDB).where(GameDB.game_id == game_id))
    return result.scalar_one_or_none()


async def replace_game(
    session: AsyncSession,
    game_id: str,
    config: GameConfig,
    deck: list[Card],
) -> GameDB:
    """
    Replace the whole game document with a new config and deck.

    Creates the document on first publish. Replacing also discards every
    lock, since the new deck is written as-is.
    """
    game = await get_game(session, game_id)
    if game is None:
        game = GameDB(game_id=game_id)
        session.add(game)

    game.config = config_to_dict(config)
    game.deck = deck_to_records(deck)
    game.card_schema = CARD_SCHEMA_VERSION
    await session.flush()
    return game


def game_to_state(game: GameDB) -> GameState:
    """Convert a database game document to a domain model."""
    return GameState(
        config=config_from_dict(game.config),
        deck=deck_from_records(game.deck, game.card_schema),
        updated_at=game.updated_at,
        version=game.version,
    )


@dataclass
class TransactionResult(Generic[T]):
    """
    Outcome of one deck transaction.

    Attributes:
        value: Whatever the mutator returned
        state: The committed document, or None if nothing changed
    """

    value: T
    state: GameState | None = None

    @property
    def changed(self) -> bool:
        return self.state is not None


async def run_deck_transaction(
    session_factory: async_sessionmaker[AsyncSession],
    game_id: str,
    mutate: Callable[[list[Card]], T],
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> TransactionResult[T]:
    """
    Atomically read, mutate and conditionally write back the deck.

    `mutate` receives a freshly loaded deck on every attempt and may raise
    to abort; an aborted attempt writes nothing. The deck is written only
    if the mutator changed it.

    Raises:
        GameNotFoundError: If the game document does not exist
        ContentionError: If every attempt lost an optimistic race
    """
    for attempt in range(1, max_attempts + 1):
        async with session_factory() as session:
            game = await get_game(session, game_id)
            if game is None:
                raise GameNotFoundError(game_id)

            deck = deck_from_records(game.deck, game.card_schema)
            before = deck_to_records(deck)
            value = mutate(deck)
            after = deck_to_records(deck)

            if after == before:
                return TransactionResult(value=value)

            game.deck = after
            game.card_schema = CARD_SCHEMA_VERSION
            try:
                await session.commit()
            except StaleDataError:
                await session.rollback()
                logger.warning(
                    "Deck transaction on %s conflicted (attempt %d/%d)",
                    game_id,
                    attempt,
                    max_attempts,
                )
                continue

            return TransactionResult(value=value, state=game_to_state(game))

    raise ContentionError(max_attempts)


# --- Snapshot Operations ---


async def create_snapshot(
    session: AsyncSession, config: GameConfig, deck: list[Card]
) -> SnapshotDB:
    """
    Store an immutable copy of a config and deck.

    The snapshot id is a generated hex string suitable for share links.
    """
    snapshot = SnapshotDB(
        snapshot_id=uuid.uuid4().hex,
        config=config_to_dict(config),
        deck=deck_to_records(deck),
        card_schema=CARD_SCHEMA_VERSION,
    )
    session.add(snapshot)
    await session.flush()
    return snapshot


async def get_snapshot(session: AsyncSession, snapshot_id: str) -> SnapshotDB | None:
    """Get a snapshot by id. Returns None if not found."""
    result = await session.execute(select(SnapshotDB).where(SnapshotDB.snapshot_id == snapshot_id))
    return result.scalar_one_or_none()


def snapshot_to_state(snapshot: SnapshotDB) -> GameState:
    """Convert a stored snapshot to a domain model."""
    return GameState(
        config=config_from_dict(snapshot.config),
        deck=deck_from_records(snapshot.deck, snapshot.card_schema),
        updated_at=snapshot.created_at,
    )
