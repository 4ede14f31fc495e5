"""
Deck generation.

Builds a shuffled deck whose win/loss distribution matches the configured
prize tiers exactly. Pure: the only state is the random source, which can
be injected for reproducible decks.

INVARIANTS:
- len(deck) == config.total_cards
- The multiset of nonzero total_prize_amount values equals the tiers
- Every row has my != house, and my > house iff the row wins
- total_prize_amount equals the sum of winning slots, which equals the tier amount
"""

import math
import random

from luckypaws.config import DECOY_PRIZES, MIN_SPLIT_PRIZE
from luckypaws.models.card import Card, CardStatus, GamePair
from luckypaws.models.failure import DeckConfigError
from luckypaws.models.game import GameConfig

# Slots 0 and 1 are the comparison rows, slot 2 is the bonus area
ROW_COUNT = 2
SLOT_COUNT = 3
BONUS_SLOT = 2


def validate_config(config: GameConfig) -> None:
    """
    Check that a config can produce a deck.

    Raises:
        DeckConfigError: On non-positive deck size, negative tier values,
            or tiers that need more cards than the deck holds
    """
    if config.total_cards <= 0:
        raise DeckConfigError(f"total_cards must be positive, got {config.total_cards}")
    for tier in config.tiers:
        if tier.count < 0 or tier.amount < 0:
            raise DeckConfigError(f"Tier values must be non-negative: {tier}")
    allocated = config.winning_card_count()
    if allocated > config.total_cards:
        raise DeckConfigError(
            f"Tiers allocate {allocated} cards but the deck holds {config.total_cards}"
        )


def decoy_prize(target_amount: int, rng: random.Random) -> int:
    """A plausible prize for a losing row that never equals the real target."""
    choices = [amount for amount in DECOY_PRIZES if amount != target_amount]
    return rng.choice(choices)


def draw_pair(is_win: bool, rng: random.Random) -> tuple[int, int]:
    """
    Draw (my, house) from 1-9 with a strict inequality in the given direction.

    Draws never happen.
    """
    low = rng.randint(1, 8)
    high = rng.randint(low + 1, 9)
    return (high, low) if is_win else (low, high)


def _distribute_prize(amount: int, rng: random.Random) -> dict[int, int]:
    """Map slot index to the part of `amount` it carries."""
    if amount >= MIN_SPLIT_PRIZE and rng.random() > 0.5:
        first, second = rng.sample(range(SLOT_COUNT), 2)
        part1 = math.ceil(amount / 2)
        return {first: part1, second: amount - part1}
    return {rng.randrange(SLOT_COUNT): amount}


def create_card(card_id: int, prize_amount: int, rng: random.Random) -> Card:
    """
    Create one card carrying `prize_amount` in total (0 for a losing card).

    Split parts are ceil(amount / 2) and the remainder, so they always sum
    to the tier amount exactly.
    """
    spots = _distribute_prize(prize_amount, rng) if prize_amount > 0 else {}

    games: list[GamePair] = []
    for row in range(ROW_COUNT):
        row_wins = row in spots
        prize = spots[row] if row_wins else decoy_prize(prize_amount, rng)
        my, house = draw_pair(row_wins, rng)
        games.append(GamePair(my=my, house=house, prize=prize, is_win=row_wins))

    is_bonus_win = BONUS_SLOT in spots
    bonus_prize = spots[BONUS_SLOT] if is_bonus_win else 0

    card = Card(
        id=card_id,
        is_win=False,
        games=games,
        bonus_prize=bonus_prize,
        is_bonus_win=is_bonus_win,
        total_prize_amount=0,
        status=CardStatus.AVAILABLE,
    )
    card.total_prize_amount = card.winning_total()
    card.is_win = card.total_prize_amount > 0
    return card


def shuffle_deck(deck: list[Card], rng: random.Random) -> None:
    """Fisher-Yates shuffle in place."""
    for i in range(len(deck) - 1, 0, -1):
        j = rng.randint(0, i)
        deck[i], deck[j] = deck[j], deck[i]


def generate_deck(config: GameConfig, rng: random.Random | None = None) -> list[Card]:
    """
    Generate a shuffled deck for a prize configuration.

    Args:
        config: Prize tiers and deck size
        rng: Random source; a fresh unseeded one when omitted

    Returns:
        Exactly config.total_cards cards, all available, with ids 1..N
        assigned after the shuffle so an id is a grid position.

    Raises:
        DeckConfigError: If the config is invalid
    """
    validate_config(config)
    rng = rng or random.Random()

    deck: list[Card] = []
    for tier in config.tiers:
        for _ in range(tier.count):
            deck.append(create_card(len(deck) + 1, tier.amount, rng))

    while len(deck) < config.total_cards:
        deck.append(create_card(len(deck) + 1, 0, rng))

    shuffle_deck(deck, rng)
    for index, card in enumerate(deck):
        card.id = index + 1

    return deck
