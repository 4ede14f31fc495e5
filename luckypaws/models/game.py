from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from luckypaws.models.card import Card, CardStats


@dataclass(frozen=True, slots=True)
class PrizeTier:
    """`count` cards in the deck each carry a total prize of `amount`."""

    count: int
    amount: int


@dataclass
class GameConfig:
    """
    Prize configuration for one deck.

    Attributes:
        tiers: Winning tiers, in display order
        total_cards: Deck size; the shortfall after tiers is losing cards
        win_message: Text shown on a winning card
        lose_message: Text shown on a losing card
        presentation: Opaque presentation settings (cover image, sounds, music)
    """

    tiers: list[PrizeTier] = field(default_factory=list)
    total_cards: int = 100
    win_message: str = ""
    lose_message: str = ""
    presentation: dict[str, Any] = field(default_factory=dict)

    def winning_card_count(self) -> int:
        """Cards allocated to tiers."""
        return sum(tier.count for tier in self.tiers)


@dataclass
class GameState:
    """
    A config plus its deck, either the canonical game or a snapshot.

    `version` is the optimistic-concurrency counter of the canonical
    document; snapshots carry None.
    """

    config: GameConfig
    deck: list[Card]
    updated_at: datetime | None = None
    version: int | None = None

    def get_card(self, card_id: int) -> Card | None:
        for card in self.deck:
            if card.id == card_id:
                return card
        return None

    def stats(self) -> CardStats:
        return CardStats.from_deck(self.deck)
