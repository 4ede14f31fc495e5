from dataclasses import dataclass
from enum import Enum


class CardStatus(str, Enum):
    """Lifecycle of a single card within one deck."""

    AVAILABLE = "available"
    SCRATCHING = "scratching"
    COMPLETED = "completed"


@dataclass(frozen=True, slots=True)
class GamePair:
    """
    One comparison row on a card.

    Attributes:
        my: Player number (1-9)
        house: House number (1-9), never equal to my
        prize: Amount printed on the row (a decoy when the row loses)
        is_win: True iff my > house
    """

    my: int
    house: int
    prize: int
    is_win: bool


@dataclass(slots=True)
class Card:
    """
    A claimable scratch card with a result fixed at generation time.

    Attributes:
        id: Grid position label (1..total_cards)
        is_win: True iff total_prize_amount > 0
        games: Exactly two comparison rows
        bonus_prize: Amount in the bonus slot (0 unless it wins)
        is_bonus_win: Whether the bonus slot carries part of the prize
        total_prize_amount: Sum of winning rows plus winning bonus
        status: State machine field
        progress: Scratch percentage, meaningful while scratching
        locked_by: Identity holding the card while scratching
        locked_at: Claim timestamp in epoch milliseconds
        is_played: Legacy mirror of status == completed
        is_revealed: Result has been shown to the holder
    """

    id: int
    is_win: bool
    games: list[GamePair]
    bonus_prize: int
    is_bonus_win: bool
    total_prize_amount: int
    status: CardStatus = CardStatus.AVAILABLE
    progress: float = 0
    locked_by: str | None = None
    locked_at: int | None = None
    is_played: bool = False
    is_revealed: bool = False

    @property
    def is_locked(self) -> bool:
        return self.status == CardStatus.SCRATCHING

    def winning_total(self) -> int:
        """Sum of the amounts on every winning slot."""
        rows = sum(game.prize for game in self.games if game.is_win)
        return rows + (self.bonus_prize if self.is_bonus_win else 0)


@dataclass
class CardStats:
    """Counts of cards per status, for summaries and logs."""

    available: int = 0
    scratching: int = 0
    completed: int = 0

    @classmethod
    def from_deck(cls, deck: list[Card]) -> "CardStats":
        stats = cls()
        for card in deck:
            if card.status == CardStatus.AVAILABLE:
                stats.available += 1
            elif card.status == CardStatus.SCRATCHING:
                stats.scratching += 1
            else:
                stats.completed += 1
        return stats
