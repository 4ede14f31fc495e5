"""Request and response models shared by the game and snapshot endpoints."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from luckypaws.models.card import Card, CardStatus, GamePair
from luckypaws.models.game import GameConfig, GameState, PrizeTier


class PrizeTierModel(BaseModel):
    """`count` cards each carrying a total prize of `amount`."""

    count: int = Field(..., ge=0)
    amount: int = Field(..., ge=0)


class GameConfigModel(BaseModel):
    """Prize configuration for a deck."""

    tiers: list[PrizeTierModel] = Field(
        default_factory=list,
        examples=[[{"count": 1, "amount": 5000}, {"count": 5, "amount": 500}]],
    )
    total_cards: int = Field(default=100, gt=0)
    win_message: str = ""
    lose_message: str = ""
    presentation: dict[str, Any] = Field(
        default_factory=dict,
        description="Cover image, sounds and music settings; stored verbatim",
    )

    def to_domain(self) -> GameConfig:
        return GameConfig(
            tiers=[PrizeTier(count=t.count, amount=t.amount) for t in self.tiers],
            total_cards=self.total_cards,
            win_message=self.win_message,
            lose_message=self.lose_message,
            presentation=dict(self.presentation),
        )

    @classmethod
    def from_domain(cls, config: GameConfig) -> "GameConfigModel":
        return cls(
            tiers=[PrizeTierModel(count=t.count, amount=t.amount) for t in config.tiers],
            total_cards=config.total_cards,
            win_message=config.win_message,
            lose_message=config.lose_message,
            presentation=config.presentation,
        )


class GamePairModel(BaseModel):
    my: int = Field(..., ge=1, le=9)
    house: int = Field(..., ge=1, le=9)
    prize: int
    is_win: bool


class CardModel(BaseModel):
    """A card as seen by clients."""

    id: int = Field(..., ge=1)
    is_win: bool
    games: list[GamePairModel] = Field(..., min_length=2, max_length=2)
    bonus_prize: int = 0
    is_bonus_win: bool = False
    total_prize_amount: int = 0
    status: CardStatus = CardStatus.AVAILABLE
    progress: float = Field(default=0, ge=0, le=100)
    locked_by: str | None = None
    locked_at: int | None = None
    is_played: bool = False
    is_revealed: bool = False

    def to_domain(self) -> Card:
        return Card(
            id=self.id,
            is_win=self.is_win,
            games=[
                GamePair(my=g.my, house=g.house, prize=g.prize, is_win=g.is_win)
                for g in self.games
            ],
            bonus_prize=self.bonus_prize,
            is_bonus_win=self.is_bonus_win,
            total_prize_amount=self.total_prize_amount,
            status=self.status,
            progress=self.progress,
            locked_by=self.locked_by,
            locked_at=self.locked_at,
            is_played=self.is_played,
            is_revealed=self.is_revealed,
        )

    @classmethod
    def from_domain(cls, card: Card) -> "CardModel":
        return cls(
            id=card.id,
            is_win=card.is_win,
            games=[
                GamePairModel(my=g.my, house=g.house, prize=g.prize, is_win=g.is_win)
                for g in card.games
            ],
            bonus_prize=card.bonus_prize,
            is_bonus_win=card.is_bonus_win,
            total_prize_amount=card.total_prize_amount,
            status=card.status,
            progress=card.progress,
            locked_by=card.locked_by,
            locked_at=card.locked_at,
            is_played=card.is_played,
            is_revealed=card.is_revealed,
        )


class CardStatsModel(BaseModel):
    available: int = 0
    scratching: int = 0
    completed: int = 0


class GameStateResponse(BaseModel):
    """A config with its deck: the live game or a snapshot."""

    config: GameConfigModel
    deck: list[CardModel]
    stats: CardStatsModel
    updated_at: datetime | None = None
    version: int | None = None

    @classmethod
    def from_domain(cls, state: GameState) -> "GameStateResponse":
        stats = state.stats()
        return cls(
            config=GameConfigModel.from_domain(state.config),
            deck=[CardModel.from_domain(card) for card in state.deck],
            stats=CardStatsModel(
                available=stats.available,
                scratching=stats.scratching,
                completed=stats.completed,
            ),
            updated_at=state.updated_at,
            version=state.version,
        )
