from luckypaws.models.card import Card, CardStats, CardStatus, GamePair
from luckypaws.models.failure import (
    AdminRequiredError,
    CardNotFoundError,
    CardOwnershipError,
    ContentionError,
    DeckConfigError,
    DocumentSchemaError,
    FailureDetail,
    FailureKind,
    GameNotFoundError,
    IdentityRequiredError,
    KnownError,
    SnapshotNotFoundError,
)
from luckypaws.models.game import GameConfig, GameState, PrizeTier

__all__ = [
    "AdminRequiredError",
    "Card",
    "CardNotFoundError",
    "CardOwnershipError",
    "CardStats",
    "CardStatus",
    "ContentionError",
    "DeckConfigError",
    "DocumentSchemaError",
    "FailureDetail",
    "FailureKind",
    "GameConfig",
    "GameNotFoundError",
    "GamePair",
    "GameState",
    "IdentityRequiredError",
    "KnownError",
    "PrizeTier",
    "SnapshotNotFoundError",
]
