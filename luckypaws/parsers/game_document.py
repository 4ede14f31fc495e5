"""
Serialisation between stored game documents and domain models.

Stored cards are plain JSON dicts. Older documents were written by the
legacy web client with camelCase keys and no `status` field; the only
signal of a finished card was `isPlayed`. `migrate_card` upgrades such
records to the current shape, and every load path goes through it, so
consumers never see a legacy card.

Schema versions:
    1: camelCase keys, optional status/progress
    2: snake_case keys, status always present
"""

import logging
from typing import Any

from luckypaws.models.card import Card, CardStatus, GamePair
from luckypaws.models.failure import DocumentSchemaError
from luckypaws.models.game import GameConfig, PrizeTier

logger = logging.getLogger(__name__)

CARD_SCHEMA_VERSION = 2

LEGACY_CARD_KEYS = {
    "isWin": "is_win",
    "bonusPrize": "bonus_prize",
    "isBonusWin": "is_bonus_win",
    "totalPrizeAmount": "total_prize_amount",
    "isPlayed": "is_played",
    "isRevealed": "is_revealed",
    "lockedBy": "locked_by",
    "lockedAt": "locked_at",
}

LEGACY_CONFIG_KEYS = {
    "totalCards": "total_cards",
    "winMessage": "win_message",
    "loseMessage": "lose_message",
}

# Presentation-only settings; stored verbatim, never interpreted
LEGACY_PRESENTATION_KEYS = {
    "coverImage": "cover_image",
    "scratchSound": "scratch_sound",
    "bgMusic": "bg_music",
    "bgMusicLoopStart": "bg_music_loop_start",
    "bgMusicLoopEnd": "bg_music_loop_end",
    "bgMusicEnabled": "bg_music_enabled",
}


def _rename_keys(raw: dict[str, Any], mapping: dict[str, str]) -> dict[str, Any]:
    return {mapping.get(key, key): value for key, value in raw.items()}


def migrate_card(raw: dict[str, Any], schema: int = CARD_SCHEMA_VERSION) -> dict[str, Any]:
    """
    Upgrade a stored card record to the current schema.

    Derives `status` from the legacy `is_played` flag when it is missing,
    and drops lock fields from any card that is not scratching.

    Raises:
        DocumentSchemaError: If the record was written by a newer schema
    """
    if schema > CARD_SCHEMA_VERSION:
        raise DocumentSchemaError(f"Card schema {schema} is newer than {CARD_SCHEMA_VERSION}")

    card = dict(raw)
    if schema < 2:
        card = _rename_keys(card, LEGACY_CARD_KEYS)
        card["games"] = [
            _rename_keys(game, {"isWin": "is_win"}) for game in card.get("games", [])
        ]

    if not card.get("status"):
        played = bool(card.get("is_played"))
        card["status"] = CardStatus.COMPLETED.value if played else CardStatus.AVAILABLE.value
        card["progress"] = 100 if played else 0

    if card["status"] != CardStatus.SCRATCHING.value:
        card["locked_by"] = None
        card["locked_at"] = None

    card["is_played"] = card["status"] == CardStatus.COMPLETED.value
    return card


def card_from_dict(raw: dict[str, Any], schema: int = CARD_SCHEMA_VERSION) -> Card:
    """Build a Card from a stored record, migrating it first."""
    data = migrate_card(raw, schema)
    try:
        return Card(
            id=int(data["id"]),
            is_win=bool(data["is_win"]),
            games=[
                GamePair(
                    my=int(game["my"]),
                    house=int(game["house"]),
                    prize=int(game["prize"]),
                    is_win=bool(game["is_win"]),
                )
                for game in data["games"]
            ],
            bonus_prize=int(data.get("bonus_prize", 0)),
            is_bonus_win=bool(data.get("is_bonus_win", False)),
            total_prize_amount=int(data.get("total_prize_amount", 0)),
            status=CardStatus(data["status"]),
            progress=data.get("progress") or 0,
            locked_by=data.get("locked_by"),
            locked_at=data.get("locked_at"),
            is_played=data["is_played"],
            is_revealed=bool(data.get("is_revealed", False)),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise DocumentSchemaError(f"Malformed card record: {e!r}") from e


def card_to_dict(card: Card) -> dict[str, Any]:
    """Serialise a Card to its current-schema JSON record."""
    return {
        "id": card.id,
        "is_win": card.is_win,
        "games": [
            {"my": game.my, "house": game.house, "prize": game.prize, "is_win": game.is_win}
            for game in card.games
        ],
        "bonus_prize": card.bonus_prize,
        "is_bonus_win": card.is_bonus_win,
        "total_prize_amount": card.total_prize_amount,
        "status": card.status.value,
        "progress": card.progress,
        "locked_by": card.locked_by,
        "locked_at": card.locked_at,
        "is_played": card.is_played,
        "is_revealed": card.is_revealed,
    }


def deck_from_records(records: list[dict[str, Any]], schema: int) -> list[Card]:
    """Load and migrate every card of a stored deck."""
    deck = [card_from_dict(record, schema) for record in records]
    if schema < CARD_SCHEMA_VERSION and deck:
        logger.info("Migrated %d cards from schema %d", len(deck), schema)
    return deck


def deck_to_records(deck: list[Card]) -> list[dict[str, Any]]:
    return [card_to_dict(card) for card in deck]


def config_from_dict(raw: dict[str, Any]) -> GameConfig:
    """
    Build a GameConfig from a stored record.

    Accepts both legacy camelCase and current keys. Anything outside the
    core fields is kept in `presentation`.
    """
    data = _rename_keys(raw, LEGACY_CONFIG_KEYS)
    stored = dict(data.pop("presentation", None) or {})
    presentation = _rename_keys(stored, LEGACY_PRESENTATION_KEYS)
    for key in list(data):
        if key in LEGACY_PRESENTATION_KEYS or key in LEGACY_PRESENTATION_KEYS.values():
            presentation[LEGACY_PRESENTATION_KEYS.get(key, key)] = data.pop(key)

    try:
        return GameConfig(
            tiers=[
                PrizeTier(count=int(tier["count"]), amount=int(tier["amount"]))
                for tier in data.get("tiers", [])
            ],
            total_cards=int(data["total_cards"]),
            win_message=str(data.get("win_message", "")),
            lose_message=str(data.get("lose_message", "")),
            presentation=presentation,
        )
    except (KeyError, TypeError, ValueError) as e:
        raise DocumentSchemaError(f"Malformed config record: {e!r}") from e


def config_to_dict(config: GameConfig) -> dict[str, Any]:
    return {
        "tiers": [{"count": tier.count, "amount": tier.amount} for tier in config.tiers],
        "total_cards": config.total_cards,
        "win_message": config.win_message,
        "lose_message": config.lose_message,
        "presentation": dict(config.presentation),
    }
