from luckypaws.parsers.game_document import (
    CARD_SCHEMA_VERSION,
    card_from_dict,
    card_to_dict,
    config_from_dict,
    config_to_dict,
    migrate_card,
)

__all__ = [
    "CARD_SCHEMA_VERSION",
    "card_from_dict",
    "card_to_dict",
    "config_from_dict",
    "config_to_dict",
    "migrate_card",
]
