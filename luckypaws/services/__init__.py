"""
LuckyPaws services.

Deck generation, the card state machine, and the repository that runs
card transitions as optimistic transactions on the shared game document.
"""

from luckypaws.services.change_feed import GameChangeFeed
from luckypaws.services.deck_generator import generate_deck, validate_config
from luckypaws.services.game_repository import GameRepository, require_identity
from luckypaws.services.reclaimer import CrowdsourcedSweeper

__all__ = [
    "CrowdsourcedSweeper",
    "GameChangeFeed",
    "GameRepository",
    "generate_deck",
    "require_identity",
    "validate_config",
]
