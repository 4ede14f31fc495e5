from luckypaws.db.database import get_session, init_db
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

__all__ = [
    "TransactionResult",
    "create_snapshot",
    "game_to_state",
    "get_game",
    "get_session",
    "get_snapshot",
    "init_db",
    "replace_game",
    "run_deck_transaction",
    "snapshot_to_state",
]
