from luckypaws.api.events import router as events_router
from luckypaws.api.game import router as game_router
from luckypaws.api.health import router as health_router
from luckypaws.api.snapshots import router as snapshots_router

__all__ = [
    "events_router",
    "game_router",
    "health_router",
    "snapshots_router",
]
