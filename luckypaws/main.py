import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from importlib.metadata import version as pkg_version

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from luckypaws.api import (
    events_router,
    game_router,
    health_router,
    snapshots_router,
)
from luckypaws.config import settings
from luckypaws.db.database import async_session_factory, init_db
from luckypaws.jobs.cleanup_stale_locks import schedule_cleanup
from luckypaws.services.game_repository import GameRepository

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Create tables, build the repository and start the stale-lock sweep."""
    await init_db()
    repository = GameRepository(async_session_factory, settings)
    app.state.repository = repository

    scheduler = AsyncIOScheduler()
    if settings.scheduler_enabled:
        schedule_cleanup(scheduler, repository)
        scheduler.start()
        logger.info("Stale-lock sweep scheduled every %ds", settings.sweep_interval_seconds)
    try:
        yield
    finally:
        if scheduler.running:
            scheduler.shutdown()


app = FastAPI(
    title=settings.app_name,
    version=pkg_version("luckypaws"),
    lifespan=lifespan,
)

app.include_router(events_router)
app.include_router(game_router)
app.include_router(health_router)
app.include_router(snapshots_router)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)
