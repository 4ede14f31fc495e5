"""
Health check endpoints.

Liveness, plus a readiness probe that checks the database and reports
whether a canonical game has been published.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from luckypaws.api.deps import get_repository
from luckypaws.db.database import get_session
from luckypaws.db.operations import get_game
from luckypaws.services.game_repository import GameRepository

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    database: str | None = None
    game_published: bool | None = None


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Liveness probe. Does not check dependencies."""
    return HealthResponse(status="healthy")


@router.get(
    "/ready",
    response_model=HealthResponse,
    responses={503: {"model": HealthResponse}},
)
async def ready(
    response: Response,
    session: Annotated[AsyncSession, Depends(get_session)],
    repository: Annotated[GameRepository, Depends(get_repository)],
) -> HealthResponse:
    """
    Readiness probe.

    Returns 503 if the database is unavailable. A missing game is still
    ready: players fall back to local decks until an admin publishes.
    """
    try:
        await session.execute(text("SELECT 1"))
        game = await get_game(session, repository.game_id)
    except SQLAlchemyError:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return HealthResponse(status="not ready", database="disconnected")
    return HealthResponse(
        status="ready", database="connected", game_published=game is not None
    )
