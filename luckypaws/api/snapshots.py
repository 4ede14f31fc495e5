"""
Snapshot API endpoints.

Snapshots are immutable copies of a config and deck, shared by id.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from luckypaws.api.deps import get_repository, http_error
from luckypaws.api.schemas import CardModel, GameConfigModel, GameStateResponse
from luckypaws.models.failure import SnapshotNotFoundError
from luckypaws.services.game_repository import GameRepository

router = APIRouter(prefix="/snapshots", tags=["snapshots"])

Repository = Annotated[GameRepository, Depends(get_repository)]


class SnapshotCreateRequest(BaseModel):
    """Request model for saving a snapshot."""

    config: GameConfigModel
    deck: list[CardModel] = Field(..., min_length=1)


class SnapshotCreateResponse(BaseModel):
    snapshot_id: str = Field(..., description="Id to share; never changes")


@router.post("", response_model=SnapshotCreateResponse, status_code=status.HTTP_201_CREATED)
async def save_snapshot(
    body: SnapshotCreateRequest, repository: Repository
) -> SnapshotCreateResponse:
    """Store an immutable copy of a config and deck."""
    snapshot_id = await repository.save_snapshot(
        body.config.to_domain(),
        [card.to_domain() for card in body.deck],
    )
    return SnapshotCreateResponse(snapshot_id=snapshot_id)


@router.get("/{snapshot_id}", response_model=GameStateResponse)
async def load_snapshot(snapshot_id: str, repository: Repository) -> GameStateResponse:
    """
    Get a snapshot by id.

    Returns 404 if no snapshot exists with this id.
    """
    state = await repository.load_snapshot(snapshot_id)
    if state is None:
        raise http_error(SnapshotNotFoundError(snapshot_id))
    return GameStateResponse.from_domain(state)
