"""
Game API endpoints.

Player operations on the canonical deck (claim, progress, complete) plus
the privileged publish / reset / sweep operations. Identity comes from the
X-Player-Id header; privileged calls need X-Admin-Token.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from luckypaws.api.deps import get_identity, get_repository, http_error, require_admin
from luckypaws.api.schemas import GameConfigModel, GameStateResponse
from luckypaws.models.failure import GameNotFoundError, KnownError
from luckypaws.services.game_repository import GameRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/game", tags=["game"])

Repository = Annotated[GameRepository, Depends(get_repository)]
Identity = Annotated[str, Depends(get_identity)]


class ClaimResponse(BaseModel):
    """Result of a claim attempt. `claimed=False` means: pick another card."""

    card_id: int
    claimed: bool


class ProgressRequest(BaseModel):
    percent: float = Field(..., description="Scratch percentage; clamped to 0-100")


class CardActionResponse(BaseModel):
    card_id: int
    ok: bool = True


class ForceCompleteRequest(BaseModel):
    card_ids: list[int] = Field(..., description="Cards observed to be stale")


class CardIdsResponse(BaseModel):
    """Ids of the cards affected by a bulk operation."""

    card_ids: list[int] = Field(default_factory=list)
    count: int = 0


def _ids_response(card_ids: list[int]) -> CardIdsResponse:
    return CardIdsResponse(card_ids=card_ids, count=len(card_ids))


@router.get("", response_model=GameStateResponse)
async def get_game(repository: Repository) -> GameStateResponse:
    """
    Get the live game.

    Returns 404 if no game has been published; clients fall back to a
    local deck.
    """
    state = await repository.load_game()
    if state is None:
        raise http_error(GameNotFoundError(repository.game_id))
    return GameStateResponse.from_domain(state)


@router.put(
    "",
    response_model=GameStateResponse,
    dependencies=[Depends(require_admin)],
)
async def publish_game(config: GameConfigModel, repository: Repository) -> GameStateResponse:
    """
    Generate a new deck from a prize configuration and publish it.

    Replaces the previous deck entirely, including any cards in progress.
    """
    try:
        state = await repository.publish_config(config.to_domain())
    except KnownError as e:
        raise http_error(e) from e
    return GameStateResponse.from_domain(state)


@router.post("/cards/{card_id}/claim", response_model=ClaimResponse)
async def claim_card(card_id: int, identity: Identity, repository: Repository) -> ClaimResponse:
    """
    Lock a card for the caller.

    A rejected claim (card taken, or caller still scratching another card
    below 90%) is a normal 200 response with `claimed=false`.
    """
    try:
        claimed = await repository.claim_card(card_id, identity)
    except KnownError as e:
        raise http_error(e) from e
    return ClaimResponse(card_id=card_id, claimed=claimed)


@router.post("/cards/{card_id}/progress", response_model=CardActionResponse)
async def update_progress(
    card_id: int,
    body: ProgressRequest,
    identity: Identity,
    repository: Repository,
) -> CardActionResponse:
    """Report scratch progress on a held card. 409 if the caller does not hold it."""
    try:
        await repository.update_progress(card_id, identity, body.percent)
    except KnownError as e:
        raise http_error(e) from e
    return CardActionResponse(card_id=card_id)


@router.post("/cards/{card_id}/complete", response_model=CardActionResponse)
async def complete_card(
    card_id: int, identity: Identity, repository: Repository
) -> CardActionResponse:
    """Finish a held card. Safe to repeat."""
    try:
        await repository.complete_card(card_id, identity)
    except KnownError as e:
        raise http_error(e) from e
    return CardActionResponse(card_id=card_id)


@router.post("/cards/force-complete", response_model=CardIdsResponse)
async def force_complete_stale(
    body: ForceCompleteRequest,
    identity: Identity,
    repository: Repository,
) -> CardIdsResponse:
    """
    Report cards that look abandoned.

    Any player may call this; each card is completed only if it is still
    stale when the transaction runs.
    """
    try:
        completed = await repository.force_complete_stale(body.card_ids)
    except KnownError as e:
        raise http_error(e) from e
    if completed:
        logger.info("%s reported stale cards %s", identity, completed)
    return _ids_response(completed)


@router.post(
    "/locks/sweep",
    response_model=CardIdsResponse,
    dependencies=[Depends(require_admin)],
)
async def sweep_stale_locks(repository: Repository) -> CardIdsResponse:
    """Run the scheduled stale-lock sweep immediately."""
    try:
        completed = await repository.sweep_stale_locks(
            repository.settings.scheduled_stale_lock_seconds
        )
    except KnownError as e:
        raise http_error(e) from e
    return _ids_response(completed)


@router.post(
    "/locks/reset",
    response_model=CardIdsResponse,
    dependencies=[Depends(require_admin)],
)
async def reset_all_locks(repository: Repository) -> CardIdsResponse:
    """Return every scratching card to the pool (deadlock recovery)."""
    try:
        released = await repository.reset_all_locks()
    except KnownError as e:
        raise http_error(e) from e
    return _ids_response(released)
