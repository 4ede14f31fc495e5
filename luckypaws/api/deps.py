"""
Shared FastAPI dependencies.

The GameRepository is created once in the app lifespan and stored on
app.state; endpoints receive it through `get_repository` so tests can
override it with one bound to a throwaway database.
"""

import secrets
from typing import Annotated

from fastapi import Depends, Header, HTTPException
from fastapi.requests import HTTPConnection

from luckypaws.models.failure import AdminRequiredError, KnownError
from luckypaws.services.game_repository import GameRepository, require_identity


def http_error(error: KnownError) -> HTTPException:
    """Translate a KnownError into an HTTPException carrying its FailureDetail."""
    return HTTPException(
        status_code=error.status_code,
        detail=error.to_detail().model_dump(mode="json"),
    )


def get_repository(connection: HTTPConnection) -> GameRepository:
    """Repository for the canonical game (works for HTTP and WebSocket routes)."""
    repository: GameRepository = connection.app.state.repository
    return repository


def get_identity(
    x_player_id: Annotated[str | None, Header(description="Opaque player session identity")] = None,
) -> str:
    """
    Player identity from the X-Player-Id header.

    Fails closed: no identity means no card operation.
    """
    try:
        return require_identity(x_player_id)
    except KnownError as e:
        raise http_error(e) from e


def require_admin(
    repository: Annotated[GameRepository, Depends(get_repository)],
    x_admin_token: Annotated[str | None, Header()] = None,
) -> None:
    """
    Guard for privileged endpoints.

    Refuses everything when no admin token is configured.
    """
    expected = repository.settings.admin_token
    if not expected or not x_admin_token or not secrets.compare_digest(x_admin_token, expected):
        raise http_error(AdminRequiredError())
