"""
Game event stream.

WS /game/events pushes the full game state on connect and after every
committed change. A connection that falls behind skips straight to the
newest state. Each connection also runs a crowdsourced stale-lock sweep on
the states it sends, so abandoned cards are reclaimed as long as anyone is
watching.

Server message format:
    {"event": "game_state", "data": <GameStateResponse> | null}
"""

import asyncio
import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from luckypaws.api.deps import get_repository
from luckypaws.api.schemas import GameStateResponse
from luckypaws.models.game import GameState
from luckypaws.services.game_repository import GameRepository
from luckypaws.services.reclaimer import CrowdsourcedSweeper

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/game", tags=["events"])


def state_message(state: GameState | None) -> dict[str, Any]:
    data = GameStateResponse.from_domain(state).model_dump(mode="json") if state else None
    return {"event": "game_state", "data": data}


class LatestState:
    """
    Single-slot mailbox between the change feed and one socket.

    A state that has not been sent yet is replaced by a newer one, so a slow
    socket holds at most one pending state.
    """

    def __init__(self) -> None:
        self._slot: asyncio.Queue[GameState | None] = asyncio.Queue(maxsize=1)

    def __len__(self) -> int:
        return self._slot.qsize()

    def offer(self, state: GameState | None) -> None:
        if self._slot.full():
            self._slot.get_nowait()
        self._slot.put_nowait(state)

    async def take(self) -> GameState | None:
        return await self._slot.get()


async def stream_game_events(websocket: WebSocket, repository: GameRepository) -> None:
    """
    Serve one subscriber until it disconnects.

    The feed callback only parks the state in a LatestState slot. Sending
    and the crowdsourced sweep run in this connection's own task, so the
    writer that published the change never waits on observers.
    """
    await websocket.accept()
    latest = LatestState()
    sweeper = CrowdsourcedSweeper(repository)

    async def pump() -> None:
        while True:
            state = await latest.take()
            await websocket.send_json(state_message(state))
            await sweeper(state)

    unsubscribe = await repository.subscribe(latest.offer)
    sender = asyncio.create_task(pump())
    logger.info("Event subscriber connected (%d active)", len(repository.feed))
    try:
        while True:
            # Client messages are ignored; receiving only detects disconnects
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        unsubscribe()
        sender.cancel()
        await asyncio.gather(sender, return_exceptions=True)
        logger.info("Event subscriber disconnected (%d active)", len(repository.feed))


@router.websocket("/events")
async def game_events(
    websocket: WebSocket,
    repository: Annotated[GameRepository, Depends(get_repository)],
) -> None:
    await stream_game_events(websocket, repository)
