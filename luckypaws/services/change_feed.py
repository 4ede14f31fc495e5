"""
Push notifications for the canonical game document.

Every committed change to the game is published here; subscribers get the
new GameState (or None when no game exists). Delivery is in-process and
best-effort: a failing subscriber is logged and skipped, it never affects
the publisher or the other subscribers.

ORDERING:
Publishing is not re-entrant. A state published while a delivery round is
running (typically by a subscriber that committed a change of its own) is
queued and delivered after the current round. Each subscriber also drops
any state whose version is not newer than the last one it received, so a
view can lag but never moves backwards.
"""

import inspect
import logging
from collections import deque
from collections.abc import Awaitable, Callable

from luckypaws.models.game import GameState

logger = logging.getLogger(__name__)

ChangeCallback = Callable[[GameState | None], Awaitable[None] | None]
Unsubscribe = Callable[[], None]


class VersionGuard:
    """
    Wraps a callback so it only ever sees newer versions of the game.

    `None` (no game published) is passed through until the first real
    state arrives.
    """

    def __init__(self, callback: ChangeCallback):
        self.callback = callback
        self.last_version: int | None = None

    def is_outdated(self, state: GameState | None) -> bool:
        if self.last_version is None:
            return False
        if state is None or state.version is None:
            return True
        return state.version <= self.last_version

    async def __call__(self, state: GameState | None) -> None:
        if self.is_outdated(state):
            logger.debug(
                "Dropping outdated state v%s (last delivered v%s)",
                state.version if state else None,
                self.last_version,
            )
            return
        if state is not None and state.version is not None:
            self.last_version = state.version
        await deliver(self.callback, state)


class GameChangeFeed:
    """Fan-out of game state changes to registered callbacks."""

    def __init__(self) -> None:
        self._subscribers: dict[int, VersionGuard] = {}
        self._next_token = 0
        self._pending: deque[GameState | None] = deque()
        self._publishing = False

    def __len__(self) -> int:
        return len(self._subscribers)

    def subscribe(self, callback: ChangeCallback) -> Unsubscribe:
        """
        Register a callback for future changes.

        Returns:
            A function that removes the callback. Calling it more than
            once is harmless.
        """
        return self.register(VersionGuard(callback))

    def register(self, guard: VersionGuard) -> Unsubscribe:
        """Register an already wrapped callback (see GameRepository.subscribe)."""
        token = self._next_token
        self._next_token += 1
        self._subscribers[token] = guard

        def unsubscribe() -> None:
            self._subscribers.pop(token, None)

        return unsubscribe

    async def publish(self, state: GameState | None) -> None:
        """
        Deliver a state to every subscriber.

        A call made while another delivery round is running only queues the
        state; the running round delivers it next, in publish order.
        """
        self._pending.append(state)
        if self._publishing:
            return

        self._publishing = True
        try:
            while self._pending:
                current = self._pending.popleft()
                for guard in list(self._subscribers.values()):
                    await guard(current)
        finally:
            self._publishing = False


async def deliver(callback: ChangeCallback, state: GameState | None) -> None:
    """Invoke one callback, awaiting it if it is async, and log failures."""
    try:
        result = callback(state)
        if inspect.isawaitable(result):
            await result
    except Exception:
        logger.exception("Game change subscriber %r failed", callback)
