"""
Failure classification for card operations.

Every error the core raises on purpose is a KnownError: it carries a
FailureKind, a user-appropriate message and the HTTP status the API layer
should answer with. Anything else reaching the API is a bug.

Expected outcomes are NOT exceptions:
- A claim that loses (card taken, identity busy) returns False
- A sweep that finds nothing stale returns an empty list
"""

from enum import Enum

from pydantic import BaseModel, Field


class FailureKind(str, Enum):
    """Classification of failure types."""

    # Input validation failures
    INVALID_INPUT = "invalid_input"
    INVALID_CONFIG = "invalid_config"

    # Resource failures
    NOT_FOUND = "not_found"

    # State machine violations
    NOT_CARD_OWNER = "not_card_owner"

    # Concurrency
    CONTENTION = "contention"

    # Access
    IDENTITY_REQUIRED = "identity_required"
    ADMIN_REQUIRED = "admin_required"

    # Internal errors
    INVARIANT_VIOLATION = "invariant_violation"


class FailureDetail(BaseModel):
    """Detailed information about a failure."""

    kind: FailureKind = Field(
        ...,
        description="Classification of the failure",
    )
    message: str = Field(
        ...,
        description="User-appropriate explanation of what went wrong",
    )
    detail: str | None = Field(
        default=None,
        description="Additional technical detail (optional)",
    )
    suggestion: str | None = Field(
        default=None,
        description="Suggested action for the user",
    )


class KnownError(Exception):
    """
    Base class for exceptions that represent known, explainable failures.

    Subclass this for errors where the system knows exactly what went wrong.
    """

    def __init__(
        self,
        kind: FailureKind,
        message: str,
        detail: str | None = None,
        suggestion: str | None = None,
        status_code: int = 400,
    ):
        self.kind = kind
        self.message = message
        self.detail = detail
        self.suggestion = suggestion
        self.status_code = status_code
        super().__init__(message)

    def to_detail(self) -> FailureDetail:
        """Convert to a FailureDetail payload."""
        return FailureDetail(
            kind=self.kind,
            message=self.message,
            detail=self.detail,
            suggestion=self.suggestion,
        )


class GameNotFoundError(KnownError):
    """No canonical game document has been published yet."""

    def __init__(self, game_id: str):
        self.game_id = game_id
        super().__init__(
            kind=FailureKind.NOT_FOUND,
            message="No game has been published.",
            detail=f"game_id={game_id}",
            suggestion="Generate a fresh deck locally or ask an admin to publish one.",
            status_code=404,
        )


class CardNotFoundError(KnownError):
    """The card id does not exist in the current deck."""

    def __init__(self, card_id: int):
        self.card_id = card_id
        super().__init__(
            kind=FailureKind.NOT_FOUND,
            message=f"Card {card_id} does not exist in this deck.",
            detail=f"card_id={card_id}",
            status_code=404,
        )


class SnapshotNotFoundError(KnownError):
    """No snapshot stored under the given id."""

    def __init__(self, snapshot_id: str):
        self.snapshot_id = snapshot_id
        super().__init__(
            kind=FailureKind.NOT_FOUND,
            message="The shared card could not be found.",
            detail=f"snapshot_id={snapshot_id}",
            status_code=404,
        )


class CardOwnershipError(KnownError):
    """
    The caller does not hold the card it tried to modify.

    Raised for progress updates on a card that is not scratching or is held
    by another identity, and for completions by a non-holder.
    """

    def __init__(self, card_id: int, identity: str, reason: str):
        self.card_id = card_id
        self.identity = identity
        super().__init__(
            kind=FailureKind.NOT_CARD_OWNER,
            message=f"You are not scratching card {card_id}.",
            detail=reason,
            suggestion="Claim an available card first.",
            status_code=409,
        )


class ContentionError(KnownError):
    """Every optimistic transaction attempt lost a race."""

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(
            kind=FailureKind.CONTENTION,
            message="The game is busy. Please try again.",
            detail=f"Transaction conflicted {attempts} times",
            suggestion="Retry with a fresh view of the deck.",
            status_code=409,
        )


class IdentityRequiredError(KnownError):
    """No usable player identity was supplied."""

    def __init__(self) -> None:
        super().__init__(
            kind=FailureKind.IDENTITY_REQUIRED,
            message="A player identity is required.",
            detail="Missing or blank identity",
            suggestion="Sign in again to obtain a session identity.",
            status_code=401,
        )


class AdminRequiredError(KnownError):
    """A privileged operation was requested without admin credentials."""

    def __init__(self) -> None:
        super().__init__(
            kind=FailureKind.ADMIN_REQUIRED,
            message="This operation requires admin access.",
            status_code=403,
        )


class DeckConfigError(KnownError):
    """The prize configuration cannot produce a valid deck."""

    def __init__(self, reason: str):
        super().__init__(
            kind=FailureKind.INVALID_CONFIG,
            message="The prize configuration is invalid.",
            detail=reason,
            suggestion="Lower the tier counts or raise the total number of cards.",
            status_code=400,
        )


class DocumentSchemaError(KnownError):
    """A stored document cannot be migrated to the current schema."""

    def __init__(self, reason: str):
        super().__init__(
            kind=FailureKind.INVARIANT_VIOLATION,
            message="Stored game data is unreadable.",
            detail=reason,
            status_code=500,
        )
