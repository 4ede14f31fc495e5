"""
Card state machine.

    available --claim--> scratching --complete / stale sweep--> completed
    scratching --reset_all_locks--> available   (administrative only)

`completed` is terminal for the lifetime of a deck.

These functions mutate an in-memory deck and are meant to run inside a
single optimistic transaction (see db.operations.run_deck_transaction):
the caller reads the deck, applies one transition, and the store writes it
back only if nobody else committed in between. A transition that rejects
must leave the deck untouched, so every precondition is checked before
the first mutation.

ANTI-CHEAT RULE:
An identity holds at most one card with progress < AUTO_COMPLETE_PROGRESS.
A held card at or above that threshold is completed as part of the claim
that takes the next card.
"""

import logging
from collections.abc import Iterable

from luckypaws.config import AUTO_COMPLETE_PROGRESS
from luckypaws.models.card import Card, CardStatus
from luckypaws.models.failure import CardNotFoundError, CardOwnershipError

logger = logging.getLogger(__name__)


def find_card(deck: list[Card], card_id: int) -> Card:
    """
    Look up a card by id.

    Raises:
        CardNotFoundError: If the deck has no such card
    """
    for card in deck:
        if card.id == card_id:
            return card
    raise CardNotFoundError(card_id)


def clamp_progress(percent: float) -> float:
    return max(0.0, min(100.0, float(percent)))


def _mark_completed(card: Card) -> None:
    card.status = CardStatus.COMPLETED
    card.is_played = True
    card.is_revealed = True
    card.progress = 100
    card.locked_by = None
    card.locked_at = None


def held_cards(deck: list[Card], identity: str) -> list[Card]:
    """Cards currently being scratched by `identity`."""
    return [
        card for card in deck if card.is_locked and card.locked_by == identity
    ]


def claim(deck: list[Card], card_id: int, identity: str, now_ms: int) -> bool:
    """
    Lock an available card for `identity`.

    Returns:
        True if the card is now scratching for `identity`. False when the
        card is not available or the identity still holds an unfinished
        card; in that case the deck is unchanged.

    Raises:
        CardNotFoundError: If the deck has no such card
    """
    target = find_card(deck, card_id)

    to_finish: list[Card] = []
    for held in held_cards(deck, identity):
        if held.id == card_id:
            continue
        if held.progress < AUTO_COMPLETE_PROGRESS:
            logger.info(
                "Claim of card %d by %s rejected: card %d still in progress (%.0f%%)",
                card_id,
                identity,
                held.id,
                held.progress,
            )
            return False
        to_finish.append(held)

    if target.status != CardStatus.AVAILABLE:
        logger.info(
            "Claim of card %d by %s rejected: status is %s",
            card_id,
            identity,
            target.status.value,
        )
        return False

    for held in to_finish:
        logger.info(
            "Auto-completing card %d held by %s at %.0f%%", held.id, identity, held.progress
        )
        _mark_completed(held)

    target.status = CardStatus.SCRATCHING
    target.locked_by = identity
    target.locked_at = now_ms
    target.progress = 0
    return True


def update_progress(deck: list[Card], card_id: int, identity: str, percent: float) -> None:
    """
    Record scratch progress on a held card.

    Progress is clamped to 0-100 and may move in either direction; the
    last committed write wins.

    Raises:
        CardNotFoundError: If the deck has no such card
        CardOwnershipError: If the card is not scratching for `identity`
    """
    card = find_card(deck, card_id)
    if card.status != CardStatus.SCRATCHING:
        raise CardOwnershipError(card_id, identity, f"Card status is {card.status.value}")
    if card.locked_by != identity:
        raise CardOwnershipError(card_id, identity, "Card is locked by another identity")
    card.progress = clamp_progress(percent)


def complete(deck: list[Card], card_id: int, identity: str) -> bool:
    """
    Finish a held card.

    Completing a card that is already completed is accepted and changes
    nothing, so a repeated completion by the former holder is harmless.

    Returns:
        True if the card transitioned, False if it was already completed.

    Raises:
        CardNotFoundError: If the deck has no such card
        CardOwnershipError: If the card is neither held by `identity` nor completed
    """
    card = find_card(deck, card_id)
    if card.locked_by == identity and card.status == CardStatus.SCRATCHING:
        _mark_completed(card)
        return True
    if card.status == CardStatus.COMPLETED:
        return False
    raise CardOwnershipError(card_id, identity, f"Card status is {card.status.value}")


def is_stale(card: Card, now_ms: int, stale_after_ms: int) -> bool:
    """A scratching card whose lock is older than the window, or has no timestamp."""
    if not card.is_locked:
        return False
    if card.locked_at is None:
        return True
    return now_ms - card.locked_at > stale_after_ms


def find_stale_card_ids(deck: Iterable[Card], now_ms: int, stale_after_ms: int) -> list[int]:
    return [card.id for card in deck if is_stale(card, now_ms, stale_after_ms)]


def force_complete_stale(
    deck: list[Card], card_ids: Iterable[int], now_ms: int, stale_after_ms: int
) -> list[int]:
    """
    Complete abandoned cards regardless of who holds them.

    Each candidate is re-validated against the deck being written, so ids
    from an outdated view are ignored. An abandoned card is wasted, never
    returned to the pool.

    Returns:
        Ids of the cards that were completed by this call.
    """
    by_id = {card.id: card for card in deck}
    completed: list[int] = []
    for card_id in card_ids:
        card = by_id.get(card_id)
        if card is None:
            logger.debug("Stale candidate %d not in deck, skipping", card_id)
            continue
        if not is_stale(card, now_ms, stale_after_ms):
            continue
        age = "unknown" if card.locked_at is None else f"{(now_ms - card.locked_at) / 1000:.0f}s"
        logger.info("Force-completing card %d (locked by %s, age %s)", card.id, card.locked_by, age)
        _mark_completed(card)
        completed.append(card.id)
    return completed


def reset_all_locks(deck: list[Card]) -> list[int]:
    """
    Return every scratching card to the pool.

    Deadlock recovery only; normal play never releases a card.

    Returns:
        Ids of the cards that were unlocked.
    """
    released: list[int] = []
    for card in deck:
        if not card.is_locked:
            continue
        card.status = CardStatus.AVAILABLE
        card.locked_by = None
        card.locked_at = None
        card.progress = 0
        released.append(card.id)
    return released
