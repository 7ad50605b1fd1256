from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Tuple

from models.card import FlashCard
from models.deck import Deck
from models.memory import State
from utils.timestamps import ensure_utc, utcnow


@dataclass(frozen=True)
class CardCounts:
    new: int
    learning: int
    review: int


@dataclass(frozen=True)
class DueCardCounts:
    new_due: int
    learning_due: int
    review_due: int

    @property
    def total(self) -> int:
        return self.new_due + self.learning_due + self.review_due


def _by_due(cards: List[FlashCard]) -> List[FlashCard]:
    # sorted() is stable, so equal due times keep deck order
    return sorted(cards, key=lambda card: card.memory.due)


def _take(cards: List[FlashCard], limit: Optional[int]) -> List[FlashCard]:
    if limit is None:
        return list(cards)
    return cards[: max(limit, 0)]


def due_cards(deck: Deck, now: Optional[datetime] = None) -> List[FlashCard]:
    """Cards with ``due <= now`` ordered by due time; ties keep deck order."""
    now = ensure_utc(now) if now else utcnow()
    return _by_due([card for card in deck.cards if card.memory.due <= now])


def split_due_cards(deck: Deck, now: Optional[datetime] = None) -> Tuple[List[FlashCard], List[FlashCard]]:
    """Return ``(reviewish, fresh)`` due cards, each ordered by due time."""
    due = due_cards(deck, now)
    reviewish = [card for card in due if card.memory.state != State.NEW]
    fresh = [card for card in due if card.memory.state == State.NEW]
    return reviewish, fresh


def select_due_legacy(due: List[FlashCard], limit: Optional[int]) -> List[FlashCard]:
    """Earliest due first across new and reviewed cards alike."""
    return _take(due, limit)


def select_due_capped(
    reviewish: List[FlashCard],
    fresh: List[FlashCard],
    limit: Optional[int],
    new_card_limit: int,
) -> List[FlashCard]:
    """Reviewed cards fill the batch first; new cards only take what is left."""
    selected = _take(reviewish, limit)
    slots = max(new_card_limit, 0)
    if limit is not None:
        slots = min(slots, max(limit - len(selected), 0))
    return selected + fresh[:slots]


def get_due_cards(
    deck: Deck,
    limit: Optional[int] = None,
    new_card_limit: Optional[int] = None,
    now: Optional[datetime] = None,
) -> List[FlashCard]:
    if new_card_limit is None:
        return select_due_legacy(due_cards(deck, now), limit)
    reviewish, fresh = split_due_cards(deck, now)
    return select_due_capped(reviewish, fresh, limit, new_card_limit)


def card_counts(deck: Deck) -> CardCounts:
    states = [card.memory.state for card in deck.cards]
    return CardCounts(
        new=sum(1 for state in states if state == State.NEW),
        learning=sum(1 for state in states if state in (State.LEARNING, State.RELEARNING)),
        review=sum(1 for state in states if state == State.REVIEW),
    )


def due_card_counts(deck: Deck, now: Optional[datetime] = None) -> DueCardCounts:
    reviewish, fresh = split_due_cards(deck, now)
    return DueCardCounts(
        new_due=len(fresh),
        learning_due=sum(1 for card in reviewish if card.memory.state != State.REVIEW),
        review_due=sum(1 for card in reviewish if card.memory.state == State.REVIEW),
    )
