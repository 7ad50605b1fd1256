from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Dict, List, Optional

from models.card import FlashCard
from models.memory import Grade
from utils.fsrs import SchedulerParameters
from utils.ids import generate_id
from utils.scheduler import review_card
from utils.timestamps import utcnow

logger = logging.getLogger(__name__)

MAX_SESSIONS = 32


class SessionFinished(Exception):
    pass


class ReviewSession:
    """One pass over an ordered batch of cards.

    Each card gets exactly one grade before the session moves on. The
    session can be dropped at any card boundary; ``results()`` then holds
    only the cards that were graded.
    """

    def __init__(
        self,
        deck_id: str,
        cards: List[FlashCard],
        parameters: Optional[SchedulerParameters] = None,
        now_fn: Callable[[], datetime] = utcnow,
    ):
        self.id = generate_id()
        self.deck_id = deck_id
        self.cards = list(cards)
        self.parameters = parameters
        self.now_fn = now_fn
        self.position = 0
        self._graded: List[FlashCard] = []

    @property
    def total(self) -> int:
        return len(self.cards)

    @property
    def remaining(self) -> int:
        return self.total - self.position

    @property
    def is_finished(self) -> bool:
        return self.position >= self.total

    @property
    def current_card(self) -> Optional[FlashCard]:
        if self.is_finished:
            return None
        return self.cards[self.position]

    def grade(self, grade: Grade) -> FlashCard:
        card = self.current_card
        if card is None:
            raise SessionFinished(f"Session {self.id} has no cards left")
        updated = review_card(card, grade, self.now_fn(), self.parameters)
        self._graded.append(updated)
        self.position += 1
        logger.debug("session %s graded card %s as %s", self.id, card.id, Grade(grade).name)
        return updated

    def results(self) -> List[FlashCard]:
        return list(self._graded)


class SessionRegistry:
    """In-process table of open review sessions.

    A deck has at most one open session; starting another replaces it. Past
    ``max_sessions`` the oldest session is dropped.
    """

    def __init__(self, max_sessions: int = MAX_SESSIONS):
        self.max_sessions = max_sessions
        self._sessions: Dict[str, ReviewSession] = {}

    def add(self, session: ReviewSession) -> ReviewSession:
        self.discard_deck(session.deck_id)
        while len(self._sessions) >= self.max_sessions:
            oldest = next(iter(self._sessions))
            logger.info("Dropping idle review session %s", oldest)
            self._sessions.pop(oldest)
        self._sessions[session.id] = session
        return session

    def get(self, session_id: str) -> Optional[ReviewSession]:
        return self._sessions.get(session_id)

    def discard(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)

    def discard_deck(self, deck_id: str) -> None:
        for session_id in [sid for sid, s in self._sessions.items() if s.deck_id == deck_id]:
            self._sessions.pop(session_id, None)

    def __len__(self) -> int:
        return len(self._sessions)
