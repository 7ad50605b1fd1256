import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status

from db.database import get_deck_store
from db.store import DeckStore
from models.review import GradePreview, GradeSubmit, ReviewResults, ReviewStart, SessionView
from utils.queue import get_due_cards
from utils.scheduler import next_review_label, preview
from utils.session import ReviewSession, SessionRegistry
from utils.timestamps import utcnow
from .decks import card_view, default_review_prefs, require_deck

logger = logging.getLogger(__name__)

router = APIRouter()


def get_sessions(request: Request) -> SessionRegistry:
    return request.app.state.sessions


def session_view(session: ReviewSession) -> SessionView:
    card = session.current_card
    return SessionView(
        session_id=session.id,
        deck_id=session.deck_id,
        total=session.total,
        position=session.position,
        remaining=session.remaining,
        finished=session.is_finished,
        card=card,
        next_review=next_review_label(card) if card else None,
    )


def require_session(sessions: SessionRegistry, session_id: str) -> ReviewSession:
    session = sessions.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Review session not found")
    return session


@router.post("/{deck_id}/start", status_code=status.HTTP_201_CREATED)
async def start_review(
    deck_id: str,
    options: Optional[ReviewStart] = None,
    store: DeckStore = Depends(get_deck_store),
    sessions: SessionRegistry = Depends(get_sessions),
) -> SessionView:
    """Pick the due batch for the deck and open a review session over it."""
    options = options or ReviewStart()
    deck = require_deck(store, deck_id)
    limit = options.limit
    new_card_limit = options.new_card_limit
    if options.use_prefs:
        prefs = store.load_review_prefs(deck_id) or default_review_prefs()
        limit = limit or prefs.review_count
        if new_card_limit is None:
            new_card_limit = prefs.new_card_limit
    cards = get_due_cards(deck, limit, new_card_limit)
    if not cards:
        raise HTTPException(status_code=409, detail="No cards are due in this deck")
    session = sessions.add(ReviewSession(deck_id, cards, parameters=store.parameters))
    logger.info("Started review session %s on deck %s with %d card(s)", session.id, deck_id, session.total)
    return session_view(session)


@router.get("/sessions/{session_id}")
async def get_session(session_id: str, sessions: SessionRegistry = Depends(get_sessions)) -> SessionView:
    return session_view(require_session(sessions, session_id))


@router.post("/sessions/{session_id}/grade")
async def grade_card(
    session_id: str,
    payload: GradeSubmit,
    store: DeckStore = Depends(get_deck_store),
    sessions: SessionRegistry = Depends(get_sessions),
):
    """Grade the current card, persist it at once, and move to the next card."""
    session = require_session(sessions, session_id)
    if session.is_finished:
        raise HTTPException(status_code=409, detail="Review session is already finished")
    updated = session.grade(payload.grade)
    saved = store.save_card_memory(session.deck_id, updated)
    if saved is None:
        sessions.discard(session_id)
        raise HTTPException(status_code=404, detail="Card is no longer in the deck")
    if session.is_finished:
        sessions.discard(session_id)
        logger.info("Review session %s finished (%d card(s))", session_id, session.total)
    return {
        "graded": card_view(saved, utcnow()),
        "session": session_view(session),
    }


@router.delete("/sessions/{session_id}")
async def abandon_session(session_id: str, sessions: SessionRegistry = Depends(get_sessions)):
    """Drop a session; grades already applied stay saved."""
    session = require_session(sessions, session_id)
    sessions.discard(session_id)
    return {"abandoned": True, "graded": len(session.results())}


@router.post("/{deck_id}/results")
async def submit_results(
    deck_id: str,
    payload: ReviewResults,
    store: DeckStore = Depends(get_deck_store),
):
    """Accept cards graded by an external client and store their new state."""
    updated = store.apply_review_results(deck_id, payload.cards)
    if updated is None:
        raise HTTPException(status_code=404, detail="Deck not found")
    return {"updated": updated}


@router.get("/{deck_id}/cards/{card_id}/preview")
async def preview_card(deck_id: str, card_id: str, store: DeckStore = Depends(get_deck_store)) -> GradePreview:
    """Show what each grade would do to the card without saving anything."""
    deck = require_deck(store, deck_id)
    card = next((c for c in deck.cards if c.id == card_id), None)
    if card is None:
        raise HTTPException(status_code=404, detail="Card not found")
    now = utcnow()
    outcomes = preview(card.memory, now, store.parameters)
    labels = {
        grade.name.lower(): next_review_label(card.model_copy(update={"memory": memory}), now)
        for grade, memory in outcomes.items()
    }
    return GradePreview(
        card_id=card.id,
        outcomes={grade.name.lower(): memory for grade, memory in outcomes.items()},
        labels=labels,
    )
