from fastapi import APIRouter, Depends, HTTPException, Request, status
from typing import Any, Dict, List

from config import load_config
from db.database import get_deck_store
from db.store import DeckStore
from models.deck import Deck, DeckCreate, DeckRename
from models.review import ReviewPrefs
from utils.queue import card_counts, due_card_counts
from utils.scheduler import format_due_date, next_review_label
from utils.timestamps import utcnow

router = APIRouter()


def default_review_prefs() -> ReviewPrefs:
    review_cfg = load_config()["review"]
    return ReviewPrefs(
        review_count=review_cfg["review_count"],
        new_card_limit=review_cfg["new_card_limit"],
    )


def card_view(card, now) -> Dict[str, Any]:
    """Card as the API shows it: stored fields plus due labels."""
    data = card.model_dump(mode="json", by_alias=True)
    data["next_review"] = next_review_label(card, now)
    data["due_label"] = format_due_date(card, now)
    return data


def deck_summary(deck: Deck, now) -> Dict[str, Any]:
    counts = card_counts(deck)
    due = due_card_counts(deck, now)
    return {
        "id": deck.id,
        "name": deck.name,
        "createdAt": deck.model_dump(mode="json", by_alias=True)["createdAt"],
        "card_count": len(deck.cards),
        "counts": {"new": counts.new, "learning": counts.learning, "review": counts.review},
        "due": {
            "new": due.new_due,
            "learning": due.learning_due,
            "review": due.review_due,
            "total": due.total,
        },
    }


def require_deck(store: DeckStore, deck_id: str) -> Deck:
    deck = store.get_deck(deck_id)
    if deck is None:
        raise HTTPException(status_code=404, detail="Deck not found")
    return deck


@router.get("/")
async def list_decks(store: DeckStore = Depends(get_deck_store)) -> List[Dict[str, Any]]:
    """List all decks with card and due counts."""
    now = utcnow()
    return [deck_summary(deck, now) for deck in store.load_decks()]


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_deck(payload: DeckCreate, store: DeckStore = Depends(get_deck_store)):
    """Create a new, empty deck."""
    return store.add_deck(payload.name)


@router.get("/{deck_id}")
async def deck_detail(deck_id: str, store: DeckStore = Depends(get_deck_store)):
    deck = require_deck(store, deck_id)
    now = utcnow()
    detail = deck_summary(deck, now)
    detail["cards"] = [card_view(card, now) for card in deck.cards]
    return detail


@router.patch("/{deck_id}")
async def rename_deck(deck_id: str, payload: DeckRename, store: DeckStore = Depends(get_deck_store)):
    deck = store.rename_deck(deck_id, payload.name)
    if deck is None:
        raise HTTPException(status_code=404, detail="Deck not found")
    return deck


@router.delete("/{deck_id}")
async def delete_deck(deck_id: str, request: Request, store: DeckStore = Depends(get_deck_store)):
    if not store.delete_deck(deck_id):
        raise HTTPException(status_code=404, detail="Deck not found")
    request.app.state.sessions.discard_deck(deck_id)
    return {"deleted": True}


@router.get("/{deck_id}/prefs")
async def get_review_prefs(deck_id: str, store: DeckStore = Depends(get_deck_store)) -> ReviewPrefs:
    require_deck(store, deck_id)
    return store.load_review_prefs(deck_id) or default_review_prefs()


@router.put("/{deck_id}/prefs")
async def save_review_prefs(
    deck_id: str,
    prefs: ReviewPrefs,
    store: DeckStore = Depends(get_deck_store),
) -> ReviewPrefs:
    require_deck(store, deck_id)
    store.save_review_prefs(deck_id, prefs)
    return prefs
