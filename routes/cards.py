from fastapi import APIRouter, Depends, HTTPException, status

from db.database import get_deck_store
from db.store import DeckStore
from models.card import CardCreate, CardUpdate
from utils.timestamps import utcnow
from .decks import card_view, require_deck

router = APIRouter()


@router.get("/{deck_id}/cards")
async def list_cards(deck_id: str, store: DeckStore = Depends(get_deck_store)):
    deck = require_deck(store, deck_id)
    now = utcnow()
    return [card_view(card, now) for card in deck.cards]


@router.post("/{deck_id}/cards", status_code=status.HTTP_201_CREATED)
async def add_card(deck_id: str, payload: CardCreate, store: DeckStore = Depends(get_deck_store)):
    """Add a manual card to the deck; it is due immediately."""
    card = store.add_card(deck_id, payload.front, payload.back)
    if card is None:
        raise HTTPException(status_code=404, detail="Deck not found")
    return card_view(card, utcnow())


@router.patch("/{deck_id}/cards/{card_id}")
async def edit_card(
    deck_id: str,
    card_id: str,
    payload: CardUpdate,
    store: DeckStore = Depends(get_deck_store),
):
    front = payload.front.strip() if payload.front is not None else None
    back = payload.back.strip() if payload.back is not None else None
    if front == "" or back == "":
        raise HTTPException(status_code=400, detail="Front and back are required")
    require_deck(store, deck_id)
    card = store.update_card(deck_id, card_id, front=front, back=back)
    if card is None:
        raise HTTPException(status_code=404, detail="Card not found")
    return card_view(card, utcnow())


@router.delete("/{deck_id}/cards/{card_id}")
async def delete_card(deck_id: str, card_id: str, store: DeckStore = Depends(get_deck_store)):
    require_deck(store, deck_id)
    if not store.delete_card(deck_id, card_id):
        raise HTTPException(status_code=404, detail="Card not found")
    return {"deleted": True}
