"""Deck store: decks, per-deck review preferences and whole-state backups.

Decks and review preferences are each kept as one JSON document in the
``documents`` table and are always read and replaced whole. Reads are
best-effort: an absent or unreadable document is an empty collection.
"""
from __future__ import annotations

import json
import logging
import sqlite3
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from pydantic import ValidationError

from models.backup import BACKUP_VERSION, AppState, ImportResult
from models.card import FlashCard
from models.deck import Deck
from models.memory import new_memory_state
from models.review import ReviewPrefs
from utils.errors import InvalidBackupFormat, InvalidTimestamp, MalformedStorageDocument
from utils.fsrs import DEFAULT_PARAMETERS, SchedulerParameters
from utils.ids import generate_id
from utils.timestamps import format_timestamp, parse_timestamp, utcnow
from .documents import delete_document, read_document, write_document

logger = logging.getLogger(__name__)

DECKS_KEY = "flashdeck.decks"
REVIEW_PREFS_KEY = "flashdeck.review_prefs"


def create_deck(name: str, now: Optional[datetime] = None) -> Deck:
    return Deck(id=generate_id(), name=name, cards=[], created_at=now or utcnow())


def create_card(front: str, back: str, now: Optional[datetime] = None) -> FlashCard:
    return FlashCard(id=generate_id(), front=front, back=back, memory=new_memory_state(now))


def decode_decks(raw: Any) -> List[Deck]:
    if not isinstance(raw, list):
        raise MalformedStorageDocument(DECKS_KEY, "expected a list of decks")
    try:
        return [Deck.model_validate(item) for item in raw]
    except ValidationError as exc:
        raise MalformedStorageDocument(DECKS_KEY, str(exc)) from exc


def decode_review_prefs(raw: Any) -> Dict[str, ReviewPrefs]:
    if not isinstance(raw, dict):
        raise MalformedStorageDocument(REVIEW_PREFS_KEY, "expected a mapping of deck ids")
    try:
        return {str(deck_id): ReviewPrefs.model_validate(value) for deck_id, value in raw.items()}
    except ValidationError as exc:
        raise MalformedStorageDocument(REVIEW_PREFS_KEY, str(exc)) from exc


def _repair_card_timestamps(card: Dict[str, Any], now: datetime) -> None:
    memory = card.get("fsrs")
    if not isinstance(memory, dict):
        return
    try:
        parse_timestamp(memory.get("due"))
    except InvalidTimestamp:
        logger.info("Card %s has an unreadable due date; using now", card.get("id"))
        memory["due"] = format_timestamp(now)
    if memory.get("last_review") is not None:
        try:
            parse_timestamp(memory["last_review"])
        except InvalidTimestamp:
            logger.info("Card %s has an unreadable last review; clearing it", card.get("id"))
            memory["last_review"] = None


def _is_valid_deck_entry(deck: Any) -> bool:
    return (
        isinstance(deck, dict)
        and isinstance(deck.get("id"), str)
        and isinstance(deck.get("name"), str)
        and isinstance(deck.get("cards"), list)
    )


def parse_backup(text: str, now: Optional[datetime] = None) -> AppState:
    """Validate a backup document, repairing bad card timestamps in place.

    Raises InvalidBackupFormat with a user-facing reason on the first
    structural problem found.
    """
    now = now or utcnow()
    try:
        data = json.loads(text)
    except (TypeError, ValueError) as exc:
        raise InvalidBackupFormat(f"Invalid JSON: {exc}") from exc

    version = data.get("version") if isinstance(data, dict) else None
    if isinstance(version, bool) or version != BACKUP_VERSION:
        raise InvalidBackupFormat(f"Unsupported backup version: {version!r} (expected {BACKUP_VERSION})")

    raw_decks = data.get("decks")
    if not isinstance(raw_decks, list):
        raise InvalidBackupFormat("Missing or invalid deck data")

    decks: List[Deck] = []
    for index, raw_deck in enumerate(raw_decks):
        if not _is_valid_deck_entry(raw_deck):
            raise InvalidBackupFormat(f"Invalid deck at index {index}")
        cards: List[FlashCard] = []
        for card_index, raw_card in enumerate(raw_deck["cards"]):
            if isinstance(raw_card, dict):
                _repair_card_timestamps(raw_card, now)
            try:
                cards.append(FlashCard.model_validate(raw_card))
            except ValidationError as exc:
                raise InvalidBackupFormat(
                    f"Invalid card at index {card_index} in deck '{raw_deck['name']}'"
                ) from exc
        try:
            created_at = parse_timestamp(raw_deck.get("createdAt"))
        except InvalidTimestamp:
            created_at = now
        decks.append(Deck(id=raw_deck["id"], name=raw_deck["name"], cards=cards, created_at=created_at))

    raw_prefs = data.get("reviewPrefs") or {}
    try:
        review_prefs = decode_review_prefs(raw_prefs)
    except MalformedStorageDocument as exc:
        raise InvalidBackupFormat("Invalid review preferences") from exc

    try:
        exported_at = parse_timestamp(data.get("exportedAt"))
    except InvalidTimestamp:
        exported_at = now
    return AppState(exported_at=exported_at, decks=decks, review_prefs=review_prefs)


class DeckStore:
    def __init__(self, conn: sqlite3.Connection, parameters: Optional[SchedulerParameters] = None):
        self.conn = conn
        self.parameters = parameters or DEFAULT_PARAMETERS

    # --- whole documents ---

    def load_decks(self) -> List[Deck]:
        try:
            raw = read_document(self.conn, DECKS_KEY)
            return [] if raw is None else decode_decks(raw)
        except MalformedStorageDocument as exc:
            logger.warning("%s; treating deck collection as empty", exc)
            return []

    def _write_decks(self, decks: Iterable[Deck]) -> None:
        write_document(self.conn, DECKS_KEY, [deck.model_dump(mode="json", by_alias=True) for deck in decks])

    def save_decks(self, decks: Iterable[Deck]) -> None:
        self._write_decks(decks)
        self.conn.commit()

    def load_all_review_prefs(self) -> Dict[str, ReviewPrefs]:
        try:
            raw = read_document(self.conn, REVIEW_PREFS_KEY)
            return {} if raw is None else decode_review_prefs(raw)
        except MalformedStorageDocument as exc:
            logger.warning("%s; treating review preferences as empty", exc)
            return {}

    def _write_review_prefs(self, prefs: Dict[str, ReviewPrefs]) -> None:
        write_document(
            self.conn,
            REVIEW_PREFS_KEY,
            {deck_id: value.model_dump(mode="json", by_alias=True) for deck_id, value in prefs.items()},
        )

    def load_review_prefs(self, deck_id: str) -> Optional[ReviewPrefs]:
        return self.load_all_review_prefs().get(deck_id)

    def save_review_prefs(self, deck_id: str, prefs: ReviewPrefs) -> None:
        all_prefs = self.load_all_review_prefs()
        all_prefs[deck_id] = prefs
        self._write_review_prefs(all_prefs)
        self.conn.commit()

    def clear(self) -> None:
        delete_document(self.conn, DECKS_KEY)
        delete_document(self.conn, REVIEW_PREFS_KEY)
        self.conn.commit()

    # --- decks and cards ---

    def get_deck(self, deck_id: str) -> Optional[Deck]:
        return next((deck for deck in self.load_decks() if deck.id == deck_id), None)

    def _update_deck(self, deck_id: str, change: Callable[[Deck], Deck]) -> Optional[Deck]:
        decks = self.load_decks()
        for index, deck in enumerate(decks):
            if deck.id == deck_id:
                decks[index] = change(deck)
                self.save_decks(decks)
                return decks[index]
        return None

    def add_deck(self, name: str) -> Deck:
        deck = create_deck(name)
        self.save_decks(self.load_decks() + [deck])
        logger.info("Created deck %s (%s)", deck.id, deck.name)
        return deck

    def rename_deck(self, deck_id: str, name: str) -> Optional[Deck]:
        return self._update_deck(deck_id, lambda deck: deck.model_copy(update={"name": name}))

    def delete_deck(self, deck_id: str) -> bool:
        decks = self.load_decks()
        remaining = [deck for deck in decks if deck.id != deck_id]
        if len(remaining) == len(decks):
            return False
        self._write_decks(remaining)
        prefs = self.load_all_review_prefs()
        if prefs.pop(deck_id, None) is not None:
            self._write_review_prefs(prefs)
        self.conn.commit()
        logger.info("Deleted deck %s", deck_id)
        return True

    def add_cards(self, deck_id: str, pairs: Iterable[Tuple[str, str]]) -> Optional[List[FlashCard]]:
        new_cards = [create_card(front, back) for front, back in pairs]
        deck = self._update_deck(
            deck_id,
            lambda deck: deck.model_copy(update={"cards": deck.cards + new_cards}),
        )
        return None if deck is None else new_cards

    def add_card(self, deck_id: str, front: str, back: str) -> Optional[FlashCard]:
        added = self.add_cards(deck_id, [(front, back)])
        return added[0] if added else None

    def update_card(
        self,
        deck_id: str,
        card_id: str,
        front: Optional[str] = None,
        back: Optional[str] = None,
    ) -> Optional[FlashCard]:
        changes = {key: value for key, value in (("front", front), ("back", back)) if value is not None}
        updated: List[FlashCard] = []

        def change(deck: Deck) -> Deck:
            cards = []
            for card in deck.cards:
                if card.id == card_id:
                    card = card.model_copy(update=changes)
                    updated.append(card)
                cards.append(card)
            return deck.model_copy(update={"cards": cards})

        self._update_deck(deck_id, change)
        return updated[0] if updated else None

    def delete_card(self, deck_id: str, card_id: str) -> bool:
        removed: List[FlashCard] = []

        def change(deck: Deck) -> Deck:
            removed.extend(card for card in deck.cards if card.id == card_id)
            return deck.model_copy(update={"cards": [card for card in deck.cards if card.id != card_id]})

        self._update_deck(deck_id, change)
        return bool(removed)

    def _apply_memories(self, deck_id: str, graded: Iterable[FlashCard]) -> Optional[List[FlashCard]]:
        # only memory is taken from the graded copies; front and back stay as stored
        memories = {card.id: card.memory for card in graded}
        saved: List[FlashCard] = []

        def change(deck: Deck) -> Deck:
            cards = []
            for card in deck.cards:
                if card.id in memories:
                    card = card.model_copy(update={"memory": memories[card.id]})
                    saved.append(card)
                cards.append(card)
            return deck.model_copy(update={"cards": cards})

        if self._update_deck(deck_id, change) is None:
            return None
        return saved

    def apply_review_results(self, deck_id: str, updated_cards: Iterable[FlashCard]) -> Optional[int]:
        """Store the memory state of graded cards by id; unknown ids are ignored.

        Returns how many cards were updated, or None if the deck is gone.
        """
        saved = self._apply_memories(deck_id, updated_cards)
        return None if saved is None else len(saved)

    def save_card_memory(self, deck_id: str, card: FlashCard) -> Optional[FlashCard]:
        """Persist one graded card's memory and return the stored card, or None."""
        saved = self._apply_memories(deck_id, [card])
        return saved[0] if saved else None

    # --- backup ---

    def export_app_state(self, now: Optional[datetime] = None) -> str:
        state = AppState(
            exported_at=now or utcnow(),
            decks=self.load_decks(),
            review_prefs=self.load_all_review_prefs(),
        )
        return state.model_dump_json(by_alias=True, indent=2)

    def import_app_state(self, text: str, now: Optional[datetime] = None) -> ImportResult:
        """Replace all decks with the backup's and merge its review preferences."""
        try:
            state = parse_backup(text, now)
        except InvalidBackupFormat as exc:
            logger.warning("Backup import rejected: %s", exc.reason)
            return ImportResult(success=False, error=exc.reason)
        prefs = self.load_all_review_prefs()
        prefs.update(state.review_prefs)
        self._write_decks(state.decks)
        self._write_review_prefs(prefs)
        self.conn.commit()
        logger.info("Imported %d deck(s) from backup", len(state.decks))
        return ImportResult(success=True, deck_count=len(state.decks))
