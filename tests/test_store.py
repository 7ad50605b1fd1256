import logging
import sqlite3
from datetime import datetime, timezone

import pytest

from db.documents import read_document, write_document
from db.schema import SCHEMA_SQL
from db.store import DECKS_KEY, REVIEW_PREFS_KEY, DeckStore, create_card, create_deck
from models.memory import Grade, State
from models.review import ReviewPrefs
from utils.scheduler import review_card

NOW = datetime(2024, 5, 6, 7, 8, 9, 123000, tzinfo=timezone.utc)


@pytest.fixture
def store():
    conn = sqlite3.connect(":memory:")
    conn.executescript(SCHEMA_SQL)
    yield DeckStore(conn)
    conn.close()


def test_create_deck_and_card():
    deck = create_deck("Spanish", NOW)
    card = create_card("hola", "hello", NOW)
    assert deck.cards == []
    assert deck.created_at == NOW
    assert card.memory.state == State.NEW
    assert card.memory.due == NOW
    assert deck.id != create_deck("Spanish", NOW).id


def test_empty_store_has_no_decks(store):
    assert store.load_decks() == []
    assert store.load_all_review_prefs() == {}
    assert store.load_review_prefs("missing") is None


def test_save_and_load_preserves_timestamps(store):
    deck = create_deck("Spanish", NOW)
    card = review_card(create_card("hola", "hello", NOW), Grade.GOOD, NOW)
    deck = deck.model_copy(update={"cards": [card]})

    store.save_decks([deck])
    loaded = store.load_decks()

    assert loaded == [deck]
    assert loaded[0].created_at == NOW
    assert loaded[0].cards[0].memory.due == card.memory.due
    assert loaded[0].cards[0].memory.last_review == NOW


def test_stored_document_uses_backup_field_names(store):
    deck = create_deck("Spanish", NOW)
    deck = deck.model_copy(update={"cards": [create_card("hola", "hello", NOW)]})
    store.save_decks([deck])

    raw = read_document(store.conn, DECKS_KEY)
    assert raw[0]["createdAt"] == "2024-05-06T07:08:09.123Z"
    assert raw[0]["cards"][0]["fsrs"]["state"] == 0
    assert raw[0]["cards"][0]["fsrs"]["last_review"] is None


@pytest.mark.parametrize("value", ["{not json", '{"decks": 1}', '[{"id": "d1"}]'])
def test_corrupt_deck_document_reads_as_empty(store, caplog, value):
    store.conn.execute("INSERT INTO documents (key, value) VALUES (?, ?)", (DECKS_KEY, value))
    with caplog.at_level(logging.WARNING):
        assert store.load_decks() == []
    assert "flashdeck.decks" in caplog.text


def test_corrupt_prefs_document_reads_as_empty(store):
    write_document(store.conn, REVIEW_PREFS_KEY, {"d1": {"reviewCount": 0}})
    assert store.load_all_review_prefs() == {}


def test_review_prefs_are_kept_per_deck(store):
    store.save_review_prefs("d1", ReviewPrefs(review_count=5, new_card_limit=1))
    store.save_review_prefs("d2", ReviewPrefs(review_count=30, new_card_limit=0))
    store.save_review_prefs("d1", ReviewPrefs(review_count=6, new_card_limit=2))

    assert store.load_review_prefs("d1") == ReviewPrefs(review_count=6, new_card_limit=2)
    assert store.load_review_prefs("d2") == ReviewPrefs(review_count=30, new_card_limit=0)
    assert read_document(store.conn, REVIEW_PREFS_KEY)["d2"] == {"reviewCount": 30, "newCardLimit": 0}


def test_deck_and_card_editing(store):
    deck = store.add_deck("Spanish")
    card = store.add_card(deck.id, "hola", "hello")
    other = store.add_card(deck.id, "gato", "cat")

    assert store.rename_deck(deck.id, "Español").name == "Español"
    assert store.rename_deck("missing", "x") is None

    edited = store.update_card(deck.id, card.id, back="hi")
    assert (edited.front, edited.back) == ("hola", "hi")
    assert edited.memory == card.memory
    assert store.update_card(deck.id, "missing", front="x") is None

    assert store.delete_card(deck.id, other.id) is True
    assert store.delete_card(deck.id, other.id) is False
    assert [c.id for c in store.get_deck(deck.id).cards] == [card.id]
    assert store.add_card("missing", "a", "b") is None


def test_delete_deck_drops_its_prefs(store):
    keep = store.add_deck("Keep")
    drop = store.add_deck("Drop")
    store.save_review_prefs(keep.id, ReviewPrefs())
    store.save_review_prefs(drop.id, ReviewPrefs())

    assert store.delete_deck(drop.id) is True
    assert store.delete_deck(drop.id) is False
    assert [d.id for d in store.load_decks()] == [keep.id]
    assert set(store.load_all_review_prefs()) == {keep.id}


def test_apply_review_results_replaces_by_id(store):
    deck = store.add_deck("Spanish")
    card = store.add_card(deck.id, "hola", "hello")
    untouched = store.add_card(deck.id, "gato", "cat")
    graded = review_card(card, Grade.EASY, NOW)
    stranger = review_card(create_card("x", "y", NOW), Grade.GOOD, NOW)

    assert store.apply_review_results(deck.id, [graded, stranger]) == 1
    cards = store.get_deck(deck.id).cards
    assert cards[0].memory.state == State.REVIEW
    assert cards[1] == untouched
    assert store.apply_review_results("missing", [graded]) is None


def test_save_card_memory(store):
    deck = store.add_deck("Spanish")
    card = store.add_card(deck.id, "hola", "hello")
    graded = review_card(card, Grade.GOOD, NOW)

    saved = store.save_card_memory(deck.id, graded)
    assert saved.memory == graded.memory
    assert store.get_deck(deck.id).cards[0].memory.reps == 1
    assert store.save_card_memory(deck.id, create_card("x", "y", NOW)) is None
    assert store.save_card_memory("missing", graded) is None


def test_graded_copy_does_not_undo_an_edit(store):
    deck = store.add_deck("Spanish")
    card = store.add_card(deck.id, "hola", "hello")
    graded = review_card(card, Grade.GOOD, NOW)
    store.update_card(deck.id, card.id, front="hola!")

    saved = store.save_card_memory(deck.id, graded)

    assert saved.front == "hola!"
    stored = store.get_deck(deck.id).cards[0]
    assert (stored.front, stored.back) == ("hola!", "hello")
    assert stored.memory == graded.memory
    assert store.apply_review_results(deck.id, [graded]) == 1
    assert store.get_deck(deck.id).cards[0].front == "hola!"
