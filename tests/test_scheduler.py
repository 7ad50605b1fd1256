from datetime import datetime, timedelta, timezone

import pytest

from models.card import FlashCard
from models.memory import Grade, MemoryState, State, new_memory_state
from utils.fsrs import SchedulerParameters
from utils.scheduler import format_due_date, next_review_label, preview, review_card

NOW = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


def _card(memory: MemoryState) -> FlashCard:
    return FlashCard(id="c1", front="hola", back="hello", memory=memory)


def _review_memory(**overrides) -> MemoryState:
    values = dict(
        due=NOW,
        stability=10.0,
        difficulty=5.0,
        elapsed_days=0,
        scheduled_days=10,
        reps=3,
        lapses=1,
        state=State.REVIEW,
        last_review=NOW - timedelta(days=10),
    )
    values.update(overrides)
    return MemoryState(**values)


def _memories():
    return {
        State.NEW: new_memory_state(NOW),
        State.LEARNING: _review_memory(
            state=State.LEARNING, stability=3.0, learning_steps=1, scheduled_days=0,
            last_review=NOW - timedelta(minutes=10),
        ),
        State.REVIEW: _review_memory(),
        State.RELEARNING: _review_memory(
            state=State.RELEARNING, stability=2.0, scheduled_days=0,
            last_review=NOW - timedelta(minutes=10),
        ),
    }


def test_new_card_baseline():
    memory = new_memory_state(NOW)
    assert memory.state == State.NEW
    assert memory.reps == 0
    assert memory.lapses == 0
    assert memory.due == NOW
    assert memory.last_review is None
    assert memory.stability == 0
    assert memory.difficulty == 0


def test_new_card_learning_steps():
    card = _card(new_memory_state(NOW))

    again = review_card(card, Grade.AGAIN, NOW).memory
    assert again.state == State.LEARNING
    assert again.due == NOW + timedelta(minutes=1)

    hard = review_card(card, Grade.HARD, NOW).memory
    assert hard.state == State.LEARNING
    assert hard.due == NOW + timedelta(minutes=5, seconds=30)

    good = review_card(card, Grade.GOOD, NOW).memory
    assert good.state == State.LEARNING
    assert good.learning_steps == 1
    assert good.due == NOW + timedelta(minutes=10)
    assert good.elapsed_days == 0
    assert good.last_review == NOW

    easy = review_card(card, Grade.EASY, NOW).memory
    assert easy.state == State.REVIEW
    assert easy.scheduled_days == 16
    assert easy.due == NOW + timedelta(days=easy.scheduled_days)


def test_learning_card_graduates_after_last_step():
    card = review_card(_card(new_memory_state(NOW)), Grade.GOOD, NOW)
    later = NOW + timedelta(minutes=10)
    graduated = review_card(card, Grade.GOOD, later).memory
    assert graduated.state == State.REVIEW
    assert graduated.scheduled_days >= 1
    assert graduated.due == later + timedelta(days=graduated.scheduled_days)
    assert graduated.reps == 2


def test_review_again_lapses_into_relearning():
    memory = review_card(_card(_review_memory()), Grade.AGAIN, NOW).memory
    assert memory.state == State.RELEARNING
    assert memory.lapses == 2
    assert memory.due == NOW + timedelta(minutes=10)
    assert memory.stability < 10.0
    assert memory.elapsed_days == pytest.approx(10.0)


def test_review_success_keeps_lapses_and_orders_intervals():
    outcomes = preview(_review_memory(), NOW)
    hard, good, easy = (outcomes[g] for g in (Grade.HARD, Grade.GOOD, Grade.EASY))
    for memory in (hard, good, easy):
        assert memory.state == State.REVIEW
        assert memory.lapses == 1
    assert hard.scheduled_days <= good.scheduled_days < easy.scheduled_days


def test_relearning_good_returns_to_review():
    memory = review_card(_card(_memories()[State.RELEARNING]), Grade.GOOD, NOW).memory
    assert memory.state == State.REVIEW
    again = review_card(_card(_memories()[State.RELEARNING]), Grade.AGAIN, NOW).memory
    assert again.state == State.RELEARNING
    assert again.lapses == 1


def test_again_without_relearning_steps_stays_in_review():
    params = SchedulerParameters(relearning_steps=())
    outcomes = preview(_review_memory(), NOW, params)
    again = outcomes[Grade.AGAIN]
    assert again.state == State.REVIEW
    assert again.lapses == 2
    assert again.scheduled_days >= 1
    assert again.due == NOW + timedelta(days=again.scheduled_days)


@pytest.mark.parametrize("state", list(State))
def test_every_review_counts_once_and_again_is_never_later_than_easy(state):
    memory = _memories()[state]
    outcomes = preview(memory, NOW)
    assert set(outcomes) == set(Grade)
    for grade, outcome in outcomes.items():
        assert outcome.reps == memory.reps + 1
        assert outcome.last_review == NOW
        assert outcome.stability > 0
        assert 1 <= outcome.difficulty <= 10
        if grade != Grade.AGAIN or state != State.REVIEW:
            assert outcome.lapses == memory.lapses
    assert outcomes[Grade.AGAIN].due <= outcomes[Grade.EASY].due


def test_review_card_does_not_mutate_input_and_is_deterministic():
    card = _card(_review_memory())
    before = card.model_dump()
    first = review_card(card, Grade.GOOD, NOW)
    second = review_card(card, Grade.GOOD, NOW)
    assert card.model_dump() == before
    assert first == second
    assert first.id == card.id
    assert first.front == card.front


@pytest.mark.parametrize("grade", [0, 5])
def test_invalid_grade_raises(grade):
    with pytest.raises(ValueError):
        review_card(_card(new_memory_state(NOW)), grade, NOW)


@pytest.mark.parametrize(
    "offset, label",
    [
        (timedelta(0), "Now"),
        (timedelta(minutes=-5), "Now"),
        (timedelta(minutes=15), "15m"),
        (timedelta(minutes=59, seconds=59), "59m"),
        (timedelta(hours=2), "2h"),
        (timedelta(hours=23, minutes=59), "23h"),
        (timedelta(days=3), "3d"),
    ],
)
def test_next_review_label(offset, label):
    card = _card(new_memory_state(NOW + offset))
    assert next_review_label(card, NOW) == label


def test_format_due_date():
    assert format_due_date(_card(new_memory_state(NOW)), NOW) == "Now"
    due = datetime(2024, 1, 2, 3, 4, tzinfo=timezone.utc)
    assert format_due_date(_card(new_memory_state(due)), NOW) == "2024-01-02 03:04"


def test_zero_baseline_from_an_import_is_treated_as_unreviewed():
    imported = _review_memory(stability=0, difficulty=0, state=State.REVIEW, last_review=None)
    memory = review_card(_card(imported), Grade.GOOD, NOW).memory
    assert memory.state == State.LEARNING
    assert memory.stability > 0
    assert 1 <= memory.difficulty <= 10
