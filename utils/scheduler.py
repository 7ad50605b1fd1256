"""Review scheduler: applies one graded review to a card's memory state.

The FSRS model itself comes from the ``fsrs`` package. This module converts
``MemoryState`` to and from ``fsrs.Card`` and keeps the counters the library
does not track: reps, lapses, elapsed and scheduled days.

Memory states are immutable. Every function here returns a fresh
``MemoryState`` (or card) and leaves its input untouched, so the same
state/grade/time triple always yields the same result.
"""
from __future__ import annotations

from datetime import datetime, timedelta
from typing import Dict, Optional

import fsrs

from models.card import FlashCard
from models.memory import Grade, MemoryState, State
from utils.fsrs import DEFAULT_PARAMETERS, SchedulerParameters, build_scheduler, check_grade
from utils.timestamps import DAY, HOUR, MINUTE, days_between, ensure_utc, utcnow

_TO_FSRS_STATE = {
    State.LEARNING: fsrs.State.Learning,
    State.REVIEW: fsrs.State.Review,
    State.RELEARNING: fsrs.State.Relearning,
}
_FROM_FSRS_STATE = {value: key for key, value in _TO_FSRS_STATE.items()}


def _has_memory(memory: MemoryState) -> bool:
    # never reviewed, or imported with the zero baseline
    return (
        memory.state != State.NEW
        and memory.last_review is not None
        and memory.stability > 0
        and memory.difficulty >= 1
    )


def to_fsrs_card(memory: MemoryState) -> fsrs.Card:
    if not _has_memory(memory):
        return fsrs.Card(state=fsrs.State.Learning, step=0, due=memory.due)
    state = _TO_FSRS_STATE[memory.state]
    return fsrs.Card(
        state=state,
        step=None if state == fsrs.State.Review else memory.learning_steps,
        stability=memory.stability,
        difficulty=memory.difficulty,
        due=memory.due,
        last_review=memory.last_review,
    )


def from_fsrs_card(memory: MemoryState, card: fsrs.Card, grade: Grade, now: datetime) -> MemoryState:
    """State after ``grade``: the library's card plus our review counters."""
    state = _FROM_FSRS_STATE[card.state]
    scheduled_days = max(round((card.due - now) / DAY), 1) if state == State.REVIEW else 0
    lapsed = memory.state == State.REVIEW and grade == Grade.AGAIN
    return MemoryState(
        due=card.due,
        stability=card.stability,
        difficulty=card.difficulty,
        elapsed_days=days_between(memory.last_review, now) if memory.last_review else 0.0,
        scheduled_days=scheduled_days,
        learning_steps=card.step or 0,
        reps=memory.reps + 1,
        lapses=memory.lapses + 1 if lapsed else memory.lapses,
        state=state,
        last_review=now,
    )


def next_memory_state(
    memory: MemoryState,
    grade: Grade,
    now: Optional[datetime] = None,
    parameters: Optional[SchedulerParameters] = None,
) -> MemoryState:
    grade = Grade(check_grade(grade))
    now = ensure_utc(now) if now else utcnow()
    scheduler = build_scheduler(parameters or DEFAULT_PARAMETERS)
    reviewed, _ = scheduler.review_card(to_fsrs_card(memory), fsrs.Rating(int(grade)), review_datetime=now)
    return from_fsrs_card(memory, reviewed, grade, now)


def preview(
    memory: MemoryState,
    now: Optional[datetime] = None,
    parameters: Optional[SchedulerParameters] = None,
) -> Dict[Grade, MemoryState]:
    """Compute the next memory state for every grade at once."""
    now = ensure_utc(now) if now else utcnow()
    return {grade: next_memory_state(memory, grade, now, parameters) for grade in Grade}


def review_card(
    card: FlashCard,
    grade: Grade,
    now: Optional[datetime] = None,
    parameters: Optional[SchedulerParameters] = None,
) -> FlashCard:
    """Return a copy of ``card`` carrying the memory state after ``grade``."""
    memory = next_memory_state(card.memory, grade, now, parameters)
    return card.model_copy(update={"memory": memory})


def next_review_label(card: FlashCard, now: Optional[datetime] = None) -> str:
    now = ensure_utc(now) if now else utcnow()
    remaining = card.memory.due - now
    if remaining <= timedelta(0):
        return "Now"
    minutes = remaining // MINUTE
    if minutes < 60:
        return f"{minutes}m"
    hours = remaining // HOUR
    if hours < 24:
        return f"{hours}h"
    return f"{remaining // DAY}d"


def format_due_date(card: FlashCard, now: Optional[datetime] = None) -> str:
    now = ensure_utc(now) if now else utcnow()
    if card.memory.due <= now:
        return "Now"
    return card.memory.due.strftime("%Y-%m-%d %H:%M")
