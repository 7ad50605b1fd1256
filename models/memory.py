from __future__ import annotations

from datetime import datetime
from enum import IntEnum
from typing import Optional

from pydantic import BaseModel, Field

from utils.timestamps import Timestamp, utcnow


class State(IntEnum):
    NEW = 0
    LEARNING = 1
    REVIEW = 2
    RELEARNING = 3


class Grade(IntEnum):
    AGAIN = 1
    HARD = 2
    GOOD = 3
    EASY = 4


class MemoryState(BaseModel):
    """Scheduling state of one card. Never mutated; the scheduler returns a new one."""

    due: Timestamp
    stability: float = Field(ge=0)
    difficulty: float = Field(ge=0, le=10)
    elapsed_days: float = Field(default=0, ge=0)
    scheduled_days: int = Field(default=0, ge=0)
    learning_steps: int = Field(default=0, ge=0)
    reps: int = Field(default=0, ge=0)
    lapses: int = Field(default=0, ge=0)
    state: State = State.NEW
    last_review: Optional[Timestamp] = None

    class Config:
        frozen = True


def new_memory_state(now: Optional[datetime] = None) -> MemoryState:
    """Baseline for a card that has never been reviewed: due immediately.

    Stability and difficulty stay 0 until the first review seeds them.
    """
    return MemoryState(due=now or utcnow(), stability=0, difficulty=0, state=State.NEW)
