"""FSRS scheduler parameters and the shared ``fsrs.Scheduler`` built from them.

Grades are plain ints here (1=Again, 2=Hard, 3=Good, 4=Easy) so config and
validation can be used without the pydantic models.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import timedelta
from functools import lru_cache
from typing import Any, Dict, Optional, Tuple

from fsrs import Scheduler

AGAIN, HARD, GOOD, EASY = 1, 2, 3, 4

# FSRS-5 defaults; the config file may override them
DEFAULT_WEIGHTS: Tuple[float, ...] = (
    0.40255, 1.18385, 3.173, 15.69105,
    7.1949, 0.5345, 1.4604, 0.0046,
    1.54575, 0.1192, 1.01925,
    1.9395, 0.11, 0.29605, 2.2698,
    0.2315, 2.9898,
    0.51655, 0.6621,
)
DEFAULT_REQUEST_RETENTION = 0.9
DEFAULT_MAXIMUM_INTERVAL = 36500
DEFAULT_LEARNING_STEPS = (timedelta(minutes=1), timedelta(minutes=10))
DEFAULT_RELEARNING_STEPS = (timedelta(minutes=10),)

_STEP_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*([smhd])\s*$")
_STEP_UNITS = {"s": "seconds", "m": "minutes", "h": "hours", "d": "days"}


@dataclass(frozen=True)
class SchedulerParameters:
    weights: Tuple[float, ...] = DEFAULT_WEIGHTS
    request_retention: float = DEFAULT_REQUEST_RETENTION
    maximum_interval: int = DEFAULT_MAXIMUM_INTERVAL
    learning_steps: Tuple[timedelta, ...] = field(default=DEFAULT_LEARNING_STEPS)
    relearning_steps: Tuple[timedelta, ...] = field(default=DEFAULT_RELEARNING_STEPS)

    def __post_init__(self):
        if len(self.weights) != len(DEFAULT_WEIGHTS):
            raise ValueError(f"Expected {len(DEFAULT_WEIGHTS)} weights, got {len(self.weights)}")
        if not 0 < self.request_retention < 1:
            raise ValueError("request_retention must be between 0 and 1")
        if self.maximum_interval < 1:
            raise ValueError("maximum_interval must be at least 1 day")


DEFAULT_PARAMETERS = SchedulerParameters()


@lru_cache(maxsize=8)
def build_scheduler(parameters: SchedulerParameters = DEFAULT_PARAMETERS) -> Scheduler:
    """``fsrs.Scheduler`` for these parameters. Fuzz is off so reviews are reproducible."""
    return Scheduler(
        parameters=parameters.weights,
        desired_retention=parameters.request_retention,
        learning_steps=parameters.learning_steps,
        relearning_steps=parameters.relearning_steps,
        maximum_interval=parameters.maximum_interval,
        enable_fuzzing=False,
    )


def check_grade(grade: int) -> int:
    if isinstance(grade, bool) or grade not in (AGAIN, HARD, GOOD, EASY):
        raise ValueError(f"Grade must be 1-4, got {grade!r}")
    return int(grade)


def parse_step(value: Any) -> timedelta:
    """Parse a learning step such as ``"1m"``, ``"10m"``, ``"1h"`` or ``"1d"``.

    Bare numbers are minutes.
    """
    if isinstance(value, timedelta):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return timedelta(minutes=value)
    match = _STEP_RE.match(str(value))
    if not match:
        raise ValueError(f"Invalid learning step: {value!r}")
    amount, unit = match.groups()
    return timedelta(**{_STEP_UNITS[unit]: float(amount)})


def parameters_from_config(section: Optional[Dict[str, Any]]) -> SchedulerParameters:
    """Build parameters from the ``[scheduler]`` config table."""
    if not section:
        return DEFAULT_PARAMETERS
    weights = section.get("weights") or DEFAULT_WEIGHTS
    learning = section.get("learning_steps")
    relearning = section.get("relearning_steps")
    return SchedulerParameters(
        weights=tuple(float(value) for value in weights),
        request_retention=float(section.get("request_retention", DEFAULT_REQUEST_RETENTION)),
        maximum_interval=int(section.get("maximum_interval", DEFAULT_MAXIMUM_INTERVAL)),
        learning_steps=DEFAULT_LEARNING_STEPS if learning is None else tuple(parse_step(s) for s in learning),
        relearning_steps=DEFAULT_RELEARNING_STEPS if relearning is None else tuple(parse_step(s) for s in relearning),
    )
