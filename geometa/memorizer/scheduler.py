"""Spaced-repetition scheduling for memorizer reviews (SM-2 variant)."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional, Union

from .errors import InvalidGradeError, InvalidStateError


DEFAULT_EASE_FACTOR = 2.5
MIN_EASE_FACTOR = 1.3
LAPSE_EASE_PENALTY = 0.2
LAPSE_INTERVAL_DAYS = 7
EASY_BONUS = 1.3
FRESH_HARD_DELAY_MINUTES = 5
LAPSE_RECOVERY_DELAY_MINUTES = 10
MIN_QUALITY = 0
MAX_QUALITY = 5
SUCCESS_QUALITY = 3


class CardState(str, Enum):
    """Lifecycle state of a card's schedule."""

    NEW = "new"
    LEARNING = "learning"
    REVIEW = "review"
    LAPSED = "lapsed"


@dataclass(frozen=True, slots=True)
class ScheduleRecord:
    """Persisted scheduling state of a single card."""

    repetitions: int
    ease_factor: float
    interval: int
    state: CardState
    lapses: int
    due_at: datetime


@dataclass(frozen=True, slots=True)
class Reschedule:
    """Card becomes due again after a whole number of days."""

    days: int

    def due_at(self, now: datetime) -> datetime:
        return now + timedelta(days=self.days)


@dataclass(frozen=True, slots=True)
class RescheduleSoon:
    """Card is reshown within minutes, ignoring the day interval."""

    minutes: int

    def due_at(self, now: datetime) -> datetime:
        return now + timedelta(minutes=self.minutes)


Timing = Union[Reschedule, RescheduleSoon]


@dataclass(frozen=True, slots=True)
class ScheduleOutcome:
    """Result of grading a card: its next scheduling fields and timing."""

    repetitions: int
    ease_factor: float
    interval: int
    state: CardState
    lapses: int
    timing: Timing

    @property
    def review_delay_minutes(self) -> Optional[int]:
        """Minutes until the card is reshown, or None for day-based timing."""
        if isinstance(self.timing, RescheduleSoon):
            return self.timing.minutes
        return None

    def to_record(self, now: datetime) -> ScheduleRecord:
        """Materialize the outcome as a record due relative to ``now``."""
        return ScheduleRecord(
            repetitions=self.repetitions,
            ease_factor=self.ease_factor,
            interval=self.interval,
            state=self.state,
            lapses=self.lapses,
            due_at=self.timing.due_at(now),
        )


def validate_quality(quality: object) -> int:
    """Return ``quality`` if it is a valid 0-5 grade, otherwise raise."""
    if isinstance(quality, bool) or not isinstance(quality, int):
        raise InvalidGradeError(f"Quality must be an integer, got {quality!r}.")
    if quality < MIN_QUALITY or quality > MAX_QUALITY:
        raise InvalidGradeError(
            f"Quality must be between {MIN_QUALITY} and {MAX_QUALITY}, got {quality}."
        )
    return quality


def parse_state(state: Union[CardState, str]) -> CardState:
    """Coerce a stored state value into a ``CardState``."""
    try:
        return CardState(state)
    except ValueError as exc:
        raise InvalidStateError(f"Unknown schedule state {state!r}.") from exc


def initial_record(now: datetime) -> ScheduleRecord:
    """Return the record a card starts with before its first review."""
    return ScheduleRecord(
        repetitions=0,
        ease_factor=DEFAULT_EASE_FACTOR,
        interval=0,
        state=CardState.NEW,
        lapses=0,
        due_at=now,
    )


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _adjusted_ease(ease_factor: float, quality: int) -> float:
    penalty = MAX_QUALITY - quality
    updated = ease_factor + (0.1 - penalty * (0.08 + penalty * 0.02))
    return max(MIN_EASE_FACTOR, updated)


def next_schedule(
    quality: int,
    repetitions: int,
    ease_factor: float,
    interval: int,
    state: Union[CardState, str],
    lapses: int,
) -> ScheduleOutcome:
    """Compute a card's next schedule from its current fields and a grade.

    Rules are evaluated in priority order and the first match wins:

    1. A card that has never progressed (``repetitions == 0``) graded 2 and not
       lapsed stays in ``learning`` and is reshown in 5 minutes.
    2. Any grade of 0 or 1 is a lapse: the ease factor drops by 0.2 (floored at
       1.3), the lapse counter grows, and the card returns in 7 days.
    3. A lapsed card with no progress graded 3 or better moves back to
       ``learning`` and is reshown in 10 minutes.
    4. Otherwise the card progresses through the normal SM-2 steps.
    """
    quality = validate_quality(quality)
    current_state = parse_state(state)

    if repetitions == 0 and quality == 2 and current_state is not CardState.LAPSED:
        return ScheduleOutcome(
            repetitions=0,
            ease_factor=ease_factor,
            interval=0,
            state=CardState.LEARNING,
            lapses=lapses,
            timing=RescheduleSoon(FRESH_HARD_DELAY_MINUTES),
        )

    if quality <= 1:
        return ScheduleOutcome(
            repetitions=0,
            ease_factor=max(MIN_EASE_FACTOR, ease_factor - LAPSE_EASE_PENALTY),
            interval=LAPSE_INTERVAL_DAYS,
            state=CardState.LAPSED,
            lapses=lapses + 1,
            timing=Reschedule(LAPSE_INTERVAL_DAYS),
        )

    if current_state is CardState.LAPSED and repetitions == 0 and quality >= SUCCESS_QUALITY:
        return ScheduleOutcome(
            repetitions=1,
            ease_factor=ease_factor,
            interval=1,
            state=CardState.LEARNING,
            lapses=lapses,
            timing=RescheduleSoon(LAPSE_RECOVERY_DELAY_MINUTES),
        )

    if repetitions == 0:
        new_repetitions = 1
        new_interval = 1
        new_state = CardState.LEARNING
    elif repetitions == 1:
        new_repetitions = 2
        new_interval = 3 if quality == 2 else 6
        new_state = CardState.REVIEW
    else:
        new_repetitions = repetitions + 1
        if quality == 2:
            new_interval = max(1, _round_half_up(interval / 2))
        else:
            new_interval = _round_half_up(interval * ease_factor)
            if quality == MAX_QUALITY:
                new_interval = _round_half_up(new_interval * EASY_BONUS)
        new_state = CardState.REVIEW

    return ScheduleOutcome(
        repetitions=new_repetitions,
        ease_factor=_adjusted_ease(ease_factor, quality),
        interval=new_interval,
        state=new_state,
        lapses=lapses,
        timing=Reschedule(new_interval),
    )
