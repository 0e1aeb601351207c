"""Spaced-repetition core: scheduling, due-card selection, and review statistics."""

from .errors import InvalidGradeError, InvalidStateError, MemorizerError, UnknownCardError
from .filters import CardFilter
from .ledger import DailyStat, ReviewEvent, daily_stats
from .scheduler import (
    CardState,
    Reschedule,
    RescheduleSoon,
    ScheduleOutcome,
    ScheduleRecord,
    initial_record,
    next_schedule,
    validate_quality,
)
from .selection import CandidateCard, DueCounts, DueQueueSelector, Selection

__all__ = [
    "CandidateCard",
    "CardFilter",
    "CardState",
    "DailyStat",
    "DueCounts",
    "DueQueueSelector",
    "InvalidGradeError",
    "InvalidStateError",
    "MemorizerError",
    "Reschedule",
    "RescheduleSoon",
    "ReviewEvent",
    "ScheduleOutcome",
    "ScheduleRecord",
    "Selection",
    "UnknownCardError",
    "daily_stats",
    "initial_record",
    "next_schedule",
    "validate_quality",
]
