"""Daily aggregation of the append-only review log."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Iterable, List

from .scheduler import SUCCESS_QUALITY


@dataclass(frozen=True, slots=True)
class ReviewEvent:
    """A single grading action recorded for a card."""

    card_id: int
    quality: int
    reviewed_at: datetime


@dataclass(frozen=True, slots=True)
class DailyStat:
    """Review volume and success rate for one UTC calendar day."""

    day: date
    count: int
    success_rate: float


def _utc_day(moment: datetime) -> date:
    if moment.tzinfo is None:
        return moment.date()
    return moment.astimezone(timezone.utc).date()


def daily_stats(events: Iterable[ReviewEvent]) -> List[DailyStat]:
    """Group review events by UTC day, oldest day first.

    Grades of 3 or more count as successful. Days without events are not
    emitted, so an empty log yields an empty list.
    """
    totals: Counter[date] = Counter()
    successes: Counter[date] = Counter()
    for event in events:
        day = _utc_day(event.reviewed_at)
        totals[day] += 1
        if event.quality >= SUCCESS_QUALITY:
            successes[day] += 1

    return [
        DailyStat(
            day=day,
            count=count,
            success_rate=successes[day] / count if count else 0.0,
        )
        for day, count in sorted(totals.items())
    ]
