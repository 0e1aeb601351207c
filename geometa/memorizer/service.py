"""Coordinates card selection, grading, and persistence for memorizer sessions."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from geometa.db import Location
from geometa.db.locations import get_location, list_countries
from geometa.db.progress import (
    append_review_event,
    as_utc,
    ensure_schedule,
    get_schedule,
    list_cards_with_schedules,
    list_review_events,
    put_schedule,
)

from .errors import UnknownCardError
from .filters import CardFilter
from .ledger import DailyStat, ReviewEvent, daily_stats
from .scheduler import ScheduleOutcome, ScheduleRecord, initial_record, next_schedule, validate_quality
from .selection import DueCounts, DueQueueSelector, SelectionReason


LOGGER = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(microsecond=0)


@dataclass(slots=True)
class NextCard:
    """Card chosen for review along with its schedule and queue counts."""

    location: Location
    schedule: ScheduleRecord
    counts: DueCounts
    reason: SelectionReason
    countries: List[str] = field(default_factory=list)


@dataclass(slots=True)
class GradeResult:
    """Outcome of grading a card."""

    location_id: int
    quality: int
    outcome: ScheduleOutcome
    schedule: ScheduleRecord


class MemorizerService:
    """Wire the selector, scheduler, and ledger to the relational store."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        selector: Optional[DueQueueSelector] = None,
    ) -> None:
        self._session_factory = session_factory
        self._selector = selector if selector is not None else DueQueueSelector()

    async def next_card(
        self,
        card_filter: Optional[CardFilter] = None,
        now: Optional[datetime] = None,
    ) -> Optional[NextCard]:
        """Pick the next card to study, or None when the filtered collection is empty."""
        now = as_utc(now) if now is not None else utc_now()
        predicate = card_filter.matches if card_filter is not None else None

        async with self._session_factory() as session:
            async with session.begin():
                cards = await list_cards_with_schedules(session, card_filter)
                selection = self._selector.select_next(cards, now, predicate)
                if selection is None:
                    LOGGER.info("No cards available for review.")
                    return None

                counts = self._selector.due_counts(cards, now, predicate)
                schedule = await ensure_schedule(session, selection.card_id, now=now)
                location = await get_location(session, selection.card_id)
                # Unfiltered, so the country picker always offers every option.
                countries = await list_countries(session)

        return NextCard(
            location=location,
            schedule=schedule,
            counts=counts,
            reason=selection.reason,
            countries=countries,
        )

    async def grade(
        self,
        location_id: int,
        quality: int,
        now: Optional[datetime] = None,
    ) -> GradeResult:
        """Apply a grade to a card, persist its new schedule, and log the review."""
        quality = validate_quality(quality)
        now = as_utc(now) if now is not None else utc_now()

        async with self._session_factory() as session:
            async with session.begin():
                if await get_location(session, location_id) is None:
                    raise UnknownCardError(f"Location {location_id} does not exist.")

                current = await get_schedule(session, location_id)
                if current is None:
                    current = initial_record(now)

                outcome = next_schedule(
                    quality,
                    current.repetitions,
                    current.ease_factor,
                    current.interval,
                    current.state,
                    current.lapses,
                )
                record = outcome.to_record(now)
                await put_schedule(session, location_id, record, now=now)
                await append_review_event(
                    session,
                    ReviewEvent(card_id=location_id, quality=quality, reviewed_at=now),
                )

        LOGGER.info(
            "Graded location %s with %s: state=%s interval=%s due_at=%s.",
            location_id,
            quality,
            record.state.value,
            record.interval,
            record.due_at.isoformat(),
        )
        return GradeResult(location_id=location_id, quality=quality, outcome=outcome, schedule=record)

    async def due_counts(
        self,
        card_filter: Optional[CardFilter] = None,
        now: Optional[datetime] = None,
    ) -> DueCounts:
        now = as_utc(now) if now is not None else utc_now()
        predicate = card_filter.matches if card_filter is not None else None
        async with self._session_factory() as session:
            cards = await list_cards_with_schedules(session, card_filter)
        return self._selector.due_counts(cards, now, predicate)

    async def daily_stats(self) -> List[DailyStat]:
        async with self._session_factory() as session:
            events = await list_review_events(session)
        return daily_stats(events)

    async def available_countries(self) -> List[str]:
        """Return the distinct countries cards can be filtered by."""
        async with self._session_factory() as session:
            return await list_countries(session)
