"""Persistence of memorizer schedules and the review log."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import inspect, select
from sqlalchemy.ext.asyncio import AsyncSession

from geometa.memorizer.filters import CardFilter
from geometa.memorizer.ledger import ReviewEvent
from geometa.memorizer.scheduler import ScheduleRecord, initial_record, parse_state
from geometa.memorizer.selection import CandidateCard

from . import Location, MemorizerProgress, MemorizerReview


def as_utc(moment: datetime) -> datetime:
    """Attach UTC to naive timestamps (SQLite drops tz info) and drop microseconds."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    else:
        moment = moment.astimezone(timezone.utc)
    return moment.replace(microsecond=0)


def _to_record(progress: MemorizerProgress) -> ScheduleRecord:
    return ScheduleRecord(
        repetitions=progress.repetitions,
        ease_factor=progress.ease_factor,
        interval=progress.interval,
        state=parse_state(progress.state),
        lapses=progress.lapses,
        due_at=as_utc(progress.due_at),
    )


async def _get_progress(session: AsyncSession, location_id: int) -> Optional[MemorizerProgress]:
    stmt = select(MemorizerProgress).where(MemorizerProgress.location_id == location_id)
    result = await session.execute(stmt)
    return result.scalars().first()


async def get_schedule(session: AsyncSession, location_id: int) -> Optional[ScheduleRecord]:
    """Return the schedule of a location, or None if it was never scheduled."""
    progress = await _get_progress(session, location_id)
    if progress is None:
        return None
    return _to_record(progress)


async def put_schedule(
    session: AsyncSession,
    location_id: int,
    record: ScheduleRecord,
    now: Optional[datetime] = None,
) -> None:
    """Create or overwrite every scheduling field of a location."""
    if now is None:
        now = datetime.now(timezone.utc)

    progress = await _get_progress(session, location_id)
    if progress is None:
        progress = MemorizerProgress(location_id=location_id)
        session.add(progress)

    progress.repetitions = record.repetitions
    progress.ease_factor = record.ease_factor
    progress.interval = record.interval
    progress.state = record.state.value
    progress.lapses = record.lapses
    progress.due_at = as_utc(record.due_at)
    progress.updated_at = now
    await session.flush()


async def ensure_schedule(
    session: AsyncSession,
    location_id: int,
    now: Optional[datetime] = None,
) -> ScheduleRecord:
    """Return the location's schedule, creating the initial record when missing."""
    if now is None:
        now = datetime.now(timezone.utc)

    existing = await get_schedule(session, location_id)
    if existing is not None:
        return existing

    record = initial_record(as_utc(now))
    await put_schedule(session, location_id, record, now=now)
    return record


async def list_cards_with_schedules(
    session: AsyncSession,
    card_filter: Optional[CardFilter] = None,
) -> List[CandidateCard]:
    """Return every location joined with its schedule, narrowed by ``card_filter``."""
    stmt = (
        select(Location.id, Location.country, MemorizerProgress)
        .outerjoin(MemorizerProgress, MemorizerProgress.location_id == Location.id)
        .order_by(Location.id)
    )
    if card_filter is not None:
        stmt = card_filter.apply(stmt, Location.country)

    result = await session.execute(stmt)
    return [
        CandidateCard(
            card_id=location_id,
            country=country,
            schedule=_to_record(progress) if progress is not None else None,
        )
        for location_id, country, progress in result.all()
    ]


async def append_review_event(session: AsyncSession, event: ReviewEvent) -> None:
    session.add(
        MemorizerReview(
            location_id=event.card_id,
            quality=event.quality,
            reviewed_at=as_utc(event.reviewed_at),
        )
    )
    await session.flush()


def _has_review_log(sync_session) -> bool:
    return inspect(sync_session.connection()).has_table(MemorizerReview.__tablename__)


async def list_review_events(session: AsyncSession) -> List[ReviewEvent]:
    """Return the review log oldest first; empty when the log table does not exist yet."""
    if not await session.run_sync(_has_review_log):
        return []

    stmt = select(MemorizerReview).order_by(MemorizerReview.reviewed_at, MemorizerReview.id)
    result = await session.execute(stmt)
    return [
        ReviewEvent(
            card_id=review.location_id,
            quality=review.quality,
            reviewed_at=as_utc(review.reviewed_at),
        )
        for review in result.scalars()
    ]
