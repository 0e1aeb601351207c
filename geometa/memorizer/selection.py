"""Due-card selection and due/total counting for memorizer sessions."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Iterable, List, Literal, Optional, Sequence, Tuple

from .scheduler import CardState, ScheduleRecord


LOGGER = logging.getLogger(__name__)

DEFAULT_FALLBACK_POOL_SIZE = 10

CardPredicate = Callable[["CandidateCard"], bool]
SelectionReason = Literal["due", "least_seen"]


@dataclass(frozen=True, slots=True)
class CandidateCard:
    """A card together with its schedule, if it has been scheduled yet."""

    card_id: int
    country: Optional[str] = None
    schedule: Optional[ScheduleRecord] = None


@dataclass(frozen=True, slots=True)
class Selection:
    """The card chosen for review and how it was chosen."""

    card_id: int
    reason: SelectionReason


@dataclass(frozen=True, slots=True)
class DueCounts:
    """Number of due and total cards per bucket (new, review, lapsed)."""

    new_due: int = 0
    review_due: int = 0
    lapsed_due: int = 0
    new_total: int = 0
    review_total: int = 0
    lapsed_total: int = 0

    @property
    def total(self) -> int:
        return self.new_total + self.review_total + self.lapsed_total

    @property
    def due(self) -> int:
        return self.new_due + self.review_due + self.lapsed_due


_DUE_STATE_PRIORITY = {
    CardState.LAPSED: 0,
    CardState.REVIEW: 1,
    CardState.NEW: 2,
    CardState.LEARNING: 2,
}
_FALLBACK_STATE_PRIORITY = {
    CardState.NEW: 0,
    CardState.LEARNING: 1,
    CardState.LAPSED: 2,
}


def _is_due(card: CandidateCard, now: datetime) -> bool:
    schedule = card.schedule
    return schedule is None or schedule.due_at is None or schedule.due_at <= now


def _due_sort_key(card: CandidateCard) -> Tuple[int, float, int, int]:
    schedule = card.schedule
    if schedule is None or schedule.due_at is None:
        due_key: Tuple[int, float] = (1, 0.0)
    else:
        due_key = (0, schedule.due_at.timestamp())
    if schedule is None:
        state_priority = 2
    else:
        state_priority = _DUE_STATE_PRIORITY.get(schedule.state, 3)
    return (*due_key, state_priority, card.card_id)


def _fallback_sort_key(card: CandidateCard) -> Tuple[int, int, int]:
    schedule = card.schedule
    if schedule is None:
        return (_FALLBACK_STATE_PRIORITY[CardState.NEW], 0, card.card_id)
    return (
        _FALLBACK_STATE_PRIORITY.get(schedule.state, 3),
        schedule.repetitions,
        card.card_id,
    )


def _bucket(card: CandidateCard) -> Optional[CardState]:
    """Return NEW for new/learning/unscheduled cards, else the card's state."""
    schedule = card.schedule
    if schedule is None or schedule.state in (CardState.NEW, CardState.LEARNING):
        return CardState.NEW
    if schedule.state in (CardState.REVIEW, CardState.LAPSED):
        return schedule.state
    return None


class DueQueueSelector:
    """Choose the next card to present and summarize what is due.

    Due cards are ordered by: scheduled before unscheduled, earliest
    ``due_at``, state priority (lapsed, review, then new/learning), card id.
    When nothing is due, one of the ``fallback_pool_size`` least-seen cards
    is picked at random from the injected ``rng``.
    """

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        fallback_pool_size: int = DEFAULT_FALLBACK_POOL_SIZE,
    ) -> None:
        if fallback_pool_size < 1:
            raise ValueError("fallback_pool_size must be a positive integer.")
        self._rng = rng if rng is not None else random.Random()
        self._fallback_pool_size = fallback_pool_size

    @staticmethod
    def _filtered(
        cards: Iterable[CandidateCard], predicate: Optional[CardPredicate]
    ) -> List[CandidateCard]:
        if predicate is None:
            return list(cards)
        return [card for card in cards if predicate(card)]

    def fallback_candidates(
        self,
        cards: Iterable[CandidateCard],
        predicate: Optional[CardPredicate] = None,
    ) -> List[CandidateCard]:
        """Return the least-seen slice the random fallback draws from."""
        universe = self._filtered(cards, predicate)
        universe.sort(key=_fallback_sort_key)
        return universe[: self._fallback_pool_size]

    def select_next(
        self,
        cards: Sequence[CandidateCard],
        now: datetime,
        predicate: Optional[CardPredicate] = None,
    ) -> Optional[Selection]:
        """Return the card to present next, or None when no cards are available."""
        universe = self._filtered(cards, predicate)
        if not universe:
            LOGGER.debug("No cards available for selection.")
            return None

        due = [card for card in universe if _is_due(card, now)]
        if due:
            chosen = min(due, key=_due_sort_key)
            LOGGER.debug("Selected due card %s out of %d due.", chosen.card_id, len(due))
            return Selection(card_id=chosen.card_id, reason="due")

        candidates = self.fallback_candidates(universe)
        chosen = self._rng.choice(candidates)
        LOGGER.debug(
            "Nothing due; picked card %s among %d least-seen candidates.",
            chosen.card_id,
            len(candidates),
        )
        return Selection(card_id=chosen.card_id, reason="least_seen")

    def due_counts(
        self,
        cards: Iterable[CandidateCard],
        now: datetime,
        predicate: Optional[CardPredicate] = None,
    ) -> DueCounts:
        """Count due and total cards per bucket over the filtered universe."""
        totals = {CardState.NEW: 0, CardState.REVIEW: 0, CardState.LAPSED: 0}
        due = dict(totals)
        for card in self._filtered(cards, predicate):
            bucket = _bucket(card)
            if bucket is None:
                continue
            totals[bucket] += 1
            if _is_due(card, now):
                due[bucket] += 1

        return DueCounts(
            new_due=due[CardState.NEW],
            review_due=due[CardState.REVIEW],
            lapsed_due=due[CardState.LAPSED],
            new_total=totals[CardState.NEW],
            review_total=totals[CardState.REVIEW],
            lapsed_total=totals[CardState.LAPSED],
        )
