from __future__ import annotations

import random
from datetime import datetime, timedelta, timezone
from typing import Optional, get_args, get_type_hints

from geometa.memorizer.filters import CardFilter
from geometa.memorizer.scheduler import CardState, ScheduleRecord
from geometa.memorizer.selection import (
    CandidateCard,
    DueCounts,
    DueQueueSelector,
    Selection,
    SelectionReason,
)


NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def _card(
    card_id: int,
    state: Optional[CardState] = None,
    due_in: timedelta = timedelta(0),
    repetitions: int = 0,
    country: str = "Brazil",
) -> CandidateCard:
    if state is None:
        return CandidateCard(card_id=card_id, country=country)
    schedule = ScheduleRecord(
        repetitions=repetitions,
        ease_factor=2.5,
        interval=1,
        state=state,
        lapses=0,
        due_at=NOW + due_in,
    )
    return CandidateCard(card_id=card_id, country=country, schedule=schedule)


def test_empty_universe_reports_no_cards() -> None:
    selector = DueQueueSelector(rng=random.Random(0))

    assert selector.select_next([], NOW) is None


def test_earliest_due_card_wins() -> None:
    cards = [
        _card(1, CardState.REVIEW, due_in=-timedelta(hours=1)),
        _card(2, CardState.REVIEW, due_in=-timedelta(days=2)),
        _card(3, CardState.REVIEW, due_in=timedelta(days=1)),
    ]
    selection = DueQueueSelector().select_next(cards, NOW)

    assert selection is not None
    assert selection.card_id == 2
    assert selection.reason == "due"


def test_scheduled_cards_come_before_unscheduled() -> None:
    cards = [
        _card(1),
        _card(5, CardState.NEW, due_in=-timedelta(minutes=1)),
    ]

    assert DueQueueSelector().select_next(cards, NOW).card_id == 5


def test_state_priority_breaks_due_time_ties() -> None:
    cards = [
        _card(1, CardState.LEARNING),
        _card(2, CardState.REVIEW),
        _card(3, CardState.LAPSED),
    ]

    assert DueQueueSelector().select_next(cards, NOW).card_id == 3


def test_card_id_is_final_tie_break() -> None:
    cards = [_card(9), _card(4), _card(7)]

    assert DueQueueSelector().select_next(cards, NOW).card_id == 4


def test_due_selection_is_deterministic() -> None:
    cards = [_card(i, CardState.REVIEW, due_in=-timedelta(minutes=i % 3)) for i in range(1, 30)]
    first = DueQueueSelector(rng=random.Random(1)).select_next(cards, NOW)
    second = DueQueueSelector(rng=random.Random(2)).select_next(list(reversed(cards)), NOW)

    assert first == second


def test_fallback_draws_from_least_seen_slice() -> None:
    cards = [
        _card(i, CardState.REVIEW, due_in=timedelta(days=3), repetitions=i) for i in range(1, 16)
    ]
    cards.append(_card(50, CardState.LAPSED, due_in=timedelta(days=1), repetitions=8))
    cards.append(_card(60, CardState.LEARNING, due_in=timedelta(minutes=5), repetitions=1))
    selector = DueQueueSelector(rng=random.Random(42))

    candidates = [card.card_id for card in selector.fallback_candidates(cards)]
    assert candidates == [60, 50, 1, 2, 3, 4, 5, 6, 7, 8]

    for _ in range(25):
        selection = selector.select_next(cards, NOW)
        assert selection.reason == "least_seen"
        assert selection.card_id in candidates


def test_fallback_is_reproducible_with_seeded_rng() -> None:
    cards = [_card(i, CardState.REVIEW, due_in=timedelta(days=1)) for i in range(1, 6)]
    picks_a = [DueQueueSelector(rng=random.Random(7)).select_next(cards, NOW).card_id for _ in range(3)]
    picks_b = [DueQueueSelector(rng=random.Random(7)).select_next(cards, NOW).card_id for _ in range(3)]

    assert picks_a == picks_b


def test_predicate_applies_to_due_and_fallback_paths() -> None:
    cards = [
        _card(1, CardState.REVIEW, due_in=-timedelta(days=1), country="Brazil"),
        _card(2, CardState.REVIEW, due_in=timedelta(days=1), country="Kenya"),
        _card(3, CardState.NEW, due_in=timedelta(days=1), country="Kenya"),
    ]
    only_kenya = CardFilter.from_query("Kenya")
    selector = DueQueueSelector(rng=random.Random(3))

    selection = selector.select_next(cards, NOW, only_kenya.matches)
    assert selection.reason == "least_seen"
    assert selection.card_id in {2, 3}
    assert [card.card_id for card in selector.fallback_candidates(cards, only_kenya.matches)] == [3, 2]

    nowhere = CardFilter.from_query("Atlantis")
    assert selector.select_next(cards, NOW, nowhere.matches) is None


def test_due_counts_bucket_every_card_once() -> None:
    cards = [
        _card(1),
        _card(2, CardState.NEW),
        _card(3, CardState.LEARNING, due_in=timedelta(minutes=5)),
        _card(4, CardState.REVIEW, due_in=-timedelta(days=1)),
        _card(5, CardState.REVIEW, due_in=timedelta(days=4)),
        _card(6, CardState.LAPSED, due_in=-timedelta(seconds=1)),
        _card(7, CardState.LAPSED, due_in=timedelta(days=7)),
    ]

    counts = DueQueueSelector().due_counts(cards, NOW)

    assert counts == DueCounts(
        new_due=2,
        review_due=1,
        lapsed_due=1,
        new_total=3,
        review_total=2,
        lapsed_total=2,
    )
    assert counts.total == len(cards)
    assert counts.due == 4


def test_due_counts_respect_predicate() -> None:
    cards = [
        _card(1, country="Kenya"),
        _card(2, CardState.REVIEW, country="Brazil"),
    ]
    counts = DueQueueSelector().due_counts(cards, NOW, CardFilter.from_query("Kenya").matches)

    assert counts.total == 1
    assert counts.new_due == 1
    assert counts.review_total == 0


def test_selection_reason_is_due_or_least_seen() -> None:
    assert get_args(SelectionReason) == ("due", "least_seen")
    assert get_type_hints(Selection)["reason"] == SelectionReason

    selector = DueQueueSelector(rng=random.Random(0))
    due = selector.select_next([_card(1, CardState.REVIEW)], NOW)
    fallback = selector.select_next([_card(2, CardState.REVIEW, due_in=timedelta(days=1))], NOW)

    assert due is not None and due.reason in get_args(SelectionReason)
    assert fallback is not None and fallback.reason == "least_seen"
