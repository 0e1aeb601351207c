from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from geometa.memorizer.ledger import DailyStat, ReviewEvent, daily_stats


def test_empty_log_has_no_days() -> None:
    assert daily_stats([]) == []


def test_events_are_grouped_by_utc_day_in_order() -> None:
    plus_five = timezone(timedelta(hours=5))
    events = [
        ReviewEvent(card_id=1, quality=5, reviewed_at=datetime(2024, 3, 2, 9, 0, tzinfo=timezone.utc)),
        ReviewEvent(card_id=2, quality=1, reviewed_at=datetime(2024, 3, 1, 23, 59, tzinfo=timezone.utc)),
        ReviewEvent(card_id=1, quality=3, reviewed_at=datetime(2024, 3, 1, 8, 0, tzinfo=timezone.utc)),
        # 02:00 at UTC+5 is still the previous UTC day.
        ReviewEvent(card_id=3, quality=4, reviewed_at=datetime(2024, 3, 2, 2, 0, tzinfo=plus_five)),
        ReviewEvent(card_id=3, quality=2, reviewed_at=datetime(2024, 3, 2, 18, 0, tzinfo=timezone.utc)),
    ]

    stats = daily_stats(events)

    assert [stat.day for stat in stats] == [date(2024, 3, 1), date(2024, 3, 2)]
    assert stats[0].count == 3
    assert stats[0].success_rate == pytest.approx(2 / 3)
    assert stats[1] == DailyStat(day=date(2024, 3, 2), count=2, success_rate=0.5)


def test_days_without_reviews_are_skipped() -> None:
    events = [
        ReviewEvent(card_id=1, quality=0, reviewed_at=datetime(2024, 1, 1, tzinfo=timezone.utc)),
        ReviewEvent(card_id=1, quality=3, reviewed_at=datetime(2024, 1, 5, tzinfo=timezone.utc)),
    ]

    stats = daily_stats(events)

    assert [(stat.day.isoformat(), stat.count, stat.success_rate) for stat in stats] == [
        ("2024-01-01", 1, 0.0),
        ("2024-01-05", 1, 1.0),
    ]
