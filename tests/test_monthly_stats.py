import asyncio
from datetime import datetime

from app.services.stats import (
    day_bounds,
    fill_monthly_stats,
    get_monthly_appointment_stats,
    month_window,
    recent_reviews,
    window_start,
)


def test_month_window_crosses_year_boundary():
    assert month_window(datetime(2026, 3, 15)) == [
        (2025, 10), (2025, 11), (2025, 12), (2026, 1), (2026, 2), (2026, 3),
    ]


def test_window_start_is_first_day_five_months_back():
    assert window_start(datetime(2026, 3, 31, 23, 59)) == datetime(2025, 10, 1)
    assert window_start(datetime(2026, 10, 18)) == datetime(2026, 5, 1)


def test_no_appointments_gives_six_zero_months():
    stats = fill_monthly_stats([], datetime(2026, 10, 18))
    assert [s["month"] for s in stats] == ["May", "Jun", "Jul", "Aug", "Sep", "Oct"]
    assert all(s["year"] == 2026 for s in stats)
    assert all(s["count"] == 0 for s in stats)


def test_buckets_fill_matching_months_only():
    buckets = [
        {"_id": {"month": 12, "year": 2025}, "count": 4},
        {"_id": {"month": 2, "year": 2026}, "count": 7},
        # December of a different year must not leak into the window
        {"_id": {"month": 12, "year": 2024}, "count": 99},
    ]
    stats = fill_monthly_stats(buckets, datetime(2026, 3, 1))
    assert stats == [
        {"month": "Oct", "year": 2025, "count": 0},
        {"month": "Nov", "year": 2025, "count": 0},
        {"month": "Dec", "year": 2025, "count": 4},
        {"month": "Jan", "year": 2026, "count": 0},
        {"month": "Feb", "year": 2026, "count": 7},
        {"month": "Mar", "year": 2026, "count": 0},
    ]


def test_monthly_stats_queries_from_window_start(monkeypatch):
    seen = {}

    async def fake_aggregate(doctor_id, since):
        seen["doctor_id"] = doctor_id
        seen["since"] = since
        return [{"_id": {"month": 10, "year": 2026}, "count": 3}]

    monkeypatch.setattr("app.services.stats.aggregate_monthly_counts", fake_aggregate)

    stats = asyncio.run(get_monthly_appointment_stats("doc-1", now=datetime(2026, 10, 18, 9, 30)))

    assert seen == {"doctor_id": "doc-1", "since": datetime(2026, 5, 1)}
    assert len(stats) == 6
    assert stats[-1] == {"month": "Oct", "year": 2026, "count": 3}


def test_day_bounds():
    today, tomorrow, next_week = day_bounds(datetime(2026, 12, 30, 17, 45))
    assert today == datetime(2026, 12, 30)
    assert tomorrow == datetime(2026, 12, 31)
    assert next_week == datetime(2027, 1, 6)


def test_recent_reviews_newest_first():
    reviews = [{"rating": i, "date": datetime(2026, 1, i + 1)} for i in range(7)]
    latest = recent_reviews(reviews)
    assert [r["rating"] for r in latest] == [6, 5, 4, 3, 2]
    assert len(recent_reviews(reviews, count=None)) == 7
