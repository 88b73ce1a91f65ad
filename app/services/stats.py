# app/services/stats.py

from datetime import datetime, timedelta
from typing import List, Optional, Tuple
from app.services.appointments import aggregate_monthly_counts

MONTH_NAMES = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]
WINDOW_MONTHS = 6


def month_window(now: datetime, months: int = WINDOW_MONTHS) -> List[Tuple[int, int]]:
    """(year, month) pairs ending at the month of `now`, oldest first."""
    current = now.year * 12 + (now.month - 1)
    pairs = []
    for offset in range(months - 1, -1, -1):
        year, month_index = divmod(current - offset, 12)
        pairs.append((year, month_index + 1))
    return pairs


def window_start(now: datetime, months: int = WINDOW_MONTHS) -> datetime:
    year, month = month_window(now, months)[0]
    return datetime(year, month, 1)


def fill_monthly_stats(buckets: List[dict], now: datetime, months: int = WINDOW_MONTHS) -> List[dict]:
    """
    Spread aggregated `{_id: {month, year}, count}` buckets over the fixed
    window. Every month of the window is present; months without a bucket
    count zero.
    """
    counts = {(b["_id"]["year"], b["_id"]["month"]): b["count"] for b in buckets}
    return [
        {"month": MONTH_NAMES[month - 1], "year": year, "count": counts.get((year, month), 0)}
        for year, month in month_window(now, months)
    ]


async def get_monthly_appointment_stats(doctor_id, now: Optional[datetime] = None) -> List[dict]:
    now = now or datetime.utcnow()
    buckets = await aggregate_monthly_counts(doctor_id, window_start(now))
    return fill_monthly_stats(buckets, now)


def day_bounds(now: datetime) -> Tuple[datetime, datetime, datetime]:
    """Start of today, start of tomorrow and the end of the following week."""
    today = datetime(now.year, now.month, now.day)
    tomorrow = today + timedelta(days=1)
    next_week = today + timedelta(days=7)
    return today, tomorrow, next_week


def recent_reviews(reviews: List[dict], count: Optional[int] = 5) -> List[dict]:
    return sorted(reviews, key=lambda r: r.get("date") or datetime.min, reverse=True)[:count]
