# app/services/availability.py

from datetime import date, datetime, time, timedelta
from typing import List, Optional, Tuple
from app.services.appointments import find_booked_times

WEEKDAYS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


def weekday_name(day: date) -> str:
    return WEEKDAYS[day.weekday()]


def day_range(day: date) -> Tuple[datetime, datetime]:
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


def find_day(availability: List[dict], day_name: str) -> Optional[dict]:
    return next((a for a in availability if a.get("day") == day_name), None)


def resolve_day_slots(availability: List[dict], day: date, booked_times: List[str]) -> dict:
    """
    Slots configured for the weekday of `day`, each flagged `is_booked`
    when one of `booked_times` matches its start time. A weekday that is
    absent or switched off has no slots.
    """
    day_name = weekday_name(day)
    schedule = find_day(availability, day_name)
    if not schedule or not schedule.get("is_available"):
        return {"day_of_week": day_name, "is_available": False, "available_slots": []}

    booked = set(booked_times)
    slots = [
        {**slot, "is_booked": slot.get("start_time") in booked}
        for slot in schedule.get("slots", [])
    ]
    return {"day_of_week": day_name, "is_available": True, "available_slots": slots}


async def get_day_availability(doctor: dict, day: date) -> dict:
    start, end = day_range(day)
    booked_times = await find_booked_times(doctor["_id"], start, end)
    return resolve_day_slots(doctor.get("availability", []), day, booked_times)
