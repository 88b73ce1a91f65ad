# app/services/appointments.py

from datetime import datetime
from typing import List, Optional
from pymongo import DESCENDING
from app.db.mongo import appointments_collection, to_object_id
from app.models.appointment import COMPLETED, CANCELLED, SCHEDULED, RELEASED_STATUSES
from app.services.patients import get_patient_map

APPOINTMENT_SORT = [("appointment_date", DESCENDING), ("appointment_time", DESCENDING)]


async def find_appointments(query: dict, user_fields: List[str], skip: int = 0, limit: int = 0) -> List[dict]:
    """Appointments newest first, each with its patient (and the patient's user) attached."""
    cursor = appointments_collection.find(query).sort(APPOINTMENT_SORT).skip(skip)
    if limit:
        cursor = cursor.limit(limit)
    appointments = await cursor.to_list(length=None)
    patients = await get_patient_map([a.get("patient") for a in appointments], user_fields)
    for appointment in appointments:
        patient = patients.get(appointment.get("patient"))
        if patient is not None:
            appointment["patient"] = {"_id": patient["_id"], "user": patient.get("user")}
    return appointments


async def count_appointments(query: dict) -> int:
    return await appointments_collection.count_documents(query)


async def distinct_patient_ids(doctor_id) -> list:
    return await appointments_collection.distinct("patient", {"doctor": to_object_id(doctor_id)})


async def last_appointment(doctor_id, patient_id) -> Optional[dict]:
    return await appointments_collection.find_one(
        {"doctor": to_object_id(doctor_id), "patient": patient_id},
        sort=APPOINTMENT_SORT,
    )


async def count_active_appointments(doctor_id, now: datetime) -> int:
    """Scheduled appointments that have not happened yet."""
    return await appointments_collection.count_documents({
        "doctor": to_object_id(doctor_id),
        "status": SCHEDULED,
        "appointment_date": {"$gte": now},
    })


async def cancel_open_appointments(doctor_id, reason: str, session=None) -> int:
    result = await appointments_collection.update_many(
        {"doctor": to_object_id(doctor_id), "status": {"$ne": COMPLETED}},
        {"$set": {"status": CANCELLED, "cancellation_reason": reason}},
        session=session,
    )
    return result.modified_count


async def find_booked_times(doctor_id, start: datetime, end: datetime) -> List[str]:
    """Start times of appointments that still occupy a slot in [start, end)."""
    cursor = appointments_collection.find(
        {
            "doctor": to_object_id(doctor_id),
            "appointment_date": {"$gte": start, "$lt": end},
            "status": {"$nin": RELEASED_STATUSES},
        },
        {"appointment_time": 1},
    )
    return [a.get("appointment_time") async for a in cursor]


async def has_completed_appointment(doctor_id, patient_id) -> bool:
    found = await appointments_collection.find_one({
        "doctor": to_object_id(doctor_id),
        "patient": patient_id,
        "status": COMPLETED,
    })
    return found is not None


async def aggregate_monthly_counts(doctor_id, since: datetime) -> List[dict]:
    """Appointment counts grouped by creation (month, year), for records created on/after `since`."""
    pipeline = [
        {"$match": {"doctor": to_object_id(doctor_id), "created_at": {"$gte": since}}},
        {
            "$group": {
                "_id": {"month": {"$month": "$created_at"}, "year": {"$year": "$created_at"}},
                "count": {"$sum": 1},
            }
        },
        {"$sort": {"_id.year": 1, "_id.month": 1}},
    ]
    return await appointments_collection.aggregate(pipeline).to_list(length=None)
