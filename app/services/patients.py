# app/services/patients.py

from typing import List, Optional
from app.db.mongo import patients_collection, to_object_id
from app.services.users import get_users_by_ids


async def get_patient_by_user(user_id) -> Optional[dict]:
    oid = to_object_id(user_id)
    if oid is None:
        return None
    return await patients_collection.find_one({"user": oid})


async def populate_patients(patient_ids: list, user_fields: List[str], skip: int = 0, limit: int = 0) -> List[dict]:
    """Patients with the given ids, each with its owning user projected onto `user_fields`."""
    cursor = patients_collection.find({"_id": {"$in": list(patient_ids)}}).skip(skip)
    if limit:
        cursor = cursor.limit(limit)
    patients = await cursor.to_list(length=None)
    users = await get_users_by_ids([p.get("user") for p in patients], user_fields)
    for patient in patients:
        patient["user"] = users.get(patient.get("user"))
    return patients


async def get_patient_map(patient_ids: list, user_fields: List[str]) -> dict:
    patients = await populate_patients(patient_ids, user_fields)
    return {p["_id"]: p for p in patients}


def patient_full_name(patient: dict) -> str:
    user = patient.get("user") or {}
    return f"{user.get('first_name', '')} {user.get('last_name', '')}".strip()
