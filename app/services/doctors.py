# app/services/doctors.py

from datetime import datetime
from typing import List, Optional
from app.db.mongo import doctors_collection, to_object_id
from app.models.doctor import VERIFICATION_FOLDER, DoctorProfileUpdate, qualification_entries
from app.models.user import PUBLIC_USER_FIELDS, REVIEWER_USER_FIELDS
from app.services.patients import get_patient_map
from app.services.storage import upload_file
from app.services.users import get_users_by_ids
from app.utils.pagination import build_sort


async def get_doctor(doctor_id) -> Optional[dict]:
    oid = to_object_id(doctor_id)
    if oid is None:
        return None
    return await doctors_collection.find_one({"_id": oid})


async def get_doctor_by_user(user_id) -> Optional[dict]:
    oid = to_object_id(user_id)
    if oid is None:
        return None
    return await doctors_collection.find_one({"user": oid})


async def get_doctor_by_registration(registration_number: str) -> Optional[dict]:
    return await doctors_collection.find_one({"registration_number": registration_number})


async def find_doctors(query: dict, skip: int, limit: int) -> List[dict]:
    """Matching doctors, best rated first, with public user details attached."""
    cursor = (
        doctors_collection.find(query)
        .sort(build_sort("average_rating"))
        .skip(skip)
        .limit(limit)
    )
    doctors = await cursor.to_list(length=limit)
    return await populate_users(doctors, PUBLIC_USER_FIELDS)


async def count_doctors(query: dict) -> int:
    return await doctors_collection.count_documents(query)


async def insert_doctor(doctor: dict, session=None) -> dict:
    result = await doctors_collection.insert_one(doctor, session=session)
    doctor["_id"] = result.inserted_id
    return doctor


async def save_doctor(doctor: dict, session=None) -> dict:
    """Write the whole document back. Concurrent saves are last-write-wins."""
    doctor["updated_at"] = datetime.utcnow()
    await doctors_collection.replace_one({"_id": doctor["_id"]}, doctor, session=session)
    return doctor


async def delete_doctor(doctor_id, session=None):
    await doctors_collection.delete_one({"_id": to_object_id(doctor_id)}, session=session)


async def populate_users(doctors: List[dict], fields: List[str]) -> List[dict]:
    users = await get_users_by_ids([d.get("user") for d in doctors], fields)
    for doctor in doctors:
        doctor["user"] = users.get(doctor.get("user"))
    return doctors


async def populate_review_patients(doctor: dict) -> dict:
    reviews = doctor.get("reviews", [])
    patients = await get_patient_map([r.get("patient") for r in reviews], REVIEWER_USER_FIELDS)
    for review in reviews:
        patient = patients.get(review.get("patient"))
        if patient is not None:
            review["patient"] = {"_id": patient["_id"], "user": patient.get("user")}
    return doctor


async def store_verification_documents(files) -> List[dict]:
    """Upload each file in turn; the first failure stops the loop."""
    documents = []
    for file in files or []:
        uploaded = await upload_file(file, VERIFICATION_FOLDER)
        documents.append({"name": file.filename, "url": uploaded["url"], "verified": False})
    return documents


def mark_pending(doctor: dict) -> dict:
    """New credentials send a verified profile back for review."""
    if doctor.get("is_verified"):
        doctor["is_verified"] = False
        doctor["verification_status"] = "pending"
    return doctor


def apply_profile_updates(doctor: dict, payload: DoctorProfileUpdate) -> dict:
    """Copy the fields present in `payload` onto the stored document."""
    changes = payload.model_dump(exclude_none=True)
    if payload.qualifications is not None:
        changes["qualifications"] = qualification_entries(payload.qualifications)
    doctor.update(changes)
    return doctor
