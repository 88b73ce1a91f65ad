# app/routers/doctor_portal.py
#
# Endpoints a doctor uses on their own profile. Every route resolves the
# profile from the authenticated user, so none of them take a doctor id.

import asyncio
from datetime import date, datetime, timedelta
from typing import List, Optional
from bson import ObjectId
from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from app.core.config import settings
from app.core.logger import logger
from app.db.mongo import transaction
from app.models.appointment import DOCTOR_UNAVAILABLE_REASON, SCHEDULED, AppointmentStatus
from app.models.doctor import (
    PROFILE_IMAGE_FOLDER,
    AvailabilityUpdate,
    DoctorProfileUpdate,
    EducationCreate,
)
from app.models.user import DEFAULT_ROLE, DETAILED_USER_FIELDS, REVIEWER_USER_FIELDS
from app.routers.deps import get_current_user, get_own_doctor
from app.services.appointments import (
    cancel_open_appointments,
    count_active_appointments,
    count_appointments,
    distinct_patient_ids,
    find_appointments,
    last_appointment,
)
from app.services.doctors import (
    apply_profile_updates,
    delete_doctor,
    mark_pending,
    populate_review_patients,
    populate_users,
    save_doctor,
    store_verification_documents,
)
from app.services.patients import patient_full_name, populate_patients
from app.services.stats import day_bounds, get_monthly_appointment_stats, recent_reviews
from app.services.storage import delete_file, upload_file
from app.services.users import get_user, set_profile_image, set_user_role
from app.utils.errors import BadRequestError, NotFoundError
from app.utils.pagination import build_pagination, build_pagination_meta
from app.utils.responses import format_response

router = APIRouter(tags=["doctor portal"])


@router.get("/dashboard", summary="Dashboard statistics for the signed-in doctor")
async def get_dashboard_stats(doctor: dict = Depends(get_own_doctor)):
    doctor_id = doctor["_id"]
    today, tomorrow, next_week = day_bounds(datetime.utcnow())

    today_appointments = await find_appointments(
        {"doctor": doctor_id, "appointment_date": {"$gte": today, "$lt": tomorrow}},
        REVIEWER_USER_FIELDS,
    )
    upcoming_appointments = await count_appointments({
        "doctor": doctor_id,
        "appointment_date": {"$gt": tomorrow, "$lte": next_week},
        "status": SCHEDULED,
    })
    total_appointments = await count_appointments({"doctor": doctor_id})
    patient_ids = await distinct_patient_ids(doctor_id)
    monthly_stats = await get_monthly_appointment_stats(doctor_id)

    return format_response(
        success=True,
        data={
            "today_appointments": today_appointments,
            "upcoming_appointments": upcoming_appointments,
            "total_appointments": total_appointments,
            "total_patients": len(patient_ids),
            "average_rating": doctor.get("average_rating", 0),
            "total_reviews": doctor.get("total_reviews", 0),
            "monthly_stats": monthly_stats,
            "recent_reviews": recent_reviews(doctor.get("reviews", [])),
        },
    )


@router.get("/profile", summary="Get own doctor profile")
async def get_doctor_profile(doctor: dict = Depends(get_own_doctor)):
    await populate_users([doctor], DETAILED_USER_FIELDS)
    return format_response(success=True, data=doctor)


@router.put("/profile", summary="Update own doctor profile")
async def update_doctor_profile(
    payload: DoctorProfileUpdate,
    doctor: dict = Depends(get_own_doctor),
):
    apply_profile_updates(doctor, payload)
    await save_doctor(doctor)
    return format_response(success=True, data=doctor, message="Doctor profile updated successfully")


@router.put("/availability", summary="Replace own weekly schedule")
async def update_availability(
    body: AvailabilityUpdate,
    doctor: dict = Depends(get_own_doctor),
):
    doctor["availability"] = [day.model_dump() for day in body.availability]
    await save_doctor(doctor)
    return format_response(success=True, data=doctor["availability"], message="Availability updated successfully")


@router.put("/toggle-availability", summary="Switch accepting new appointments on or off")
async def toggle_doctor_availability(doctor: dict = Depends(get_own_doctor)):
    doctor["is_available"] = not doctor.get("is_available", True)
    await save_doctor(doctor)

    state = "available" if doctor["is_available"] else "unavailable"
    return format_response(
        success=True,
        data={"is_available": doctor["is_available"]},
        message=f"You are now {state} for new appointments",
    )


@router.post("/verification-documents", summary="Upload verification documents")
async def upload_verification_documents(
    files: Optional[List[UploadFile]] = File(None),
    doctor: dict = Depends(get_own_doctor),
):
    if not files:
        raise BadRequestError("No files were uploaded")

    uploaded = await store_verification_documents(files)
    doctor["verification_documents"] = doctor.get("verification_documents", []) + uploaded
    mark_pending(doctor)

    await save_doctor(doctor)
    return format_response(success=True, data=uploaded, message="Documents uploaded successfully")


@router.get("/appointments", summary="List own appointments")
async def get_doctor_appointments(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_LIMIT, ge=1),
    appointment_status: Optional[AppointmentStatus] = Query(None, alias="status"),
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    doctor: dict = Depends(get_own_doctor),
):
    skip, limit = build_pagination(page, limit)
    query = {"doctor": doctor["_id"]}
    if appointment_status:
        query["status"] = appointment_status
    if start_date and end_date:
        # end_date is inclusive
        query["appointment_date"] = {
            "$gte": datetime.combine(start_date, datetime.min.time()),
            "$lt": datetime.combine(end_date + timedelta(days=1), datetime.min.time()),
        }

    appointments = await find_appointments(query, DETAILED_USER_FIELDS, skip, limit)
    total = await count_appointments(query)
    return format_response(
        success=True,
        data=appointments,
        pagination=build_pagination_meta(total, page, limit),
    )


@router.get("/patients", summary="List patients seen by the signed-in doctor")
async def get_doctor_patients(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_LIMIT, ge=1),
    search: Optional[str] = None,
    doctor: dict = Depends(get_own_doctor),
):
    skip, limit = build_pagination(page, limit)
    patient_ids = await distinct_patient_ids(doctor["_id"])

    if search:
        needle = search.lower()
        candidates = await populate_patients(patient_ids, REVIEWER_USER_FIELDS)
        patient_ids = [p["_id"] for p in candidates if needle in patient_full_name(p).lower()]

    total = len(patient_ids)
    patients = await populate_patients(patient_ids, DETAILED_USER_FIELDS, skip, limit)

    async def with_stats(patient: dict) -> dict:
        appointment_count, latest = await asyncio.gather(
            count_appointments({"doctor": doctor["_id"], "patient": patient["_id"]}),
            last_appointment(doctor["_id"], patient["_id"]),
        )
        return {
            "patient": patient,
            "stats": {"appointment_count": appointment_count, "last_appointment": latest},
        }

    results = await asyncio.gather(*(with_stats(patient) for patient in patients))

    return format_response(
        success=True,
        data=results,
        pagination=build_pagination_meta(total, page, limit),
    )


@router.get("/reviews", summary="Own reviews, newest first")
async def get_doctor_reviews(doctor: dict = Depends(get_own_doctor)):
    await populate_review_patients(doctor)
    reviews = recent_reviews(doctor.get("reviews", []), count=None)
    return format_response(
        success=True,
        data={
            "reviews": reviews,
            "average_rating": doctor.get("average_rating", 0),
            "total_reviews": doctor.get("total_reviews", 0),
        },
    )


@router.post("/education", status_code=status.HTTP_201_CREATED, summary="Add a qualification")
async def add_education(
    education: EducationCreate,
    doctor: dict = Depends(get_own_doctor),
):
    if not education.degree or not education.institution or not education.year:
        raise BadRequestError("Please provide degree, institution and year")

    doctor.setdefault("qualifications", []).append({"_id": ObjectId(), **education.model_dump()})
    await save_doctor(doctor)
    return format_response(success=True, data=doctor["qualifications"], message="Education added successfully")


@router.delete("/education/{edu_id}", summary="Remove a qualification")
async def remove_education(edu_id: str, doctor: dict = Depends(get_own_doctor)):
    qualifications = doctor.get("qualifications", [])
    index = next((i for i, q in enumerate(qualifications) if str(q.get("_id")) == edu_id), None)
    if index is None:
        raise NotFoundError("Education not found")

    qualifications.pop(index)
    await save_doctor(doctor)
    return format_response(success=True, data=qualifications, message="Education removed successfully")


@router.put("/profile-image", summary="Replace own profile image")
async def update_profile_image(
    image: Optional[UploadFile] = File(None),
    current_user: dict = Depends(get_current_user),
):
    user = await get_user(current_user["user_id"])
    if not user:
        raise NotFoundError("User not found")

    if image is None or not image.filename:
        raise BadRequestError("No image file was uploaded")

    if user.get("profile_image"):
        try:
            await delete_file(user["profile_image"])
        except Exception as e:
            logger.error(f"Error deleting old profile image {user['profile_image']}: {e}")

    uploaded = await upload_file(image, PROFILE_IMAGE_FOLDER)
    await set_profile_image(user["_id"], uploaded["url"])

    return format_response(
        success=True,
        data={"profile_image": uploaded["url"]},
        message="Profile image updated successfully",
    )


@router.delete("", summary="Delete own doctor account")
async def delete_doctor_account(
    doctor: dict = Depends(get_own_doctor),
    current_user: dict = Depends(get_current_user),
):
    active = await count_active_appointments(doctor["_id"], datetime.utcnow())
    if active > 0:
        raise BadRequestError(
            "Cannot delete account with active appointments. Please reschedule or cancel them first."
        )

    async with transaction() as session:
        for document in doctor.get("verification_documents", []):
            if not document.get("url"):
                continue
            try:
                await delete_file(document["url"])
            except Exception as e:
                logger.error(f"Error deleting file {document['url']}: {e}")

        await cancel_open_appointments(doctor["_id"], DOCTOR_UNAVAILABLE_REASON, session=session)
        await delete_doctor(doctor["_id"], session=session)

        user = await get_user(current_user["user_id"])
        if user:
            await set_user_role(user["_id"], DEFAULT_ROLE, session=session)

    logger.info(f"Doctor account {doctor['_id']} deleted by its owner")
    return format_response(success=True, message="Doctor account deleted successfully")
