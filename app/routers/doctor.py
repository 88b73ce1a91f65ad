# app/routers/doctor.py

import re
from datetime import date, datetime
from typing import List, Optional
from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile, status
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from app.core.config import settings
from app.core.logger import logger
from app.db.mongo import transaction
from app.models.doctor import (
    DEFAULT_REJECTION_REASON,
    AvailabilityUpdate,
    DoctorCreate,
    DoctorUpdate,
    RejectRequest,
    ReviewCreate,
    new_doctor_document,
)
from app.models.user import ADMIN_ROLE, DEFAULT_ROLE, DOCTOR_ROLE, PROFILE_CREATOR_ROLES, PUBLIC_USER_FIELDS
from app.routers.deps import get_current_user, is_owner, require_admin
from app.services.appointments import has_completed_appointment
from app.services.availability import get_day_availability
from app.services.doctors import (
    apply_profile_updates,
    count_doctors,
    delete_doctor,
    find_doctors,
    get_doctor,
    get_doctor_by_registration,
    get_doctor_by_user,
    insert_doctor,
    mark_pending,
    populate_review_patients,
    populate_users,
    save_doctor,
    store_verification_documents,
)
from app.services.patients import get_patient_by_user
from app.services.reviews import refresh_rating, upsert_review
from app.services.storage import delete_file
from app.services.users import find_doctor_user_ids, get_user, set_user_role
from app.utils.errors import BadRequestError, ForbiddenError, NotFoundError
from app.utils.pagination import build_pagination, build_pagination_meta
from app.utils.responses import format_response

router = APIRouter(tags=["doctors"])

# -----------------------------
# Helpers
# -----------------------------

def parse_form_model(model, raw: Optional[str]):
    """Validate the JSON `data` part of a multipart request against `model`."""
    try:
        return model.model_validate_json(raw or "{}")
    except ValidationError as e:
        raise RequestValidationError(e.errors(include_url=False, include_context=False))


def matches(value: str) -> dict:
    return {"$regex": re.escape(value), "$options": "i"}


async def paginated_doctors(query: dict, page: int, limit: int) -> dict:
    skip, limit = build_pagination(page, limit)
    doctors = await find_doctors(query, skip, limit)
    total = await count_doctors(query)
    return format_response(
        success=True,
        data=doctors,
        pagination=build_pagination_meta(total, page, limit),
    )


async def load_doctor(doctor_id: str) -> dict:
    doctor = await get_doctor(doctor_id)
    if not doctor:
        raise NotFoundError("Doctor not found")
    return doctor

# -----------------------------
# Public listing
# -----------------------------

@router.get("", summary="List verified doctors")
async def list_doctors(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_LIMIT, ge=1),
    specialty: Optional[str] = Query(None, description="Case-insensitive specialty match"),
    name: Optional[str] = Query(None, description="Doctor first or last name"),
):
    query = {"is_verified": True}
    if specialty:
        query["specialties"] = matches(specialty)
    if name:
        query["user"] = {"$in": await find_doctor_user_ids(re.escape(name))}
    return await paginated_doctors(query, page, limit)


@router.get("/search", summary="Search doctors by name or specialty")
async def search_doctors(
    query: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_LIMIT, ge=1),
):
    if not query:
        raise BadRequestError("Search query is required")

    user_ids = await find_doctor_user_ids(re.escape(query))
    filters = {
        "$or": [
            {"user": {"$in": user_ids}},
            {"specialties": matches(query)},
        ],
        "is_verified": True,
    }
    return await paginated_doctors(filters, page, limit)


@router.get("/specialty/{specialty}", summary="Filter doctors by specialty")
async def filter_doctors_by_specialty(
    specialty: str,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_LIMIT, ge=1),
):
    if not specialty.strip():
        raise BadRequestError("Specialty is required")
    query = {"specialties": matches(specialty), "is_verified": True}
    return await paginated_doctors(query, page, limit)

# -----------------------------
# Profile lifecycle
# -----------------------------

@router.post("", status_code=status.HTTP_201_CREATED, summary="Create a doctor profile")
async def create_doctor(
    data: str = Form(..., description="Doctor profile as JSON"),
    files: Optional[List[UploadFile]] = File(None),
    current_user: dict = Depends(get_current_user),
):
    payload = parse_form_model(DoctorCreate, data)

    existing = await get_doctor_by_registration(payload.registration_number)
    if existing:
        raise BadRequestError("Doctor with this registration number already exists")

    user = await get_user(current_user["user_id"])
    if not user:
        raise NotFoundError("User not found")

    if user.get("role") not in PROFILE_CREATOR_ROLES:
        raise ForbiddenError("User is not authorized to create a doctor profile")

    if await get_doctor_by_user(user["_id"]):
        raise BadRequestError("A doctor profile already exists for this user")

    verification_documents = await store_verification_documents(files)
    doctor = new_doctor_document(user["_id"], payload, verification_documents)

    async with transaction() as session:
        await insert_doctor(doctor, session=session)
        if user.get("role") != DOCTOR_ROLE:
            await set_user_role(user["_id"], DOCTOR_ROLE, session=session)

    logger.info(f"Doctor profile {doctor['_id']} created for user {user['_id']}")
    return format_response(
        success=True,
        data=doctor,
        message="Doctor profile created successfully and pending verification",
    )


@router.get("/{doctor_id}", summary="Get a verified doctor by id")
async def get_doctor_by_id(doctor_id: str):
    doctor = await load_doctor(doctor_id)

    # Unverified profiles are never public
    if not doctor.get("is_verified"):
        raise ForbiddenError("This doctor profile is not available")

    await populate_users([doctor], PUBLIC_USER_FIELDS)
    await populate_review_patients(doctor)
    return format_response(success=True, data=doctor)


@router.put("/{doctor_id}", summary="Update a doctor profile (owner or admin)")
async def update_doctor(
    doctor_id: str,
    request: Request,
    data: Optional[str] = Form(None, description="Changed profile fields as JSON"),
    files: Optional[List[UploadFile]] = File(None),
    current_user: dict = Depends(get_current_user),
):
    doctor = await load_doctor(doctor_id)

    if not is_owner(doctor, current_user) and current_user["role"] != ADMIN_ROLE:
        raise ForbiddenError("Not authorized to update this profile")

    # Plain JSON bodies are accepted as well as multipart
    if data is None and request.headers.get("content-type", "").startswith("application/json"):
        data = (await request.body()).decode() or None

    if data is None and not files:
        raise BadRequestError("No profile changes were provided")

    payload = parse_form_model(DoctorUpdate, data)
    apply_profile_updates(doctor, payload)

    if files:
        # Documents already uploaded stay in storage if a later upload fails
        doctor["verification_documents"] = doctor.get("verification_documents", []) + (
            await store_verification_documents(files)
        )
        mark_pending(doctor)

    await save_doctor(doctor)
    return format_response(success=True, data=doctor, message="Doctor profile updated successfully")


@router.put("/{doctor_id}/verify", summary="Verify a doctor (admin)")
async def verify_doctor(doctor_id: str, current_user: dict = Depends(require_admin)):
    doctor = await load_doctor(doctor_id)

    doctor["is_verified"] = True
    doctor["verification_status"] = "verified"
    doctor["rejection_reason"] = None
    for document in doctor.get("verification_documents", []):
        document["verified"] = True

    await save_doctor(doctor)
    logger.info(f"Doctor {doctor_id} verified by {current_user['user_id']}")
    return format_response(success=True, data=doctor, message="Doctor verified successfully")


@router.put("/{doctor_id}/reject", summary="Reject a doctor's verification (admin)")
async def reject_doctor(
    doctor_id: str,
    body: Optional[RejectRequest] = None,
    current_user: dict = Depends(require_admin),
):
    doctor = await load_doctor(doctor_id)

    doctor["is_verified"] = False
    doctor["verification_status"] = "rejected"
    doctor["rejection_reason"] = (body.reason if body else None) or DEFAULT_REJECTION_REASON

    await save_doctor(doctor)
    logger.info(f"Doctor {doctor_id} rejected by {current_user['user_id']}")
    return format_response(success=True, data=doctor, message="Doctor verification rejected")


@router.delete("/{doctor_id}", summary="Delete a doctor profile (admin)")
async def delete_doctor_by_admin(doctor_id: str, current_user: dict = Depends(require_admin)):
    doctor = await load_doctor(doctor_id)

    async with transaction() as session:
        for document in doctor.get("verification_documents", []):
            await delete_file(document["url"])

        await delete_doctor(doctor["_id"], session=session)

        user = await get_user(doctor.get("user"))
        if user:
            await set_user_role(user["_id"], DEFAULT_ROLE, session=session)

    logger.info(f"Doctor {doctor_id} deleted by admin {current_user['user_id']}")
    return format_response(success=True, message="Doctor profile deleted successfully")

# -----------------------------
# Reviews & availability
# -----------------------------

@router.post("/{doctor_id}/reviews", summary="Review a doctor after a completed appointment")
async def add_doctor_review(
    doctor_id: str,
    review: ReviewCreate,
    current_user: dict = Depends(get_current_user),
):
    if review.rating is None or review.rating < 1 or review.rating > 5:
        raise BadRequestError("Rating must be between 1 and 5")

    doctor = await load_doctor(doctor_id)

    patient = await get_patient_by_user(current_user["user_id"])
    if not patient:
        raise NotFoundError("Patient profile not found")

    if not await has_completed_appointment(doctor["_id"], patient["_id"]):
        raise ForbiddenError("You can only review doctors after completing an appointment")

    doctor["reviews"] = upsert_review(
        doctor.get("reviews", []), patient["_id"], review.rating, review.comment, datetime.utcnow()
    )
    refresh_rating(doctor)
    await save_doctor(doctor)

    return format_response(success=True, data=doctor["reviews"], message="Review added successfully")


@router.get("/{doctor_id}/availability", summary="Weekly schedule, or slots for a date")
async def get_doctor_availability(
    doctor_id: str,
    day: Optional[date] = Query(None, alias="date", description="YYYY-MM-DD"),
):
    doctor = await load_doctor(doctor_id)

    if day is not None:
        return format_response(success=True, data=await get_day_availability(doctor, day))

    return format_response(success=True, data=doctor.get("availability", []))


@router.put("/{doctor_id}/availability", summary="Replace a doctor's weekly schedule (owner)")
async def update_doctor_availability(
    doctor_id: str,
    body: AvailabilityUpdate,
    current_user: dict = Depends(get_current_user),
):
    doctor = await load_doctor(doctor_id)

    if not is_owner(doctor, current_user):
        raise ForbiddenError("Not authorized to update availability")

    doctor["availability"] = [day.model_dump() for day in body.availability]
    await save_doctor(doctor)
    return format_response(success=True, data=doctor["availability"], message="Availability updated successfully")
