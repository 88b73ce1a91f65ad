# app/models/doctor.py

from datetime import datetime
from typing import List, Literal, Optional
from bson import ObjectId
from pydantic import BaseModel, Field, field_validator

Weekday = Literal["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]

DEFAULT_REJECTION_REASON = "Did not meet verification criteria"
VERIFICATION_FOLDER = "doctors/verification"
PROFILE_IMAGE_FOLDER = "users/profiles"


class Qualification(BaseModel):
    degree: str
    institution: str
    year: int
    description: Optional[str] = None


class ClinicDetails(BaseModel):
    name: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    pincode: Optional[str] = None
    phone: Optional[str] = None


class TimeSlot(BaseModel):
    start_time: str = Field(..., pattern=r"^\d{2}:\d{2}$", description="HH:MM")
    end_time: str = Field(..., pattern=r"^\d{2}:\d{2}$", description="HH:MM")
    is_available: bool = True


class DayAvailability(BaseModel):
    day: Weekday
    is_available: bool = True
    slots: List[TimeSlot] = []


class DoctorCreate(BaseModel):
    qualifications: List[Qualification] = []
    specialties: List[str] = []
    experience: Optional[int] = Field(default=None, ge=0)
    registration_number: str = Field(..., min_length=1)
    registration_council: Optional[str] = None
    clinic_details: Optional[ClinicDetails] = None
    hospital_affiliations: List[str] = []
    consultation_fee: Optional[float] = Field(default=None, ge=0)
    languages: List[str] = []
    bio: Optional[str] = None


class DoctorProfileUpdate(BaseModel):
    """Fields a doctor may edit on their own profile. Omitted fields are left untouched."""
    qualifications: Optional[List[Qualification]] = None
    specialties: Optional[List[str]] = None
    experience: Optional[int] = Field(default=None, ge=0)
    clinic_details: Optional[ClinicDetails] = None
    hospital_affiliations: Optional[List[str]] = None
    consultation_fee: Optional[float] = Field(default=None, ge=0)
    languages: Optional[List[str]] = None
    bio: Optional[str] = None
    video_consultation: Optional[bool] = None
    accepting_new_patients: Optional[bool] = None


class DoctorUpdate(DoctorProfileUpdate):
    availability: Optional[List[DayAvailability]] = None


class AvailabilityUpdate(BaseModel):
    availability: List[DayAvailability]


class RejectRequest(BaseModel):
    reason: Optional[str] = None


class ReviewCreate(BaseModel):
    rating: Optional[float] = None
    comment: Optional[str] = None


class EducationCreate(BaseModel):
    degree: Optional[str] = None
    institution: Optional[str] = None
    year: Optional[int] = None
    description: Optional[str] = None

    @field_validator("degree", "institution")
    @classmethod
    def blank_to_none(cls, v):
        if v is not None and not v.strip():
            return None
        return v


def new_doctor_document(user_id, payload: DoctorCreate, verification_documents: list) -> dict:
    """Build the stored document for a freshly created, unverified profile."""
    now = datetime.utcnow()
    doc = payload.model_dump()
    doc["qualifications"] = qualification_entries(payload.qualifications)
    doc.update({
        "user": user_id,
        "verification_documents": verification_documents,
        "availability": [],
        "reviews": [],
        "average_rating": 0,
        "total_reviews": 0,
        "is_verified": False,  # Requires admin approval
        "verification_status": "pending",
        "rejection_reason": None,
        "is_available": True,
        "video_consultation": False,
        "accepting_new_patients": True,
        "created_at": now,
        "updated_at": now,
    })
    return doc


def qualification_entries(qualifications: List[Qualification]) -> list:
    """Stored qualifications carry their own id so single entries can be removed."""
    return [{"_id": ObjectId(), **q.model_dump()} for q in qualifications]
