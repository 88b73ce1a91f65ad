# app/models/appointment.py

from typing import Literal

AppointmentStatus = Literal["scheduled", "completed", "cancelled", "no-show"]

SCHEDULED = "scheduled"
COMPLETED = "completed"
CANCELLED = "cancelled"
NO_SHOW = "no-show"

# Appointments in these states do not occupy a slot
RELEASED_STATUSES = [CANCELLED, NO_SHOW]

DOCTOR_UNAVAILABLE_REASON = "Doctor no longer available"
