# app/models/user.py

DEFAULT_ROLE = "user"
DOCTOR_ROLE = "doctor"
ADMIN_ROLE = "admin"

# Roles allowed to create a doctor profile
PROFILE_CREATOR_ROLES = {DOCTOR_ROLE, ADMIN_ROLE}

# User fields exposed alongside doctor listings
PUBLIC_USER_FIELDS = ["first_name", "last_name", "email", "phone", "profile_image"]
DETAILED_USER_FIELDS = PUBLIC_USER_FIELDS + ["date_of_birth", "gender"]
REVIEWER_USER_FIELDS = ["first_name", "last_name", "profile_image"]
