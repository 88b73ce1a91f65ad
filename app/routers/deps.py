# app/routers/deps.py

from fastapi import Depends, HTTPException, status
from jose import jwt, JWTError
from app.core.config import settings
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from fastapi import Security
from app.models.user import ADMIN_ROLE, DEFAULT_ROLE
from app.services.doctors import get_doctor_by_user
from app.utils.errors import ForbiddenError, NotFoundError, UnauthorizedRequestError

bearer_scheme = HTTPBearer()

def get_current_user(token: HTTPAuthorizationCredentials = Security(bearer_scheme)) -> dict:
    try:
        payload = jwt.decode(token.credentials, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
        user_id: str = payload.get("sub")
        role: str = payload.get("role", DEFAULT_ROLE)
        if user_id is None:
            raise UnauthorizedRequestError("Invalid token")
        return {"user_id": user_id, "role": role}
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Could not validate credentials"
        )


def require_admin(current_user: dict = Depends(get_current_user)):
    if current_user["role"] != ADMIN_ROLE:
        raise ForbiddenError("Admin access required")
    return current_user


async def get_own_doctor(current_user: dict = Depends(get_current_user)) -> dict:
    """Doctor profile owned by the authenticated user."""
    doctor = await get_doctor_by_user(current_user["user_id"])
    if not doctor:
        raise NotFoundError("Doctor profile not found")
    return doctor


def is_owner(doctor: dict, current_user: dict) -> bool:
    return str(doctor.get("user")) == current_user["user_id"]
