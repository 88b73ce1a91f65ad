# app/core/jwt.py

from datetime import datetime, timedelta
from typing import Optional
from jose import jwt
from app.core.config import settings


def create_jwt_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def create_user_token(user_id: str, role: str = "user") -> str:
    """Token for a platform user; `sub` carries the user id."""
    return create_jwt_token({"sub": str(user_id), "role": role})
