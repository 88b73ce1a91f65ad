# app/core/config.py

from typing import List
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # MongoDB settings
    MONGODB_URI: str = Field(default="mongodb://localhost:27017")
    MONGODB_DB: str = Field(default="doctor_platform")

    # Auth/JWT settings
    SECRET_KEY: str = Field(...)
    JWT_ALGORITHM: str = Field(default="HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(default=60 * 24)

    # File storage settings
    UPLOAD_DIR: str = Field(default="app/uploads")
    UPLOAD_URL_PREFIX: str = Field(default="/uploads")
    MAX_UPLOAD_SIZE: int = Field(default=5 * 1024 * 1024)  # 5MB

    # Listing defaults
    DEFAULT_PAGE_LIMIT: int = Field(default=10, gt=0)

    CORS_ORIGINS: List[str] = Field(default=["*"])

settings = Settings()
