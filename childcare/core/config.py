from datetime import timedelta
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings

BASE_DIR = Path(__file__).resolve().parent.parent.parent


class Settings(BaseSettings):
    APP_NAME: str = "Childcare Center"
    API_PREFIX: str = "/api"

    DATABASE_URL: str = f"sqlite:///{BASE_DIR}/childcare.db"

    # DEV ONLY default, override with the SECRET_KEY env var
    SECRET_KEY: str = "change-me-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # API client
    API_BASE_URL: str = "http://localhost:8000/api"
    API_TIMEOUT_SECONDS: Optional[float] = None  # None waits indefinitely
    ASSIGNMENT_POLL_INTERVAL: float = 2.0

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()

ACCESS_TOKEN_EXPIRE = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
