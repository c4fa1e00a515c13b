"""Application settings read from the environment (and an optional .env file)"""
import os
from functools import lru_cache
from pathlib import Path
from typing import List

from dotenv import load_dotenv
from pydantic import BaseModel

BASE_DIR = Path(__file__).resolve().parent.parent


class Settings(BaseModel):
    database_url: str = "sqlite+aiosqlite:///./hotel.db"
    # "sql" or "memory"
    storage_backend: str = "sql"
    database_echo: bool = False

    secret_key: str = "hotel-reservation-dev-secret"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 8 * 60
    cookie_secure: bool = False

    cancellation_lead_days: int = 7

    admin_email: str = "admin@hotel.com"
    admin_password: str = "hola123"
    admin_name: str = "Admin Master"
    admin_phone: str = "555-1234"

    cors_origins: List[str] = ["http://localhost:3000", "http://localhost:3001"]
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv(dotenv_path=BASE_DIR / ".env")
        defaults = cls()
        origins = os.getenv("CORS_ORIGINS")
        return cls(
            database_url=os.getenv("DATABASE_URL", defaults.database_url),
            storage_backend=os.getenv("STORAGE_BACKEND", defaults.storage_backend).lower(),
            database_echo=os.getenv("DATABASE_ECHO", "false").lower() in ("1", "true", "yes"),
            secret_key=os.getenv("SECRET_KEY", defaults.secret_key),
            algorithm=os.getenv("JWT_ALGORITHM", defaults.algorithm),
            access_token_expire_minutes=int(
                os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", defaults.access_token_expire_minutes)
            ),
            cancellation_lead_days=int(
                os.getenv("CANCELLATION_LEAD_DAYS", defaults.cancellation_lead_days)
            ),
            admin_email=os.getenv("ADMIN_EMAIL", defaults.admin_email),
            admin_password=os.getenv("ADMIN_PASSWORD", defaults.admin_password),
            admin_name=os.getenv("ADMIN_NAME", defaults.admin_name),
            admin_phone=os.getenv("ADMIN_PHONE", defaults.admin_phone),
            cors_origins=(
                [o.strip() for o in origins.split(",") if o.strip()]
                if origins else defaults.cors_origins
            ),
            cookie_secure=os.getenv("COOKIE_SECURE", "false").lower() in ("1", "true", "yes"),
            log_level=os.getenv("LOG_LEVEL", defaults.log_level).upper(),
        )


@lru_cache()
def get_settings() -> Settings:
    return Settings.from_env()
