from functools import lru_cache
from typing import Literal, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Global application settings."""

    # Application
    ENVIRONMENT: Literal["local", "development", "production", "test"] = "local"
    LOG_LEVEL: str = "INFO"
    TIMEZONE: str = "Asia/Kuala_Lumpur"

    # Database
    DATABASE_URL: str
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 1800

    # Field encryption for IC numbers. Required: the app refuses to start without it.
    KHAIRAT_ENCRYPTION_KEY: str

    # Auth (tokens are issued elsewhere, we only verify them)
    AUTH_JWT_SECRET: str = "test-jwt-secret"
    AUTH_JWT_ALGORITHM: str = "HS256"

    # Notifications
    WHATSAPP_API_URL: Optional[str] = None
    WHATSAPP_ACCESS_TOKEN: Optional[str] = None
    EMAIL_API_URL: Optional[str] = None
    EMAIL_API_KEY: Optional[str] = None
    EMAIL_FROM: str = "khairat@masjid.local"
    NOTIFICATION_TIMEOUT: float = 15.0

    # Khairat
    DEFAULT_FEE_AMOUNT: float = 50.00
    UPLOAD_HISTORY_LIMIT: int = 20

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    @field_validator("DATABASE_URL")
    @classmethod
    def assemble_db_connection(cls, v: Optional[str]) -> str:
        if isinstance(v, str):
            if v.startswith("postgresql://"):
                return v.replace("postgresql://", "postgresql+psycopg://", 1)
            if v.startswith("sqlite:///") or v == "sqlite://":
                return v.replace("sqlite://", "sqlite+aiosqlite://", 1)
        return v

    @field_validator("KHAIRAT_ENCRYPTION_KEY")
    @classmethod
    def require_encryption_key(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("KHAIRAT_ENCRYPTION_KEY must not be empty")
        return v.strip()


@lru_cache
def get_settings() -> Settings:
    """
    Return the global settings instance, cached.
    """
    return Settings()
