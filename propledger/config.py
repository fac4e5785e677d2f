"""Application configuration using pydantic-settings"""
from functools import lru_cache
from typing import Optional, List
from pydantic_settings import BaseSettings
from pydantic import field_validator
import logging

logger = logging.getLogger(__name__)

# Persistent development secret key - stable across restarts
# In production, this MUST be overridden via SECRET_KEY environment variable
_DEV_SECRET_KEY = "dev-secret-key-for-local-development-only-change-in-production"


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Application
    APP_NAME: str = "PropLedger"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"

    # API
    API_PREFIX: str = "/api"
    ALLOWED_ORIGINS: str = "http://localhost:5173,http://localhost:3000"

    # Database
    # Use postgresql+asyncpg://... in production so row locks are enforced
    DATABASE_URL: str = "sqlite+aiosqlite:///./propledger.db"
    DATABASE_ECHO: bool = False

    # JWT Authentication
    SECRET_KEY: str = _DEV_SECRET_KEY
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    # Password Requirements
    PASSWORD_MIN_LENGTH: int = 6

    # Ledger
    LEDGER_NETWORK: str = "simulated"

    # Email/SMTP Settings
    SMTP_HOST: Optional[str] = None
    SMTP_PORT: int = 587
    SMTP_USER: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None
    SMTP_TLS: bool = True
    FROM_EMAIL: Optional[str] = None
    FROM_NAME: str = "PropLedger"

    @field_validator("SECRET_KEY")
    @classmethod
    def validate_secret_key(cls, v: str, info) -> str:
        environment = info.data.get("ENVIRONMENT", "development")
        if environment == "production":
            if v == _DEV_SECRET_KEY:
                raise ValueError(
                    "SECRET_KEY must be set via environment variable in production. "
                    "Do not use the default development key."
                )
            if len(v) < 32:
                raise ValueError("SECRET_KEY must be at least 32 characters in production")
        elif v == _DEV_SECRET_KEY:
            logger.warning(
                "Using default development SECRET_KEY. Override it via the "
                "SECRET_KEY environment variable outside development."
            )
        return v

    @property
    def allowed_origins_list(self) -> List[str]:
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",") if origin.strip()]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
