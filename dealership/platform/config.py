from pathlib import Path
from typing import Dict, List, Literal, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # ── App ─────────────────────────────────────
    APP_NAME: str = "Car Dealership API"
    ENVIRONMENT: Literal["local", "staging", "production"] = "local"
    DEBUG: bool = True

    # ── Database ────────────────────────────────
    DATABASE_URL: str = "sqlite+aiosqlite:///./dealership.db"

    # ── JWT / Auth ──────────────────────────────
    JWT_SECRET_KEY: str = "your-secret-key-change-this-in-production"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7
    ALGORITHM: str = "HS256"

    SEED_ADMIN_EMAIL: Optional[str] = None
    SEED_ADMIN_PASSWORD: Optional[str] = None

    # ── OTP ─────────────────────────────────────
    OTP_EXPIRE_MINUTES: int = 5
    OTP_MAX_ATTEMPTS: int = 3
    OTP_CLEANUP_INTERVAL_SECONDS: int = 600
    OTP_SWEEPER_ENABLED: bool = True

    # ── Rate limiting ───────────────────────────
    REDIS_URL: str = "redis://localhost:6379/0"
    FORCE_IN_MEMORY_RATE_LIMITER: bool = False
    WHITELIST_IPS: List[str] = []
    # requests per minute, per client IP and path
    RATE_LIMITS: Dict[str, int] = {
        "/api/v1/otp/generate": 5,
        "/api/v1/auth/login/request-otp": 5,
        "/api/v1/auth/register/request-otp": 5,
        "/api/v1/purchase-requests/request-otp": 5,
    }

    class Config:
        env_file = str(Path(__file__).parent.parent.parent / ".env")
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"


settings = Settings()
