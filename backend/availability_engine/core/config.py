# backend/availability_engine/core/config.py
import logging
import os
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    environment: str = Field(default="development", description="Deployment environment name")
    is_testing: bool = False  # Set to True when running tests

    # Storage
    database_url: str = Field(
        default="sqlite:///./availability.db",
        description="SQLAlchemy URL backing the base, override and occupancy stores",
    )
    database_echo: bool = False

    # Resolution
    default_timezone: str = Field(
        default="UTC",
        description="Timezone applied when a provider has no registered profile",
    )
    status_horizon_days: int = Field(
        default=14,
        ge=1,
        le=366,
        description="Days searched forward when computing next_available_at",
    )

    # Per-provider write serialization
    provider_lock_timeout_seconds: float = Field(default=5.0, gt=0)
    provider_lock_ttl_seconds: int = Field(default=30, ge=1)

    # Redis (optional): distributed locks and shared resolved-window cache
    redis_url: Optional[str] = Field(default=None, description="Redis URL, e.g. redis://localhost:6379/0")

    availability_cache_enabled: bool = True
    availability_cache_ttl_seconds: int = Field(default=3600, ge=1)

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env" if not os.getenv("CI") else None,
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, v: str) -> str:
        level = (v or "INFO").strip().upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log level: {v}")
        return level

    @field_validator("default_timezone")
    @classmethod
    def _validate_default_timezone(cls, v: str) -> str:
        import pytz

        try:
            pytz.timezone(v)
        except pytz.UnknownTimeZoneError as exc:
            raise ValueError(f"Unknown timezone: {v}") from exc
        return v


settings = Settings()
