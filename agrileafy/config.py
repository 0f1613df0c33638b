"""Worker configuration management."""
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import AnyUrl, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Global worker settings loaded from environment variables."""

    PROJECT_NAME: str = "Agri-Leafy Alert Notifier"
    DEBUG: bool = False

    DATABASE_URL: str = Field(
        "sqlite:///./agrileafy.db",
        description="SQLAlchemy database URL",
    )

    REDIS_URL: AnyUrl = Field(
        "redis://localhost:6379/0", description="Redis connection string for Celery"
    )
    CELERY_BROKER_URL: Optional[AnyUrl] = None
    CELERY_RESULT_BACKEND: Optional[AnyUrl] = None

    FIREBASE_CREDENTIALS_PATH: Optional[str] = Field(
        None,
        description="Service account JSON; application default credentials when unset",
    )
    FIREBASE_PROJECT_ID: Optional[str] = None
    PUSH_DRY_RUN: bool = Field(
        False, description="Validate multicast messages without delivering them"
    )
    NOTIFICATION_CHANNEL_ID: str = Field(
        "agri_leafy_alerts", description="Android notification channel for alerts"
    )

    ALERT_RETENTION_DAYS: int = Field(7, description="Maximum age of an alert record")
    SWEEP_TIMEZONE: str = Field(
        "Asia/Manila", description="Timezone for the retention schedule and naive timestamps"
    )
    SWEEP_HOUR: int = 0
    SWEEP_MINUTE: int = 0

    # Enqueue a notification task for every committed alert insert
    ALERT_TRIGGER_ENABLED: bool = True

    model_config = SettingsConfigDict(
        env_file=Path(__file__).resolve().parent.parent / ".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """Return cached worker settings instance."""

    return Settings()


settings = get_settings()
