import re
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_DAILY_AT_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    db_host: str = "host.docker.internal"
    db_port: int = 5432
    db_database: str = "docview"
    db_username: str = "docview"
    db_password: str = "secret"

    storage_backend: str = "postgres"

    history_order: Literal["asc", "desc"] = "desc"
    display_timezone: str = "UTC"
    audit_log_document_views: bool = True
    system_user_id: int = 1
    # id -> username directory for the memory backend, e.g. MEMORY_USERS='{"456": "jsmith"}'
    memory_users: dict[int, str] = Field(default_factory=dict)
    history_per_page: int = Field(default=10, ge=1)
    notifications_enabled: bool = True

    archive_period_days: int = 730
    archive_chunk_size: int = 1000
    archive_daily_at: str = "01:00"

    trash_retention_days: int = 90
    trash_cleanup_batch_size: int = 500
    trash_cleanup_daily_at: str = "02:00"

    max_job_attempts: int = 3
    index_batch_size: int = 100
    scheduler_poll_interval_seconds: int = 30

    @field_validator("archive_daily_at", "trash_cleanup_daily_at")
    @classmethod
    def _check_daily_at(cls, value: str) -> str:
        if not _DAILY_AT_PATTERN.match(value):
            raise ValueError(f"Expected HH:MM (24h), got '{value}'")
        return value
