import os
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import AnyUrl, Field
from typing import Optional, List

env = os.getenv("APP_ENV", "development")
env_file = f".env.{env}"


class Settings(BaseSettings):
    database_url: AnyUrl
    # CORS origins can be overridden via CORS_ORIGINS env var (JSON list)
    cors_origins: List[str] = Field(default=["http://localhost:3000"])
    log_level: str = "INFO"

    # Shared secret the voice server sends in X-Internal-Secret
    internal_api_secret: str

    # Scheduling defaults, used when an organization has no value of its own
    default_timezone: str = "America/New_York"
    default_appointment_duration: int = Field(default=30, ge=5, le=480)
    placeholder_email_domain: str = "noreply.holarecep.com"

    # Cal.com
    cal_com_api_base: str = "https://api.cal.com/v2"
    cal_com_api_version: str = "2024-08-13"
    http_timeout_seconds: float = 10.0

    # Owner notifications (appointment_booked events). Logged only when unset.
    notification_webhook_url: Optional[str] = None

    model_config = SettingsConfigDict(
        env_file=env_file,
        env_file_encoding="utf-8",
        extra="ignore",
    )


settings = Settings()
