"""Application configuration via pydantic-settings."""

from __future__ import annotations

from functools import lru_cache
from typing import List, Literal, Optional

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "CourtEase"
    app_version: str = "1.0.0"
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = False
    api_prefix: str = "/api/v1"
    log_level: str = "INFO"
    app_public_url: str = "http://localhost:3000"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    workers: int = 4

    # Database
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_user: str = "courtease"
    postgres_password: str = Field(default="courtease_secret")
    postgres_db: str = "courtease"
    database_url_override: Optional[str] = None
    db_pool_size: int = 20
    db_max_overflow: int = 10

    @computed_field
    @property
    def database_url(self) -> str:
        """Async database connection URL."""
        if self.database_url_override:
            return self.database_url_override
        return (
            f"postgresql+asyncpg://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    # Redis (Celery broker and result backend)
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_password: Optional[str] = None
    redis_db: int = 0

    @computed_field
    @property
    def redis_url(self) -> str:
        """Redis connection URL."""
        auth = f":{self.redis_password}@" if self.redis_password else ""
        return f"redis://{auth}{self.redis_host}:{self.redis_port}/{self.redis_db}"

    # JWT Authentication (tokens are issued by the auth provider)
    jwt_secret_key: str = Field(default="your-super-secret-key-change-in-production")
    jwt_algorithm: str = "HS256"

    # Midtrans
    midtrans_server_key: Optional[str] = None
    midtrans_snap_base_url: str = "https://app.sandbox.midtrans.com"
    midtrans_api_base_url: str = "https://api.sandbox.midtrans.com"
    midtrans_timeout_seconds: float = 10.0
    midtrans_timezone: str = "Asia/Jakarta"  # transaction_time is local WIB

    # Job triggers (cron caller shares this secret)
    cron_secret: Optional[str] = None

    # Booking rules
    payment_window_minutes: int = 180
    stale_booking_minutes: int = 30
    cancellation_lead_minutes: int = 120
    check_in_window_minutes: int = 60
    booking_horizon_months: int = 3

    # Expiry sweeps
    expiry_sweep_interval_minutes: int = 30
    sweep_batch_limit: int = 200

    # CORS
    cors_origins: List[str] = ["http://localhost:3000"]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
