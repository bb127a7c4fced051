"""Application configuration using pydantic-settings."""

from pydantic import ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database
    DATABASE_URL: str = "sqlite:///./practice_sync.db"

    # Upstream practice-management API
    PMS_BASE_URL: str = "https://nexhealth.info"
    PMS_API_VERSION: str = "v20240412"
    PMS_TOKEN_TTL_SECONDS: int = 50 * 60  # tokens live 60 minutes upstream
    PMS_REQUEST_TIMEOUT_SECONDS: float = 30.0
    PMS_MAX_RETRIES: int = 3
    PMS_BACKOFF_BASE_SECONDS: float = 0.2
    PMS_BACKOFF_MULTIPLIER: float = 4.0
    PMS_RATE_LIMIT_DEFAULT_WAIT_SECONDS: float = 5.0
    PMS_MAX_RATE_LIMIT_WAITS: int = 20

    # Sync orchestration
    SYNC_PAGE_SIZE: int = 100
    SYNC_APPOINTMENT_WINDOW_DAYS: int = 90
    SYNC_INCREMENTAL_LOOKBACK_HOURS: int = 24
    SYNC_TIME_BUDGET_SECONDS: float = 15 * 60

    # Health monitoring
    HEALTH_DEGRADED_THRESHOLD_MS: int = 1000

    # Webhook signature secret used when a tenant has none of its own
    WEBHOOK_SECRET: str = ""

    # App settings
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"
    PMS_LOG_LEVEL: str = ""  # overrides LOG_LEVEL for the integrations package
    CORS_ORIGINS: list[str] = ["http://localhost:3000"]

    @field_validator("LOG_LEVEL", "PMS_LOG_LEVEL", mode="before")
    @classmethod
    def validate_log_level(cls, v: str, info: ValidationInfo) -> str:
        """Validate and normalize a level name to an uppercase Python logging level."""
        if info.field_name == "PMS_LOG_LEVEL" and not v:
            return ""
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"{info.field_name} must be one of {valid}, got {v!r}")
        return v.upper()

    @field_validator(
        "PMS_TOKEN_TTL_SECONDS",
        "PMS_REQUEST_TIMEOUT_SECONDS",
        "PMS_BACKOFF_MULTIPLIER",
        "SYNC_PAGE_SIZE",
        "SYNC_TIME_BUDGET_SECONDS",
    )
    @classmethod
    def validate_positive(cls, v: float) -> float:
        """Reject zero or negative values for knobs that divide time or pages."""
        if v <= 0:
            raise ValueError(f"must be positive, got {v!r}")
        return v

    @field_validator("PMS_MAX_RETRIES", "PMS_MAX_RATE_LIMIT_WAITS")
    @classmethod
    def validate_non_negative(cls, v: int) -> int:
        """Retry counts may be zero but never negative."""
        if v < 0:
            raise ValueError(f"must not be negative, got {v!r}")
        return v


settings = Settings()
