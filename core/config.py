"""
Application settings and configuration management using Pydantic Settings.
"""
from functools import lru_cache
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Application Settings
    app_name: str = Field(default="Telehealth Scheduling", description="Application name")
    app_env: str = Field(default="development", description="Environment (development, staging, production)")
    debug: bool = Field(default=False, description="Debug mode")
    log_level: str = Field(default="INFO", description="Logging level")

    # Database Configuration
    database_url: str = Field(
        default="sqlite:///./telehealth_scheduling.db",
        description="Database connection URL"
    )
    db_echo: bool = Field(default=False, description="Log all SQL statements")
    db_pool_pre_ping: bool = Field(default=True, description="Check connections before use")

    # Scheduling Configuration
    default_timezone: str = Field(default="Australia/Brisbane", description="Timezone for new availability blocks")
    slot_granularity_minutes: int = Field(default=5, ge=1, le=60, description="Length of one bookable slot")
    reservation_ttl_minutes: int = Field(default=10, ge=1, description="How long a slot hold survives")
    max_call_attempts: int = Field(default=3, ge=1, description="Call attempts before a booking can be marked no-answer")
    reschedule_cutoff_hours: int = Field(default=24, ge=0, description="Hours before the call after which rescheduling is closed")
    consultation_fee_cents: int = Field(default=4900, ge=0, description="Consultation price in cents")
    availability_search_days: int = Field(default=28, ge=1, le=366, description="Max days scanned by the availability calendar")

    # API Configuration
    api_v1_prefix: str = Field(default="/api/v1", description="Versioned API prefix")
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=8000, ge=1, le=65535, description="API port")

    # CORS Settings
    cors_origins: str = Field(
        default="http://localhost:3000,http://localhost:8080",
        description="Allowed CORS origins (comma-separated)"
    )
    cors_allow_credentials: bool = Field(default=True, description="Allow credentials in CORS")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is one of the allowed values."""
        allowed_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in allowed_levels:
            raise ValueError(f"log_level must be one of {allowed_levels}")
        return v_upper

    @field_validator("app_env")
    @classmethod
    def validate_app_env(cls, v: str) -> str:
        """Validate environment is one of the allowed values."""
        allowed_envs = ["development", "staging", "production"]
        v_lower = v.lower()
        if v_lower not in allowed_envs:
            raise ValueError(f"app_env must be one of {allowed_envs}")
        return v_lower

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins from comma-separated string to list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.app_env == "development"


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
