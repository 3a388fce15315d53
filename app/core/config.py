"""Configuration management for the Settlement Readiness Engine."""

from functools import lru_cache

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from .env file (only if accessible)
try:
    load_dotenv()
except (PermissionError, OSError):
    # In sandboxed environments, .env might not be accessible
    # Environment variables should be set directly
    pass


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    # Supabase configuration (required)
    SUPABASE_URL: str = Field(..., description="Supabase project URL")
    SUPABASE_SERVICE_ROLE_KEY: str = Field(..., description="Supabase service role key")

    # Environment
    READINESS_ENV: str = Field(default="dev", description="Environment: dev, staging, prod")

    # Admin API key for internal tools (optional)
    ADMIN_API_KEY: str | None = Field(default=None, description="Admin API key for X-API-Key auth")

    # Personnel currency windows
    SHOOTING_VALIDITY_DAYS: int = Field(
        default=180, description="Days a shooting range session stays valid"
    )
    CERT_VALIDITY_DAYS: int = Field(
        default=365, description="Days a certification refresh stays valid"
    )

    # Training cadence
    TRAINING_LOOKBACK_DAYS: int = Field(
        default=182, description="Lookback window for training events and drills"
    )
    TRAINING_EXPECTED_EVENTS: int = Field(
        default=2, description="Training events expected within the lookback window"
    )
    TRAINING_EXPECTED_DRILLS: int = Field(
        default=1, description="Settlement drills expected within the lookback window"
    )

    # Weight validation
    WEIGHT_SUM_TOLERANCE: float = Field(
        default=0.01, description="Allowed deviation of a weight group sum from 1.0"
    )
    READINESS_WEIGHTS_STRICT: bool = Field(
        default=False, description="Reject saves whose weight groups do not sum to 1.0"
    )

    # Score cache
    READINESS_CACHE_SIZE: int = Field(
        default=512, description="Max composed scores kept in the in-process cache"
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings instance

    Raises:
        ValidationError: If required environment variables are missing
    """
    return Settings()
