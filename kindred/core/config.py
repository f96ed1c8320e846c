from functools import lru_cache

from loguru import logger
from pydantic_settings import BaseSettings
from pydantic import field_validator, Field


class Settings(BaseSettings):
    """Application settings."""
    # General settings
    debug: bool = Field(default=False, alias='DEBUG')

    # Logging
    LOG_LEVEL: str = Field(default="INFO", alias='LOG_LEVEL')
    LOG_FILE: str = Field(default="", alias='LOG_FILE')  # Empty disables the file sink
    DIAGNOSTICS_ENABLED: bool = Field(default=False, alias='KINDRED_DIAGNOSTICS')

    # Database settings
    db_url: str = Field(default="sqlite+aiosqlite:///./kindred.db", alias='DATABASE_URL')
    STORE_TIMEOUT_SECONDS: float = Field(default=5.0, alias='STORE_TIMEOUT_SECONDS')

    # Discovery settings (fallback location is Istanbul city centre)
    DEFAULT_LATITUDE: float = Field(default=41.0082, alias='DEFAULT_LATITUDE')
    DEFAULT_LONGITUDE: float = Field(default=28.9784, alias='DEFAULT_LONGITUDE')
    DEFAULT_RADIUS_KM: float = Field(default=30.0, alias='DEFAULT_RADIUS_KM')
    CANDIDATE_LIMIT: int = Field(default=50, alias='CANDIDATE_LIMIT')

    # Swipe quota
    SWIPE_LIMIT: int = Field(default=20, alias='SWIPE_LIMIT')
    SWIPE_WINDOW_HOURS: float = Field(default=24.0, alias='SWIPE_WINDOW_HOURS')
    SWIPE_RETRY_SECONDS: int = Field(default=60, alias='SWIPE_RETRY_SECONDS')

    @field_validator('DEFAULT_RADIUS_KM', 'SWIPE_LIMIT', 'SWIPE_WINDOW_HOURS', 'CANDIDATE_LIMIT')
    @classmethod
    def _must_be_positive(cls, v):
        """Reject zero or negative limits."""
        if v <= 0:
            logger.error(f"Invalid non-positive setting value: {v}")
            raise ValueError("must be positive")
        return v

    @field_validator('LOG_LEVEL', mode='before')
    @classmethod
    def _normalize_log_level(cls, v):
        if isinstance(v, str):
            return v.strip().upper() or "INFO"
        return v

    class Config:
        env_file = ".env"
        extra = "ignore"  # Ignore any extra fields not defined above
        populate_by_name = True


@lru_cache
def get_settings() -> Settings:
    """Get application settings singleton."""
    # Clear cache if needed for testing: get_settings.cache_clear()
    return Settings()
