"""
Configuration Management

Uses Pydantic Settings for environment-based configuration.
Loads from .env file automatically.
"""

from typing import Literal, Optional
from functools import lru_cache
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # DataForSEO (optional - search stage yields nothing without it)
    DATAFORSEO_LOGIN: Optional[str] = None
    DATAFORSEO_PASSWORD: Optional[str] = None

    # Claude API (optional - heuristic fallbacks without it)
    ANTHROPIC_API_KEY: Optional[str] = None
    CLAUDE_MODEL: str = "claude-sonnet-4-20250514"

    # Application Settings
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Pipeline behaviour
    COMPETITOR_DISCOVERY_MODE: Literal["basic", "validated"] = "validated"
    DEFAULT_LOCATION_CODE: int = 2840
    SERP_DEPTH: int = 50

    # Timeouts (seconds)
    FETCH_TIMEOUT: float = 10.0
    SATELLITE_TIMEOUT: float = 5.0
    SERP_TIMEOUT: float = 15.0
    VALIDATION_FETCH_TIMEOUT: float = 3.0
    AI_TIMEOUT: float = 30.0
    PIPELINE_DEADLINE: Optional[float] = None

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"  # Ignore extra fields in .env file
        case_sensitive = False  # Allow both UPPERCASE and lowercase

    @property
    def has_dataforseo(self) -> bool:
        return bool(self.DATAFORSEO_LOGIN and self.DATAFORSEO_PASSWORD)

    @property
    def has_anthropic(self) -> bool:
        return bool(self.ANTHROPIC_API_KEY)


@lru_cache
def get_settings() -> Settings:
    """Get or create cached settings instance."""
    return Settings()
