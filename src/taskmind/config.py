"""Configuration management for TaskMind."""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from taskmind.constants import DEFAULT_BACKUP_FILENAME, MAX_ITEMS_PER_SOURCE


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Gemini (task extraction)
    gemini_api_key: SecretStr | None = Field(
        default=None, description="Fallback Gemini API key when none is saved in app settings"
    )
    gemini_model: str = Field(default="gemini-2.5-flash", description="Extraction model")
    extraction_timeout: float = Field(
        default=60.0, gt=0, description="Seconds before a model call is abandoned"
    )

    # Google APIs (sources and backup)
    google_access_token: SecretStr | None = Field(
        default=None, description="OAuth bearer token supplied by the login collaborator"
    )
    google_enhanced_tier: bool = Field(
        default=False, description="Account is a Workspace account with Chat API access"
    )
    max_items_per_source: int = Field(
        default=MAX_ITEMS_PER_SOURCE, ge=1, le=100, description="Items fetched per source per run"
    )
    fetch_timeout: float = Field(default=30.0, gt=0, description="Per-source fetch timeout")
    backup_filename: str = Field(default=DEFAULT_BACKUP_FILENAME)

    # Storage
    data_dir: Path = Field(
        default=Path.home() / ".taskmind", description="Directory for the key-value store"
    )

    # Application
    environment: str = Field(default="production", description="Environment name")
    log_level: str = Field(default="INFO", description="Logging level")

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment.lower() == "development"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
