"""
Analytics Settings and Configuration.

Loads configuration from environment variables and config files.
"""

from typing import List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator


class Settings(BaseSettings):
    """
    Analytics settings loaded from environment variables.

    Environment variables:
        ENVIRONMENT: Deployment environment name (default: development)
        LOG_LEVEL: Root log level (default: INFO)
        ANALYTICS_LOG_DIRECTORY: Optional directory for a file log handler
        ANALYTICS_KNOWN_REGIME_TYPES: Comma separated regime names that always
            appear in regime performance output
    """

    environment: str = Field(default="development", alias="ENVIRONMENT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_directory: Optional[str] = Field(default=None, alias="ANALYTICS_LOG_DIRECTORY")

    # Stored as raw text so env values like "Bull,Bear" are not parsed as JSON.
    known_regime_types_raw: str = Field(default="", alias="ANALYTICS_KNOWN_REGIME_TYPES")

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Upper-case the level name so logging accepts it."""
        return (v or "INFO").strip().upper()

    @property
    def known_regime_types(self) -> List[str]:
        """Known regime names, in configured order, without blanks or duplicates."""
        names: List[str] = []
        for part in self.known_regime_types_raw.split(","):
            name = part.strip()
            if name and name not in names:
                names.append(name)
        return names

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
    )


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get analytics settings singleton.

    Returns:
        Settings instance
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next call re-reads the environment."""
    global _settings
    _settings = None
