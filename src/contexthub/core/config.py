"""Configuration management for ContextHub.

This module uses Pydantic Settings to load and validate configuration from
environment variables and .env files. Configuration is loaded once and is
immutable during runtime.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration settings.

    Settings are loaded from environment variables and .env files.
    All configuration values are validated at startup.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="CONTEXTHUB_",
        case_sensitive=False,
        extra="ignore",
    )

    # Application Settings
    app_name: str = "ContextHub Collections"
    app_version: str = "0.1.0"
    environment: Literal["development", "production", "testing"] = "development"
    debug: bool = False

    # Database Settings
    database_url: str = "sqlite+aiosqlite:///./ch_data/contexthub.db"
    db_pool_size: int = 5
    db_max_overflow: int = 10
    db_pool_timeout: int = 30
    db_pool_recycle: int = 3600
    db_echo: bool = False

    # Logging Settings
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_format: Literal["json", "console"] = "json"

    # Collection Settings
    max_collection_fields: int = Field(
        default=50,
        ge=1,
        description="Maximum number of fields a collection type may declare",
    )
    max_slug_length: int = 150

    # Listing & Query Settings
    list_default_limit: int = 20
    list_max_limit: int = 200
    query_default_limit: int = 50
    query_max_limit: int = 200
    query_max_select: int = 50
    query_max_where: int = 20
    query_max_order_by: int = 3

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Accept log levels in any case."""
        if isinstance(v, str):
            return v.upper()
        return v

    @model_validator(mode="after")
    def validate_limits(self) -> "Settings":
        """Ensure default page sizes never exceed their maximums."""
        if self.list_default_limit > self.list_max_limit:
            raise ValueError(
                f"list_default_limit ({self.list_default_limit}) cannot exceed "
                f"list_max_limit ({self.list_max_limit})"
            )
        if self.query_default_limit > self.query_max_limit:
            raise ValueError(
                f"query_default_limit ({self.query_default_limit}) cannot exceed "
                f"query_max_limit ({self.query_max_limit})"
            )
        return self

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def is_testing(self) -> bool:
        """Check if running in testing environment."""
        return self.environment == "testing"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Returns:
        Settings: Cached application settings instance.
    """
    return Settings()
