"""
Configuration management for the Restaurant Guide client.
"""
from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Airtable credentials
    airtable_api_key: str = Field(..., description="Airtable API key, sent as a bearer token")
    airtable_base_id: str = Field(..., description="Airtable base ID (appXXXXXXXXXXXXXX)")
    airtable_api_url: str = Field("https://api.airtable.com", description="Airtable API root")

    # Tables
    restaurants_table: str = Field("Restaurants", description="Primary restaurants table")
    districts_table: str = Field("City Districts", description="Table referenced by the District field")
    cuisines_table: str = Field("Cuisines", description="Table referenced by the Cuisine field")
    reference_name_field: str = Field("Name", description="Display name field of referenced records")

    # Listing
    page_size: int = Field(100, ge=1, le=100, description="Records per page")
    view_name: str = Field("Main View", description="View used when listing restaurants")
    sort_field: str = Field("Name", description="Sort field when listing restaurants")
    sort_direction: str = Field("asc", description="Sort direction (asc or desc)")
    read_ahead_threshold: int = Field(3, ge=0, description="Rows from the end that trigger loading the next page")

    # HTTP
    request_timeout: float = Field(30.0, gt=0, description="Request timeout in seconds")
    max_retries: int = Field(3, ge=1, description="Attempts made by the retrying helpers")
    retry_delay: float = Field(1.0, ge=0, description="Base delay for exponential backoff")

    # Reference cache
    reference_cache_max_entries: Optional[int] = Field(
        None, ge=1, description="Per-kind cap on cached reference names (unbounded when unset)"
    )

    # Application
    api_host: str = Field("0.0.0.0", description="Host the HTTP API binds to")
    api_port: int = Field(8000, ge=1, le=65535, description="Port the HTTP API listens on")
    environment: str = Field("development", description="Environment")
    log_level: str = Field("INFO", description="Log level")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("sort_direction")
    @classmethod
    def validate_sort_direction(cls, value: str) -> str:
        direction = value.strip().lower()
        if direction not in ("asc", "desc"):
            raise ValueError("SORT_DIRECTION must be 'asc' or 'desc'")
        return direction

    @field_validator("airtable_api_key", "airtable_base_id")
    @classmethod
    def validate_required(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be empty")
        return value.strip()


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the global settings instance."""
    return Settings()
