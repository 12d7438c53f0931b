"""Application configuration using pydantic-settings."""
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Database backing the document store and the identity provider
    database_url: str
    db_pool_size: int = Field(default=5, validation_alias="DB_POOL_SIZE")
    db_max_overflow: int = Field(default=10, validation_alias="DB_MAX_OVERFLOW")

    # Bookmarks saved without a category land here
    default_category: str = Field(default="personal", validation_alias="DEFAULT_CATEGORY")

    # Mocked AI layer
    ai_summary_delay_seconds: float = Field(
        default=2.0, validation_alias="AI_SUMMARY_DELAY_SECONDS",
    )
    ai_chat_delay_seconds: float = Field(
        default=1.5, validation_alias="AI_CHAT_DELAY_SECONDS",
    )

    # URL metadata fetching
    scrape_timeout_seconds: float = Field(
        default=10.0, validation_alias="SCRAPE_TIMEOUT_SECONDS",
    )

    # Field length limits
    max_title_length: int = Field(default=500, validation_alias="MAX_TITLE_LENGTH")
    max_description_length: int = Field(
        default=2000, validation_alias="MAX_DESCRIPTION_LENGTH",
    )
    max_tag_length: int = Field(default=50, validation_alias="MAX_TAG_LENGTH")

    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
