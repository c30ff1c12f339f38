"""Application configuration models."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, HttpUrl, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables or a .env file."""

    app_name: str = Field(default="ReelScout", alias="APP_NAME")
    server_host: str = Field(default="0.0.0.0", alias="HOST")
    server_port: int = Field(default=3000, alias="PORT")

    tmdb_api_key: str | None = Field(default=None, alias="TMDB_API_KEY")
    tmdb_api_url: HttpUrl = Field(
        default="https://api.themoviedb.org/3", alias="TMDB_API_URL"
    )
    tmdb_language: str = Field(default="en-US", alias="TMDB_LANGUAGE")

    search_variant_limit: int = Field(
        default=12, alias="SEARCH_VARIANT_LIMIT", ge=0, le=50
    )
    search_soft_cap: int = Field(default=30, alias="SEARCH_SOFT_CAP", ge=1, le=500)

    recommendation_seed_count: int = Field(
        default=20, alias="RECOMMENDATION_SEED_COUNT", ge=1, le=100
    )
    recommendation_per_seed: int = Field(
        default=5, alias="RECOMMENDATION_PER_SEED", ge=1, le=20
    )
    recommendation_limit: int = Field(
        default=40, alias="RECOMMENDATION_LIMIT", ge=1, le=200
    )

    database_url: str = Field(
        default="sqlite+aiosqlite:///./reelscout.db", alias="DATABASE_URL"
    )

    environment: Literal["development", "production"] = Field(
        default="development", alias="ENVIRONMENT"
    )

    @field_validator("tmdb_api_key", mode="before")
    @classmethod
    def _blank_key_is_missing(cls, value: object) -> object:
        """Treat empty API key values as not configured."""

        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("tmdb_language", mode="before")
    @classmethod
    def _default_language(cls, value: object) -> object:
        if value is None or (isinstance(value, str) and not value.strip()):
            return "en-US"
        return value

    @property
    def tmdb_base_url(self) -> str:
        """Return the TMDB API root without a trailing slash."""

        return str(self.tmdb_api_url).rstrip("/")

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""

    return Settings()  # type: ignore[call-arg]


settings = get_settings()
