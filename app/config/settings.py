"""
Centralized configuration using Pydantic BaseSettings.
All environment variables are loaded here - no hardcoded values.
"""
from functools import lru_cache
from typing import List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic_settings import BaseSettings, SettingsConfigDict


class ProviderConfig(BaseModel):
    """Connection settings handed to a provider adapter at construction."""

    model_config = ConfigDict(frozen=True)

    base_url: str
    credential: Optional[str] = None
    timeout_sec: float = 10.0


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True)

    # Application
    APP_NAME: str = "Content Aggregation API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # Telemetry
    ENABLE_OTEL: bool = False  # Default to False to prevent gRPC errors in dev
    ENABLE_PROMETHEUS: bool = True

    # Metadata provider (TMDB)
    TMDB_API_KEY: Optional[str] = None
    TMDB_BASE_URL: str = "https://api.themoviedb.org/3"
    TMDB_IMAGE_BASE_URL: str = "https://image.tmdb.org/t/p"
    TMDB_TIMEOUT_SEC: float = 10.0

    # Video search provider (YouTube Data API)
    YOUTUBE_API_KEY: Optional[str] = None
    YOUTUBE_BASE_URL: str = "https://www.googleapis.com/youtube/v3"
    YOUTUBE_TIMEOUT_SEC: float = 10.0
    YOUTUBE_WATCH_URL: str = "https://www.youtube.com/watch?v={video_id}"

    # Content rules
    EXCLUDED_GENRE_IDS: List[int] = [10767, 10763, 10764]  # Talk, News, Reality
    WATCH_REGION: str = "US"

    # Fixed result counts
    SECTION_LIMIT: int = 20
    SEARCH_LIMIT: int = 20
    WATCH_AT_HOME_LIMIT: int = 40
    TRAILER_SEARCH_MAX_RESULTS: int = 10

    def tmdb_config(self) -> ProviderConfig:
        return ProviderConfig(
            base_url=self.TMDB_BASE_URL,
            credential=self.TMDB_API_KEY,
            timeout_sec=self.TMDB_TIMEOUT_SEC,
        )

    def youtube_config(self) -> ProviderConfig:
        return ProviderConfig(
            base_url=self.YOUTUBE_BASE_URL,
            credential=self.YOUTUBE_API_KEY,
            timeout_sec=self.YOUTUBE_TIMEOUT_SEC,
        )


@lru_cache()
def get_settings() -> Settings:
    """Cached settings instance - singleton pattern."""
    return Settings()
