"""
Dependency injection container.
Creates and wires all application components.
Uses FastAPI's dependency injection system.
"""
from functools import lru_cache

from app.config import get_settings
from app.providers.tmdb import TMDbProvider
from app.providers.youtube import YouTubeSearchProvider
from app.services.catalog import CatalogService
from app.services.ranking import RankingEngine
from app.services.trailers import TrailerResolver


# =============================================================================
# Singleton Instances (Application Lifetime)
# =============================================================================


@lru_cache()
def get_metadata_provider() -> TMDbProvider:
    """Get singleton metadata provider (owns the HTTP connection pool)."""
    return TMDbProvider(get_settings().tmdb_config())


@lru_cache()
def get_video_search_provider() -> YouTubeSearchProvider:
    """Get singleton video search provider."""
    return YouTubeSearchProvider(get_settings().youtube_config())


@lru_cache()
def get_ranking_engine() -> RankingEngine:
    """Get singleton ranking engine."""
    return RankingEngine()


# =============================================================================
# Request-Scoped Dependencies (Per-Request Lifetime)
# =============================================================================


def get_trailer_resolver() -> TrailerResolver:
    settings = get_settings()
    return TrailerResolver(
        search_provider=get_video_search_provider(),
        watch_url=settings.YOUTUBE_WATCH_URL,
        max_results=settings.TRAILER_SEARCH_MAX_RESULTS,
    )


def get_catalog_service() -> CatalogService:
    """
    Get catalog service with all dependencies wired.
    This is the entry point for every content endpoint.
    """
    return CatalogService(
        metadata=get_metadata_provider(),
        trailer_resolver=get_trailer_resolver(),
        settings=get_settings(),
        ranking_engine=get_ranking_engine(),
    )


# =============================================================================
# Cleanup Functions
# =============================================================================


async def close_providers() -> None:
    """Close HTTP clients of providers that were created."""
    if get_metadata_provider.cache_info().currsize:
        await get_metadata_provider().close()
    if get_video_search_provider.cache_info().currsize:
        await get_video_search_provider().close()


def clear_caches() -> None:
    """Clear all cached singleton instances (for testing)."""
    get_metadata_provider.cache_clear()
    get_video_search_provider.cache_clear()
    get_ranking_engine.cache_clear()
