"""
Provider interfaces (abstractions).
Using Protocol for structural subtyping (duck typing with type hints).
These define the contracts that provider adapters must follow.
"""
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from app.models.schemas import MediaDetail, MediaItem, MediaKind, SeasonDetail, VideoCandidate


@runtime_checkable
class MetadataProvider(Protocol):
    """
    Interface for the movie/TV metadata provider.
    Production: TMDB over HTTP.
    Testing: In-memory fake.
    """

    async def fetch_category(
        self,
        category: str,
        params: Optional[Dict[str, Any]] = None,
        kind: MediaKind = MediaKind.MOVIE,
    ) -> List[MediaItem]:
        """
        Fetch one result page of a category endpoint.

        Args:
            category: Endpoint path, e.g. "trending/movie/day" or "discover/tv"
            params: Query parameters (page, genre filters, date ranges, sort key)
            kind: Kind assigned to every returned item

        Returns:
            Items in provider order (may be empty)

        Raises:
            ProviderUnavailableError: on network error, timeout or non-2xx
        """
        ...

    async def fetch_detail(
        self,
        kind: MediaKind,
        media_id: int,
        append: Optional[List[str]] = None,
    ) -> MediaDetail:
        """
        Fetch the full record for one item.

        Raises:
            NotFoundError: if the provider has no such item
            ProviderUnavailableError: on any other failure
        """
        ...

    async def fetch_season(
        self,
        tv_id: int,
        season_number: int,
        append: Optional[List[str]] = None,
    ) -> SeasonDetail:
        """Fetch one season of a TV show: episode runtimes and, with `credits` appended, its cast."""
        ...

    async def fetch_watch_providers(self, region: str) -> List[Dict[str, Any]]:
        """Fetch the raw list of streaming providers available in a region."""
        ...


@runtime_checkable
class VideoSearchProvider(Protocol):
    """
    Interface for the secondary video-search provider.
    Production: YouTube Data API.
    Testing: In-memory fake.
    """

    @property
    def available(self) -> bool:
        """False when the provider cannot be queried (e.g. no credential)."""
        ...

    async def search(self, query: str, max_results: int = 10) -> List[VideoCandidate]:
        """
        Search videos matching a free-text query.

        Raises:
            ProviderUnavailableError: on network error, timeout or non-2xx
        """
        ...
