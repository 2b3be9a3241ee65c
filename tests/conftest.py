"""
Pytest configuration and fixtures.
"""
import random
from datetime import date
from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from app.api.dependencies import get_catalog_service
from app.config.settings import Settings
from app.core.exceptions import NotFoundError, ProviderUnavailableError
from app.main import app
from app.models.schemas import (
    MediaDetail,
    MediaItem,
    MediaKind,
    SeasonDetail,
    VideoCandidate,
)
from app.services.catalog import CatalogService
from app.services.trailers import TrailerResolver

TODAY = date(2025, 6, 15)


def make_item(media_id: int, title: str = "Item", kind: MediaKind = MediaKind.MOVIE, **fields) -> MediaItem:
    return MediaItem(id=media_id, kind=kind, title=title, **fields)


class FakeMetadataProvider:
    """
    In-memory MetadataProvider.
    Categories are keyed by path or (path, page), seasons by (tv_id, number).
    """

    def __init__(self) -> None:
        self.categories: Dict[Any, List[MediaItem]] = {}
        self.details: Dict[int, MediaDetail] = {}
        self.seasons: Dict[tuple, SeasonDetail] = {}
        self.watch_providers: List[Dict[str, Any]] = []
        self.failing: set = set()
        self.failing_details: set = set()
        self.failing_seasons: set = set()
        self.calls: List[tuple] = []
        self.detail_calls: List[tuple] = []
        self.season_calls: List[tuple] = []

    async def fetch_category(self, category, params=None, kind=MediaKind.MOVIE):
        params = params or {}
        self.calls.append((category, params, kind))
        for key in ((category, params.get("page")), category):
            if key in self.failing:
                raise ProviderUnavailableError("fake", f"{key} down")
            if key in self.categories:
                return [item.model_copy(update={"kind": kind}) for item in self.categories[key]]
        return []

    async def fetch_detail(self, kind, media_id, append=None):
        self.detail_calls.append((kind, media_id, append))
        if media_id in self.failing_details:
            raise ProviderUnavailableError("fake", f"detail {media_id} down")
        if media_id not in self.details:
            raise NotFoundError("TMDB resource", str(media_id))
        return self.details[media_id]

    async def fetch_season(self, tv_id, season_number, append=None):
        self.season_calls.append((tv_id, season_number, append))
        if tv_id in self.failing_seasons or (tv_id, season_number) in self.failing_seasons:
            raise ProviderUnavailableError("fake", f"season {tv_id}/{season_number} down")
        return self.seasons.get((tv_id, season_number), SeasonDetail(season_number=season_number))

    async def fetch_watch_providers(self, region):
        return self.watch_providers


class FakeVideoSearch:
    """In-memory VideoSearchProvider; `default` answers any unlisted query."""

    def __init__(
        self,
        results: Optional[Dict[str, List[VideoCandidate]]] = None,
        default: Optional[List[VideoCandidate]] = None,
        available: bool = True,
        error: Optional[Exception] = None,
    ) -> None:
        self.results = results or {}
        self.default = default or []
        self._available = available
        self.error = error
        self.queries: List[str] = []

    @property
    def available(self) -> bool:
        return self._available

    async def search(self, query, max_results=10):
        self.queries.append(query)
        if self.error is not None:
            raise self.error
        return self.results.get(query, self.default)[:max_results]


@pytest.fixture
def settings():
    """Settings isolated from the developer's environment."""
    return Settings(
        TMDB_API_KEY="test-key",
        YOUTUBE_API_KEY=None,
        ENABLE_PROMETHEUS=False,
        ENABLE_OTEL=False,
    )


@pytest.fixture
def item_factory():
    """Fixture for building MediaItems: item_factory(id, title, kind, **fields)."""
    return make_item


@pytest.fixture
def search_factory():
    """Fixture for building fake video search providers."""
    return FakeVideoSearch


@pytest.fixture
def fake_metadata():
    return FakeMetadataProvider()


@pytest.fixture
def fake_search():
    return FakeVideoSearch()


@pytest.fixture
def catalog(fake_metadata, fake_search, settings):
    """Catalog service over in-memory providers, fixed clock and seed."""
    return CatalogService(
        metadata=fake_metadata,
        trailer_resolver=TrailerResolver(search_provider=fake_search),
        settings=settings,
        today=lambda: TODAY,
        rng=random.Random(7),
    )


@pytest.fixture
def test_client(catalog):
    """
    TestClient fixture with dependency overrides.
    Uses in-memory providers for isolation.
    """
    app.dependency_overrides[get_catalog_service] = lambda: catalog

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()
