"""
Catalog service - curated views orchestrator.
Fans out provider calls, assembles candidates and ranks them for each
section of the presentation layer.
"""
import logging
import math
import random
from datetime import date, timedelta
from typing import Callable, Dict, List, Optional, Sequence

from pydantic import BaseModel

from app.config.settings import Settings
from app.core.concurrency import TaskSet, enrich_all
from app.core.exceptions import AppException, ValidationError
from app.models.interfaces import MetadataProvider
from app.models.schemas import (
    CastMember,
    MediaDetail,
    MediaItem,
    MediaKind,
    PlatformLogo,
    SeasonDetail,
)
from app.services.aggregation import (
    aggregate,
    dedupe,
    filter_excluded,
    genre_in,
    language_not_in,
    released_before,
)
from app.services.ranking import RankingEngine, RatingBlendScoring
from app.services.trailers import TrailerResolver

logger = logging.getLogger(__name__)

ANIMATION_GENRE_ID = 16
ANIME_MIN_TRENDING = 10  # Supplement trending anime below this count

POPULAR_TV_PER_SOURCE = 10
WATCH_AT_HOME_MOVIES = 15
WATCH_AT_HOME_TV = 15
WATCH_AT_HOME_ANIME = 10

MOVIE_DETAIL_APPEND = ["credits", "videos", "watch/providers", "release_dates", "keywords"]
TV_DETAIL_APPEND = [
    "credits",
    "videos",
    "watch/providers",
    "content_ratings",
    "keywords",
    "external_ids",
]
SPECIALS_SEASON = 0

# Fields a detail payload may refresh on a list item
ENRICHED_FIELDS = (
    "title",
    "release_date",
    "popularity",
    "vote_average",
    "vote_count",
    "genre_ids",
    "original_language",
    "origin_country",
    "poster_path",
    "backdrop_path",
    "overview",
)


class StreamingPlatform(BaseModel):
    """A streaming service with its metadata-provider watch-provider id."""

    key: str
    provider_id: int
    name: str
    movie_vote_threshold: int = 100
    tv_vote_threshold: int = 100


STREAMING_PLATFORMS: Dict[str, StreamingPlatform] = {
    p.key: p
    for p in (
        StreamingPlatform(key="netflix", provider_id=8, name="Netflix"),
        StreamingPlatform(key="prime", provider_id=9, name="Prime Video"),
        StreamingPlatform(key="disney", provider_id=337, name="Disney+"),
        StreamingPlatform(key="max", provider_id=1899, name="Max"),
        # Smaller library, lower movie vote threshold
        StreamingPlatform(
            key="appletv", provider_id=350, name="Apple TV+", movie_vote_threshold=50
        ),
    )
}


def is_anime(item: MediaItem) -> bool:
    """Animation from Japan, by language or origin country."""
    if ANIMATION_GENRE_ID not in item.genre_ids:
        return False
    return item.original_language == "ja" or "JP" in item.origin_country


def merge_detail(item: MediaItem, detail: MediaItem) -> MediaItem:
    """Overlay populated detail fields on a list item; identity is kept."""
    update = {}
    for field in ENRICHED_FIELDS:
        value = getattr(detail, field)
        if value is None or value == "" or value == () or value == frozenset():
            continue
        update[field] = value
    return item.model_copy(update=update)


def average_runtime(runtimes: Sequence[int]) -> Optional[int]:
    """Mean of the positive runtimes, halves rounded up; None when there are none."""
    positive = [r for r in runtimes if r and r > 0]
    if not positive:
        return None
    return int(math.floor(sum(positive) / len(positive) + 0.5))


def merge_cast(*casts: Sequence[CastMember]) -> List[CastMember]:
    """Union of cast lists by person id; later entries replace earlier ones in place."""
    merged: Dict[int, CastMember] = {}
    for cast in casts:
        for person in cast:
            merged[person.id] = person
    return list(merged.values())


class CatalogService:
    """
    Curated views over the metadata provider.

    Responsibilities:
    - Fan out provider calls concurrently
    - Aggregate, dedupe and filter candidates
    - Rank with the ranking engine
    - Resolve trailers for detail views
    """

    def __init__(
        self,
        metadata: MetadataProvider,
        trailer_resolver: TrailerResolver,
        settings: Settings,
        ranking_engine: Optional[RankingEngine] = None,
        today: Optional[Callable[[], date]] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        """
        Initialize catalog service with dependencies.

        Args:
            metadata: Metadata provider adapter
            trailer_resolver: Resolver used by detail views
            settings: Limits, region and content rules
            ranking_engine: Engine for ordering candidates
            today: Clock for date-relative sections
            rng: Randomness for the shuffled home feed
        """
        self._metadata = metadata
        self._trailers = trailer_resolver
        self._settings = settings
        self._ranking = ranking_engine or RankingEngine()
        self._today = today or date.today
        self._rng = rng or random.Random()

    @property
    def _limit(self) -> int:
        return self._settings.SECTION_LIMIT

    def _excluded_genres(self):
        return genre_in(self._settings.EXCLUDED_GENRE_IDS)

    def _shuffled(self, items: Sequence[MediaItem]) -> List[MediaItem]:
        shuffled = list(items)
        self._rng.shuffle(shuffled)
        return shuffled

    async def _enrich(self, item: MediaItem) -> MediaItem:
        detail = await self._metadata.fetch_detail(item.kind, item.id, append=[])
        return merge_detail(item, detail)

    # -------------------------------------------------------------------------
    # Single-source sections
    # -------------------------------------------------------------------------

    async def trending_movies(self) -> List[MediaItem]:
        items = await self._metadata.fetch_category("trending/movie/day")
        return items[: self._limit]

    async def trending_tv(self) -> List[MediaItem]:
        items = await self._metadata.fetch_category("trending/tv/day", kind=MediaKind.TV)
        return items[: self._limit]

    async def now_playing_movies(self) -> List[MediaItem]:
        items = await self._metadata.fetch_category("movie/now_playing")
        return items[: self._limit]

    async def upcoming_tv(self) -> List[MediaItem]:
        """New and upcoming shows, first aired between last January and next December."""
        year = self._today().year
        items = await self._metadata.fetch_category(
            "discover/tv",
            {
                "first_air_date.gte": f"{year - 1}-01-01",
                "first_air_date.lte": f"{year + 1}-12-31",
                "sort_by": "popularity.desc",
                "vote_count.gte": 20,
                "with_original_language": "en",
            },
            kind=MediaKind.TV,
        )
        logger.info(f"Found {len(items)} new TV shows", extra={"section": "upcoming_tv"})
        return items[: self._limit]

    # -------------------------------------------------------------------------
    # Fan-out sections
    # -------------------------------------------------------------------------

    async def popular_tv(self) -> List[MediaItem]:
        """Trending shows first, topped up with popular ones, genre-filtered."""
        tasks = TaskSet("popular_tv")
        tasks.add("trending", self._metadata.fetch_category("trending/tv/week", kind=MediaKind.TV))
        tasks.add("popular", self._metadata.fetch_category("tv/popular", kind=MediaKind.TV))
        values = await tasks.join_values()

        trending = values.get("trending", [])[:POPULAR_TV_PER_SOURCE]
        trending_keys = {item.key for item in trending}
        popular = [
            item for item in values.get("popular", []) if item.key not in trending_keys
        ][:POPULAR_TV_PER_SOURCE]
        combined = dedupe(aggregate([trending, popular]))[: self._limit]

        detailed = await enrich_all(combined, self._enrich, name="popular_tv.details")
        shows = filter_excluded(detailed, [self._excluded_genres()])
        return shows[: self._limit]

    async def upcoming_movies(self) -> List[MediaItem]:
        """Movies releasing today or later (undated ones included), biggest first."""
        today = self._today()
        week_ago = (today - timedelta(days=7)).isoformat()

        tasks = TaskSet("upcoming_movies")
        tasks.add("upcoming_p1", self._metadata.fetch_category("movie/upcoming", {"page": 1}))
        tasks.add("upcoming_p2", self._metadata.fetch_category("movie/upcoming", {"page": 2}))
        tasks.add(
            "discover_p1",
            self._metadata.fetch_category(
                "discover/movie",
                {
                    "primary_release_date.gte": week_ago,
                    "sort_by": "popularity.desc",
                    "vote_count.gte": 3,
                    "page": 1,
                },
            ),
        )
        tasks.add(
            "discover_p2",
            self._metadata.fetch_category(
                "discover/movie",
                {
                    "primary_release_date.gte": week_ago,
                    "sort_by": "release_date.desc",
                    "vote_count.gte": 3,
                    "page": 2,
                },
            ),
        )
        values = await tasks.join_values()

        combined = aggregate(
            [values.get(label, []) for label in ("upcoming_p1", "upcoming_p2", "discover_p1", "discover_p2")]
        )
        unique = dedupe(combined)
        upcoming = filter_excluded(unique, [released_before(today)])
        ranked = self._ranking.rank(upcoming)

        logger.info(
            f"Upcoming movies: {len(combined)} fetched -> {len(unique)} unique -> "
            f"{len(upcoming)} releasing from {today.isoformat()}",
            extra={"section": "upcoming_movies"},
        )
        return ranked[: self._limit]

    async def trending_anime(self) -> List[MediaItem]:
        """Trending Japanese animation, supplemented with popular recent anime."""
        trending = await self._metadata.fetch_category("trending/tv/week", kind=MediaKind.TV)
        anime = [
            item.model_copy(update={"kind": MediaKind.ANIME})
            for item in trending
            if is_anime(item)
        ]
        logger.info(
            f"Found {len(anime)} trending anime from {len(trending)} trending shows",
            extra={"section": "trending_anime"},
        )

        supplement: List[MediaItem] = []
        if len(anime) < ANIME_MIN_TRENDING:
            try:
                supplement = await self._metadata.fetch_category(
                    "discover/tv",
                    {
                        "with_genres": str(ANIMATION_GENRE_ID),
                        "with_origin_country": "JP",
                        "sort_by": "popularity.desc",
                        "first_air_date.gte": "2020-01-01",
                        "vote_count.gte": 100,
                        "with_original_language": "ja",
                    },
                    kind=MediaKind.ANIME,
                )
            except AppException as e:
                logger.warning(
                    f"Anime supplement failed, serving trending only: {e.message}",
                    extra={"section": "trending_anime"},
                )

        # Items that were actually trending stay ahead of the supplement
        combined = dedupe(aggregate([self._ranking.rank(anime), self._ranking.rank(supplement)]))
        return combined[: self._limit]

    async def streaming_platform(self, platform_key: str) -> List[MediaItem]:
        """Highly rated English-language movies and shows on one platform."""
        platform = STREAMING_PLATFORMS.get(platform_key.lower())
        if platform is None:
            raise ValidationError(
                f"Unknown streaming platform: {platform_key}",
                details={"supported": sorted(STREAMING_PLATFORMS)},
            )

        common = {
            "with_watch_providers": platform.provider_id,
            "watch_region": self._settings.WATCH_REGION,
            "sort_by": "vote_average.desc",
            "vote_average.gte": 7.0,
            "with_original_language": "en",
        }
        tasks = TaskSet(f"platform.{platform.key}")
        tasks.add(
            "movies",
            self._metadata.fetch_category(
                "discover/movie",
                {
                    **common,
                    "vote_count.gte": platform.movie_vote_threshold,
                    "primary_release_date.gte": "2000-01-01",
                },
            ),
        )
        tasks.add(
            "tv",
            self._metadata.fetch_category(
                "discover/tv",
                {
                    **common,
                    "vote_count.gte": platform.tv_vote_threshold,
                    "first_air_date.gte": "2000-01-01",
                },
                kind=MediaKind.TV,
            ),
        )
        values = await tasks.join_values()

        combined = aggregate([values.get("movies", []), values.get("tv", [])])
        ranked = self._ranking.rank(combined, strategies=[RatingBlendScoring()])
        logger.info(
            f"{platform.name}: found {len(ranked)} quality titles",
            extra={"section": f"platform.{platform.key}"},
        )
        return ranked[: self._limit]

    async def platform_logos(self) -> Dict[str, PlatformLogo]:
        raw = await self._metadata.fetch_watch_providers(self._settings.WATCH_REGION)
        by_id = {p.get("provider_id"): p for p in raw}

        logos = {}
        for key, platform in STREAMING_PLATFORMS.items():
            provider = by_id.get(platform.provider_id)
            if not provider or not provider.get("logo_path"):
                continue
            logos[key] = PlatformLogo(
                platform=key,
                name=provider.get("provider_name") or platform.name,
                logo_path=provider["logo_path"],
                logo_url=f"{self._settings.TMDB_IMAGE_BASE_URL}/original{provider['logo_path']}",
            )
        return logos

    async def watch_at_home(self) -> List[MediaItem]:
        """Shuffled mix of well-known movies, shows and anime from random pages."""
        movie_page = self._rng.randint(1, 3)
        tv_page = self._rng.randint(1, 3)
        anime_page = self._rng.randint(1, 5)

        tasks = TaskSet("watch_at_home")
        tasks.add(
            "movies",
            self._metadata.fetch_category(
                "discover/movie",
                {"sort_by": "vote_count.desc", "vote_count.gte": 1000, "page": movie_page},
            ),
        )
        tasks.add(
            "tv",
            self._metadata.fetch_category(
                "discover/tv",
                {"sort_by": "vote_count.desc", "vote_count.gte": 1000, "page": tv_page},
                kind=MediaKind.TV,
            ),
        )
        tasks.add(
            "anime",
            self._metadata.fetch_category(
                "discover/tv",
                {
                    "sort_by": "vote_count.desc",
                    "vote_count.gte": 100,
                    "with_genres": ANIMATION_GENRE_ID,
                    "with_original_language": "ja",
                    "page": anime_page,
                },
                kind=MediaKind.ANIME,
            ),
        )
        values = await tasks.join_values()

        movies = self._shuffled(values.get("movies", []))[:WATCH_AT_HOME_MOVIES]

        tv_detailed = await enrich_all(values.get("tv", []), self._enrich, name="watch_at_home.details")
        tv = self._shuffled(filter_excluded(tv_detailed, [self._excluded_genres()]))[:WATCH_AT_HOME_TV]

        anime = filter_excluded(values.get("anime", []), [language_not_in(["ja"])])
        anime = self._shuffled(anime)[:WATCH_AT_HOME_ANIME]

        content = dedupe(self._shuffled(aggregate([movies, tv, anime])))
        logger.info(
            f"Watch at home: pages {movie_page}, {tv_page}, {anime_page} - "
            f"returning {min(len(content), self._settings.WATCH_AT_HOME_LIMIT)} items",
            extra={"section": "watch_at_home"},
        )
        return content[: self._settings.WATCH_AT_HOME_LIMIT]

    async def search(self, query: str) -> List[MediaItem]:
        """Movies and shows matching `query`, ordered by composite relevance."""
        if not query or not query.strip():
            raise ValidationError("Search query must not be blank")

        params = {"query": query, "include_adult": False, "language": "en-US", "page": 1}
        tasks = TaskSet("search")
        tasks.add("movies", self._metadata.fetch_category("search/movie", params))
        tasks.add("tv", self._metadata.fetch_category("search/tv", params, kind=MediaKind.TV))
        values = await tasks.join_values()

        movies = values.get("movies", [])
        shows = values.get("tv", [])
        ranked = self._ranking.rank(aggregate([movies, shows]), query)

        logger.info(
            f"Search '{query}': {len(movies)} movies and {len(shows)} TV shows",
            extra={"section": "search"},
        )
        return ranked[: self._settings.SEARCH_LIMIT]

    # -------------------------------------------------------------------------
    # Detail views
    # -------------------------------------------------------------------------

    async def movie_details(self, movie_id: int) -> MediaDetail:
        detail = await self._metadata.fetch_detail(
            MediaKind.MOVIE, movie_id, append=MOVIE_DETAIL_APPEND
        )
        trailer = await self._trailers.resolve(
            detail.videos, detail.title, detail.release_date, MediaKind.MOVIE
        )
        return detail.model_copy(update={"trailer": trailer})

    async def tv_details(self, tv_id: int) -> MediaDetail:
        """
        Show details with season 1 cast merged in and runtime averaged over
        every regular season. Season failures are tolerated.
        """
        tasks = TaskSet("tv_details")
        tasks.add("show", self._metadata.fetch_detail(MediaKind.TV, tv_id, append=TV_DETAIL_APPEND))
        tasks.add("season", self._metadata.fetch_season(tv_id, 1, append=["credits"]))
        outcomes = await tasks.join()

        show = outcomes["show"]
        if not show.ok:
            raise show.error
        detail: MediaDetail = show.value

        first_season = outcomes["season"]
        cast = merge_cast(detail.cast, first_season.value.cast) if first_season.ok else detail.cast
        known = {1: first_season.value} if first_season.ok else {}
        runtime = await self._average_runtime(detail, known)

        trailer = await self._trailers.resolve(
            detail.videos, detail.title, detail.release_date, MediaKind.TV
        )
        return detail.model_copy(update={"cast": cast, "runtime": runtime, "trailer": trailer})

    async def _average_runtime(
        self,
        detail: MediaDetail,
        known: Dict[int, SeasonDetail],
    ) -> Optional[int]:
        """Mean positive episode runtime across regular seasons, else the show's own runtime."""
        numbers = [s.season_number for s in detail.seasons if s.season_number != SPECIALS_SEASON]
        if not numbers:
            return detail.runtime

        tasks = TaskSet("tv_details.seasons")
        for number in numbers:
            if number not in known:
                tasks.add(str(number), self._metadata.fetch_season(detail.id, number))
        outcomes = await tasks.join()

        failed = [label for label, o in outcomes.items() if not o.ok]
        if failed:
            logger.warning(
                f"Keeping listed runtime for show {detail.id}, seasons failed: {failed}",
                extra={"section": "tv_details", "media_id": detail.id},
            )
            return detail.runtime

        seasons = dict(known)
        seasons.update({int(label): o.value for label, o in outcomes.items()})
        runtimes = [r for n in numbers for r in seasons[n].episode_runtimes]
        return average_runtime(runtimes) or detail.runtime
