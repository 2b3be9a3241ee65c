"""
Unit tests for CatalogService curated views.
"""
import random
from datetime import date

import pytest

from app.core.exceptions import (
    AggregateFetchError,
    NotFoundError,
    ProviderUnavailableError,
    ValidationError,
)
from app.models.schemas import (
    CastMember,
    MediaDetail,
    MediaItem,
    MediaKind,
    SeasonDetail,
    SeasonSummary,
    TrailerSource,
    VideoCandidate,
    VideoType,
)
from app.services.catalog import (
    MOVIE_DETAIL_APPEND,
    TV_DETAIL_APPEND,
    CatalogService,
    average_runtime,
    is_anime,
    merge_cast,
    merge_detail,
)
from app.services.trailers import TrailerResolver

# Matches the clock of the `catalog` fixture
TODAY = date(2025, 6, 15)


def make_item(media_id, title="Item", **fields):
    return MediaItem(id=media_id, kind=MediaKind.MOVIE, title=title, **fields)


def params_for(fake_metadata, category):
    return [params for cat, params, _ in fake_metadata.calls if cat == category]


class TestHelpers:
    def test_is_anime(self, item_factory):
        assert is_anime(item_factory(1, genre_ids=frozenset({16}), original_language="ja"))
        assert is_anime(item_factory(2, genre_ids=frozenset({16}), origin_country=("JP",)))
        assert not is_anime(item_factory(3, genre_ids=frozenset({16}), original_language="en"))
        assert not is_anime(item_factory(4, genre_ids=frozenset({18}), original_language="ja"))

    def test_merge_detail_keeps_identity_and_skips_empty(self, item_factory):
        item = item_factory(1, "List Title", kind=MediaKind.TV, popularity=5.0)
        detail = MediaDetail(id=99, kind=MediaKind.MOVIE, title="", popularity=8.0, genre_ids=frozenset({18}))

        merged = merge_detail(item, detail)

        assert merged.key == (MediaKind.TV, 1)
        assert merged.title == "List Title"
        assert merged.popularity == 8.0
        assert merged.genre_ids == frozenset({18})

    def test_merge_cast(self):
        show = [CastMember(id=1, name="A"), CastMember(id=2, name="B", character="Old")]
        season = [CastMember(id=2, name="B", character="New"), CastMember(id=3, name="C")]

        merged = merge_cast(show, season)

        assert [c.id for c in merged] == [1, 2, 3]
        assert merged[1].character == "New"


class TestSingleSourceSections:
    @pytest.mark.asyncio
    async def test_trending_movies_capped(self, catalog, fake_metadata):
        fake_metadata.categories["trending/movie/day"] = [make_item(i) for i in range(25)]

        items = await catalog.trending_movies()

        assert len(items) == 20
        assert [i.id for i in items[:3]] == [0, 1, 2]

    @pytest.mark.asyncio
    async def test_trending_tv_kind(self, catalog, fake_metadata):
        fake_metadata.categories["trending/tv/day"] = [make_item(1)]

        items = await catalog.trending_tv()

        assert items[0].kind == MediaKind.TV

    @pytest.mark.asyncio
    async def test_now_playing_empty_is_valid(self, catalog):
        assert await catalog.now_playing_movies() == []

    @pytest.mark.asyncio
    async def test_upcoming_tv_window(self, catalog, fake_metadata):
        fake_metadata.categories["discover/tv"] = [make_item(1)]

        items = await catalog.upcoming_tv()

        params = params_for(fake_metadata, "discover/tv")[0]
        assert params["first_air_date.gte"] == "2024-01-01"
        assert params["first_air_date.lte"] == "2026-12-31"
        assert params["with_original_language"] == "en"
        assert items[0].kind == MediaKind.TV


class TestPopularTv:
    @pytest.mark.asyncio
    async def test_trending_first_then_popular_genre_filtered(self, catalog, fake_metadata):
        fake_metadata.categories["trending/tv/week"] = [
            make_item(1),
            make_item(2),
            make_item(3, genre_ids=frozenset({10767})),
        ]
        fake_metadata.categories["tv/popular"] = [make_item(2), make_item(4), make_item(5)]
        # Genres only known after enrichment
        fake_metadata.details[4] = MediaDetail(
            id=4, kind=MediaKind.TV, title="Island Dating", genre_ids=frozenset({10764})
        )

        shows = await catalog.popular_tv()

        assert [s.id for s in shows] == [1, 2, 5]
        assert all(s.kind == MediaKind.TV for s in shows)

    @pytest.mark.asyncio
    async def test_one_source_down(self, catalog, fake_metadata):
        fake_metadata.categories["tv/popular"] = [make_item(8)]
        fake_metadata.failing.add("trending/tv/week")

        shows = await catalog.popular_tv()

        assert [s.id for s in shows] == [8]

    @pytest.mark.asyncio
    async def test_all_sources_down(self, catalog, fake_metadata):
        fake_metadata.failing.update({"trending/tv/week", "tv/popular"})

        with pytest.raises(AggregateFetchError) as exc_info:
            await catalog.popular_tv()

        assert set(exc_info.value.failed_sources) == {"trending", "popular"}


class TestUpcomingMovies:
    @pytest.mark.asyncio
    async def test_merged_deduped_future_only_ranked(self, catalog, fake_metadata):
        fake_metadata.categories[("movie/upcoming", 1)] = [
            make_item(1, popularity=10, release_date=date(2025, 7, 1)),
            make_item(2, popularity=50, release_date=date(2025, 6, 1)),
        ]
        fake_metadata.categories[("movie/upcoming", 2)] = [
            make_item(3, popularity=100, release_date=TODAY),
        ]
        fake_metadata.categories[("discover/movie", 1)] = [
            make_item(1, popularity=999, release_date=date(2025, 7, 1)),
        ]
        fake_metadata.categories[("discover/movie", 2)] = [make_item(4, popularity=5)]

        movies = await catalog.upcoming_movies()

        assert [m.id for m in movies] == [3, 1, 4]
        assert movies[1].popularity == 10
        discover = params_for(fake_metadata, "discover/movie")
        assert {p["primary_release_date.gte"] for p in discover} == {"2025-06-08"}

    @pytest.mark.asyncio
    async def test_partial_failure(self, catalog, fake_metadata):
        fake_metadata.categories[("discover/movie", 2)] = [make_item(4)]
        fake_metadata.failing.update({("movie/upcoming", 1), ("movie/upcoming", 2), ("discover/movie", 1)})

        movies = await catalog.upcoming_movies()

        assert [m.id for m in movies] == [4]


class TestTrendingAnime:
    @pytest.mark.asyncio
    async def test_filters_and_supplements(self, catalog, fake_metadata):
        fake_metadata.categories["trending/tv/week"] = [
            make_item(1, popularity=10, genre_ids=frozenset({16}), original_language="ja"),
            make_item(2, popularity=50, genre_ids=frozenset({16}), origin_country=("JP",)),
            make_item(3, popularity=90, genre_ids=frozenset({16}), original_language="en"),
            make_item(4, popularity=90, genre_ids=frozenset({18}), original_language="ja"),
        ]
        fake_metadata.categories["discover/tv"] = [
            make_item(2, popularity=50),
            make_item(5, popularity=1000),
        ]

        anime = await catalog.trending_anime()

        # Trending anime stay ahead of the more popular supplement
        assert [a.id for a in anime] == [2, 1, 5]
        assert all(a.kind == MediaKind.ANIME for a in anime)

    @pytest.mark.asyncio
    async def test_enough_trending_skips_supplement(self, catalog, fake_metadata):
        fake_metadata.categories["trending/tv/week"] = [
            make_item(i, genre_ids=frozenset({16}), original_language="ja") for i in range(12)
        ]

        anime = await catalog.trending_anime()

        assert len(anime) == 12
        assert params_for(fake_metadata, "discover/tv") == []

    @pytest.mark.asyncio
    async def test_supplement_failure_tolerated(self, catalog, fake_metadata):
        fake_metadata.categories["trending/tv/week"] = [
            make_item(1, genre_ids=frozenset({16}), original_language="ja"),
        ]
        fake_metadata.failing.add("discover/tv")

        anime = await catalog.trending_anime()

        assert [a.id for a in anime] == [1]


class TestStreamingPlatform:
    @pytest.mark.asyncio
    async def test_unknown_platform(self, catalog):
        with pytest.raises(ValidationError) as exc_info:
            await catalog.streaming_platform("hulu")

        assert "netflix" in exc_info.value.details["supported"]

    @pytest.mark.asyncio
    async def test_rating_blend_order(self, catalog, fake_metadata):
        fake_metadata.categories["discover/movie"] = [
            make_item(1, vote_average=9.0, popularity=20),
        ]
        fake_metadata.categories["discover/tv"] = [
            make_item(2, vote_average=7.0, popularity=3000),
        ]

        items = await catalog.streaming_platform("Netflix")

        assert [(i.id, i.kind) for i in items] == [(2, MediaKind.TV), (1, MediaKind.MOVIE)]
        movie_params = params_for(fake_metadata, "discover/movie")[0]
        assert movie_params["with_watch_providers"] == 8
        assert movie_params["watch_region"] == "US"
        assert movie_params["vote_count.gte"] == 100

    @pytest.mark.asyncio
    async def test_apple_tv_lower_movie_threshold(self, catalog, fake_metadata):
        await catalog.streaming_platform("appletv")

        assert params_for(fake_metadata, "discover/movie")[0]["vote_count.gte"] == 50
        assert params_for(fake_metadata, "discover/tv")[0]["vote_count.gte"] == 100

    @pytest.mark.asyncio
    async def test_platform_logos(self, catalog, fake_metadata):
        fake_metadata.watch_providers = [
            {"provider_id": 8, "provider_name": "Netflix", "logo_path": "/n.png"},
            {"provider_id": 9, "provider_name": "Amazon Prime Video", "logo_path": None},
            {"provider_id": 12345, "provider_name": "Other", "logo_path": "/o.png"},
        ]

        logos = await catalog.platform_logos()

        assert list(logos) == ["netflix"]
        assert logos["netflix"].logo_url == "https://image.tmdb.org/t/p/original/n.png"


class TestWatchAtHome:
    @pytest.fixture
    def stocked(self, fake_metadata):
        fake_metadata.categories["discover/movie"] = [make_item(i) for i in range(1, 21)]
        fake_metadata.categories["discover/tv"] = [
            make_item(
                i,
                original_language="ja" if i < 112 else "en",
                genre_ids=frozenset({10767}) if i == 119 else frozenset(),
            )
            for i in range(100, 120)
        ]
        return fake_metadata

    @pytest.mark.asyncio
    async def test_mix_and_caps(self, catalog, stocked):
        content = await catalog.watch_at_home()

        kinds = [c.kind for c in content]
        assert len(content) == 40
        assert kinds.count(MediaKind.MOVIE) == 15
        assert kinds.count(MediaKind.TV) == 15
        assert kinds.count(MediaKind.ANIME) == 10
        assert len({c.key for c in content}) == 40
        assert all(c.id != 119 for c in content if c.kind == MediaKind.TV)
        assert all(c.original_language == "ja" for c in content if c.kind == MediaKind.ANIME)

    @pytest.mark.asyncio
    async def test_random_pages_within_bounds(self, catalog, stocked):
        await catalog.watch_at_home()

        movie_page = params_for(stocked, "discover/movie")[0]["page"]
        tv_params, anime_params = params_for(stocked, "discover/tv")
        assert 1 <= movie_page <= 3
        assert 1 <= tv_params["page"] <= 3
        assert 1 <= anime_params["page"] <= 5

    @pytest.mark.asyncio
    async def test_seeded_shuffle_is_reproducible(self, stocked, fake_search, settings):
        def build():
            return CatalogService(
                metadata=stocked,
                trailer_resolver=TrailerResolver(search_provider=fake_search),
                settings=settings,
                today=lambda: TODAY,
                rng=random.Random(42),
            )

        first = await build().watch_at_home()
        second = await build().watch_at_home()

        assert [c.key for c in first] == [c.key for c in second]


class TestSearch:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("query", ["", "   "])
    async def test_blank_query_rejected(self, catalog, fake_metadata, query):
        with pytest.raises(ValidationError):
            await catalog.search(query)
        assert fake_metadata.calls == []

    @pytest.mark.asyncio
    async def test_movies_and_shows_ranked_together(self, catalog, fake_metadata):
        fake_metadata.categories["search/movie"] = [
            make_item(1, "Avatar: The Way of Water", popularity=100),
        ]
        fake_metadata.categories["search/tv"] = [
            make_item(2, "Avatar", popularity=100),
        ]

        results = await catalog.search("avatar")

        assert [(r.id, r.kind) for r in results] == [(2, MediaKind.TV), (1, MediaKind.MOVIE)]
        params = params_for(fake_metadata, "search/movie")[0]
        assert params == {"query": "avatar", "include_adult": False, "language": "en-US", "page": 1}

    @pytest.mark.asyncio
    async def test_capped(self, catalog, fake_metadata):
        fake_metadata.categories["search/movie"] = [make_item(i, "Dune") for i in range(15)]
        fake_metadata.categories["search/tv"] = [make_item(i, "Dune") for i in range(15)]

        assert len(await catalog.search("dune")) == 20

    @pytest.mark.asyncio
    async def test_one_side_down(self, catalog, fake_metadata):
        fake_metadata.categories["search/tv"] = [make_item(2, "Dune")]
        fake_metadata.failing.add("search/movie")

        results = await catalog.search("dune")

        assert [r.id for r in results] == [2]

    @pytest.mark.asyncio
    async def test_both_sides_down(self, catalog, fake_metadata):
        fake_metadata.failing.update({"search/movie", "search/tv"})

        with pytest.raises(AggregateFetchError):
            await catalog.search("dune")


class TestDetails:
    @pytest.mark.asyncio
    async def test_movie_with_listed_trailer(self, catalog, fake_metadata, fake_search):
        fake_metadata.details[10] = MediaDetail(
            id=10,
            kind=MediaKind.MOVIE,
            title="Dune",
            videos=[VideoCandidate(id="abc", name="Official Trailer", type=VideoType.TRAILER)],
        )

        detail = await catalog.movie_details(10)

        assert detail.trailer.source == TrailerSource.PRIMARY
        assert detail.trailer.video_id == "abc"
        assert fake_search.queries == []

    @pytest.mark.asyncio
    async def test_movie_without_any_trailer(self, catalog, fake_metadata, fake_search):
        fake_metadata.details[11] = MediaDetail(id=11, kind=MediaKind.MOVIE, title="Obscure")

        detail = await catalog.movie_details(11)

        assert detail.trailer.source == TrailerSource.NONE
        assert fake_search.queries == ["Obscure official trailer", "Obscure trailer"]

    @pytest.mark.asyncio
    async def test_movie_not_found(self, catalog):
        with pytest.raises(NotFoundError):
            await catalog.movie_details(404)

    @pytest.mark.asyncio
    async def test_tv_merges_season_cast(self, catalog, fake_metadata):
        fake_metadata.details[20] = MediaDetail(
            id=20,
            kind=MediaKind.TV,
            title="Show",
            cast=[CastMember(id=1, name="A"), CastMember(id=2, name="B", character="Old")],
        )
        fake_metadata.seasons[(20, 1)] = SeasonDetail(
            season_number=1,
            cast=[CastMember(id=2, name="B", character="New"), CastMember(id=3, name="C")],
        )

        detail = await catalog.tv_details(20)

        assert [c.id for c in detail.cast] == [1, 2, 3]
        assert detail.cast[1].character == "New"

    @pytest.mark.asyncio
    async def test_tv_season_failure_keeps_show_cast(self, catalog, fake_metadata):
        fake_metadata.details[21] = MediaDetail(
            id=21, kind=MediaKind.TV, title="Show", cast=[CastMember(id=1, name="A")]
        )
        fake_metadata.failing_seasons.add(21)

        detail = await catalog.tv_details(21)

        assert [c.id for c in detail.cast] == [1]

    @pytest.mark.asyncio
    async def test_tv_not_found(self, catalog):
        with pytest.raises(NotFoundError):
            await catalog.tv_details(404)

    @pytest.mark.asyncio
    async def test_detail_views_request_extras(self, catalog, fake_metadata):
        fake_metadata.details[10] = MediaDetail(id=10, kind=MediaKind.MOVIE, title="Dune")
        fake_metadata.details[20] = MediaDetail(id=20, kind=MediaKind.TV, title="Show")

        await catalog.movie_details(10)
        await catalog.tv_details(20)

        assert fake_metadata.detail_calls == [
            (MediaKind.MOVIE, 10, MOVIE_DETAIL_APPEND),
            (MediaKind.TV, 20, TV_DETAIL_APPEND),
        ]
        assert "watch/providers" in MOVIE_DETAIL_APPEND
        assert "keywords" in TV_DETAIL_APPEND


class TestTvRuntime:
    def show(self, tv_id, runtime=None, seasons=(0, 1)):
        return MediaDetail(
            id=tv_id,
            kind=MediaKind.TV,
            title="Show",
            runtime=runtime,
            seasons=[SeasonSummary(season_number=n) for n in seasons],
        )

    def test_average_runtime(self):
        assert average_runtime([40, 60]) == 50
        assert average_runtime([50, 51]) == 51
        assert average_runtime([40, 0, 45]) == 43
        assert average_runtime([]) is None

    @pytest.mark.asyncio
    async def test_average_skips_specials(self, catalog, fake_metadata):
        fake_metadata.details[30] = self.show(30, seasons=(0, 1))
        fake_metadata.seasons[(30, 0)] = SeasonDetail(season_number=0, episode_runtimes=[5])
        fake_metadata.seasons[(30, 1)] = SeasonDetail(season_number=1, episode_runtimes=[40, 60])

        detail = await catalog.tv_details(30)

        assert detail.runtime == 50
        fetched = [number for _, number, _ in fake_metadata.season_calls]
        assert fetched == [1]

    @pytest.mark.asyncio
    async def test_average_across_seasons(self, catalog, fake_metadata):
        fake_metadata.details[31] = self.show(31, runtime=25, seasons=(0, 1, 2))
        fake_metadata.seasons[(31, 1)] = SeasonDetail(season_number=1, episode_runtimes=[40, 60])
        fake_metadata.seasons[(31, 2)] = SeasonDetail(season_number=2, episode_runtimes=[45])

        detail = await catalog.tv_details(31)

        assert detail.runtime == 48
        assert sorted(number for _, number, _ in fake_metadata.season_calls) == [1, 2]

    @pytest.mark.asyncio
    async def test_failed_season_keeps_listed_runtime(self, catalog, fake_metadata):
        fake_metadata.details[32] = self.show(32, runtime=30, seasons=(1, 2))
        fake_metadata.seasons[(32, 1)] = SeasonDetail(season_number=1, episode_runtimes=[40])
        fake_metadata.failing_seasons.add((32, 2))

        detail = await catalog.tv_details(32)

        assert detail.runtime == 30

    @pytest.mark.asyncio
    async def test_no_episode_runtimes_keeps_listed_runtime(self, catalog, fake_metadata):
        fake_metadata.details[33] = self.show(33, runtime=22, seasons=(1,))

        detail = await catalog.tv_details(33)

        assert detail.runtime == 22

    @pytest.mark.asyncio
    async def test_first_season_retried_for_runtime(self, catalog, fake_metadata):
        """A failed cast fetch of season 1 still leaves the runtime averageable."""
        fake_metadata.details[34] = self.show(34, seasons=(1,))
        fake_metadata.seasons[(34, 1)] = SeasonDetail(season_number=1, episode_runtimes=[42])
        failures = {"left": 1}
        fetch_season = fake_metadata.fetch_season

        async def flaky(tv_id, season_number, append=None):
            if failures["left"]:
                failures["left"] -= 1
                raise ProviderUnavailableError("fake", "timeout")
            return await fetch_season(tv_id, season_number, append)

        fake_metadata.fetch_season = flaky

        detail = await catalog.tv_details(34)

        assert detail.runtime == 42
