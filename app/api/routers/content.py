"""
Content API router.
Curated catalog sections, search and detail views.
"""
from fastapi import APIRouter, Depends, Path, Query

from app.api.dependencies import get_catalog_service
from app.models.schemas import MediaDetail, MediaListResponse, PlatformLogosResponse
from app.services.catalog import CatalogService

router = APIRouter(prefix="/v1", tags=["content"])

ERROR_RESPONSES = {
    503: {"description": "Metadata provider unavailable"},
}


@router.get(
    "/movies/trending",
    response_model=MediaListResponse,
    summary="Trending Movies",
    responses=ERROR_RESPONSES,
)
async def trending_movies(
    catalog: CatalogService = Depends(get_catalog_service),
) -> MediaListResponse:
    return MediaListResponse.of(await catalog.trending_movies())


@router.get(
    "/tv/trending",
    response_model=MediaListResponse,
    summary="Trending TV Shows",
    responses=ERROR_RESPONSES,
)
async def trending_tv(
    catalog: CatalogService = Depends(get_catalog_service),
) -> MediaListResponse:
    return MediaListResponse.of(await catalog.trending_tv())


@router.get(
    "/movies/now-playing",
    response_model=MediaListResponse,
    summary="Now Playing In Theatres",
    responses=ERROR_RESPONSES,
)
async def now_playing_movies(
    catalog: CatalogService = Depends(get_catalog_service),
) -> MediaListResponse:
    return MediaListResponse.of(await catalog.now_playing_movies())


@router.get(
    "/tv/popular",
    response_model=MediaListResponse,
    summary="Popular TV Shows",
    description="Trending shows topped up with popular ones, excluding talk, news and reality.",
    responses=ERROR_RESPONSES,
)
async def popular_tv(
    catalog: CatalogService = Depends(get_catalog_service),
) -> MediaListResponse:
    return MediaListResponse.of(await catalog.popular_tv())


@router.get(
    "/movies/upcoming",
    response_model=MediaListResponse,
    summary="Coming Soon To Theatres",
    responses=ERROR_RESPONSES,
)
async def upcoming_movies(
    catalog: CatalogService = Depends(get_catalog_service),
) -> MediaListResponse:
    return MediaListResponse.of(await catalog.upcoming_movies())


@router.get(
    "/tv/upcoming",
    response_model=MediaListResponse,
    summary="New And Upcoming TV Shows",
    responses=ERROR_RESPONSES,
)
async def upcoming_tv(
    catalog: CatalogService = Depends(get_catalog_service),
) -> MediaListResponse:
    return MediaListResponse.of(await catalog.upcoming_tv())


@router.get(
    "/anime/trending",
    response_model=MediaListResponse,
    summary="Trending Anime",
    responses=ERROR_RESPONSES,
)
async def trending_anime(
    catalog: CatalogService = Depends(get_catalog_service),
) -> MediaListResponse:
    return MediaListResponse.of(await catalog.trending_anime())


@router.get(
    "/platforms/logos",
    response_model=PlatformLogosResponse,
    summary="Streaming Platform Logos",
    responses=ERROR_RESPONSES,
)
async def platform_logos(
    catalog: CatalogService = Depends(get_catalog_service),
) -> PlatformLogosResponse:
    return PlatformLogosResponse(platforms=await catalog.platform_logos())


@router.get(
    "/platforms/{platform}",
    response_model=MediaListResponse,
    summary="Streaming Platform Catalog",
    description="Highly rated movies and shows on netflix, prime, disney, max or appletv.",
    responses={400: {"description": "Unknown platform"}, **ERROR_RESPONSES},
)
async def streaming_platform(
    platform: str,
    catalog: CatalogService = Depends(get_catalog_service),
) -> MediaListResponse:
    return MediaListResponse.of(await catalog.streaming_platform(platform))


@router.get(
    "/watch-at-home",
    response_model=MediaListResponse,
    summary="Watch At Home",
    description="Shuffled mix of well-known movies, TV shows and anime.",
    responses=ERROR_RESPONSES,
)
async def watch_at_home(
    catalog: CatalogService = Depends(get_catalog_service),
) -> MediaListResponse:
    return MediaListResponse.of(await catalog.watch_at_home())


@router.get(
    "/search",
    response_model=MediaListResponse,
    summary="Search Movies And TV",
    responses={400: {"description": "Blank query"}, **ERROR_RESPONSES},
)
async def search(
    q: str = Query(..., min_length=1, description="Free-text title query"),
    catalog: CatalogService = Depends(get_catalog_service),
) -> MediaListResponse:
    return MediaListResponse.of(await catalog.search(q))


@router.get(
    "/movies/{movie_id}",
    response_model=MediaDetail,
    summary="Movie Details With Trailer",
    responses={404: {"description": "Unknown movie"}, **ERROR_RESPONSES},
)
async def movie_details(
    movie_id: int = Path(..., ge=1),
    catalog: CatalogService = Depends(get_catalog_service),
) -> MediaDetail:
    return await catalog.movie_details(movie_id)


@router.get(
    "/tv/{tv_id}",
    response_model=MediaDetail,
    summary="TV Show Details With Trailer",
    responses={404: {"description": "Unknown show"}, **ERROR_RESPONSES},
)
async def tv_details(
    tv_id: int = Path(..., ge=1),
    catalog: CatalogService = Depends(get_catalog_service),
) -> MediaDetail:
    return await catalog.tv_details(tv_id)
