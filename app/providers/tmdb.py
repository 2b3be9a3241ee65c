"""
TMDB metadata provider adapter.
Maps raw TMDB JSON into MediaItem / MediaDetail models.
"""
import logging
from datetime import date
from typing import Any, Dict, List, Optional

import httpx

from app.config.settings import ProviderConfig
from app.core.exceptions import NotFoundError, ProviderUnavailableError
from app.models.schemas import (
    CastMember,
    Company,
    Keyword,
    MediaDetail,
    MediaItem,
    MediaKind,
    SeasonDetail,
    SeasonSummary,
    VideoCandidate,
    VideoType,
)

logger = logging.getLogger(__name__)

PROVIDER_NAME = "tmdb"

DEFAULT_DETAIL_APPEND = ["credits", "videos"]


def parse_date(value: Optional[str]) -> Optional[date]:
    """Parse a provider date string; empty or malformed values become None."""
    if not value:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def _genre_ids(raw: Dict[str, Any]) -> frozenset:
    if raw.get("genre_ids") is not None:
        return frozenset(raw["genre_ids"])
    return frozenset(g["id"] for g in raw.get("genres") or [] if "id" in g)


def _item_fields(raw: Dict[str, Any], kind: MediaKind) -> Dict[str, Any]:
    return {
        "id": raw["id"],
        "kind": kind,
        "title": raw.get("title") or raw.get("name") or "",
        "release_date": parse_date(raw.get("release_date") or raw.get("first_air_date")),
        "popularity": raw.get("popularity"),
        "vote_average": raw.get("vote_average"),
        "vote_count": raw.get("vote_count"),
        "genre_ids": _genre_ids(raw),
        "original_language": raw.get("original_language"),
        "origin_country": tuple(raw.get("origin_country") or ()),
        "poster_path": raw.get("poster_path"),
        "backdrop_path": raw.get("backdrop_path"),
        "overview": raw.get("overview"),
    }


def parse_media_item(raw: Dict[str, Any], kind: MediaKind) -> MediaItem:
    """Build a MediaItem from a TMDB list or detail payload."""
    return MediaItem(**_item_fields(raw, kind))


def parse_video(raw: Dict[str, Any]) -> VideoCandidate:
    return VideoCandidate(
        id=raw.get("key", ""),
        name=raw.get("name") or "",
        site=raw.get("site") or "",
        type=VideoType.parse(raw.get("type")),
    )


def parse_cast(raw: Dict[str, Any]) -> CastMember:
    return CastMember(
        id=raw["id"],
        name=raw.get("name") or "",
        character=raw.get("character"),
        profile_path=raw.get("profile_path"),
        order=raw.get("order"),
    )


def parse_company(raw: Dict[str, Any]) -> Company:
    return Company(
        id=raw["id"],
        name=raw.get("name") or "",
        logo_path=raw.get("logo_path"),
        origin_country=raw.get("origin_country") or None,
    )


def parse_keywords(raw: Dict[str, Any]) -> List[Keyword]:
    # Movies nest under "keywords", shows under "results"
    block = raw.get("keywords") or {}
    entries = block.get("keywords") or block.get("results") or []
    return [Keyword(id=k["id"], name=k.get("name") or "") for k in entries if "id" in k]


def parse_certifications(raw: Dict[str, Any]) -> Dict[str, str]:
    """Age rating per region from release_dates (movies) or content_ratings (TV)."""
    certifications: Dict[str, str] = {}

    for entry in (raw.get("release_dates") or {}).get("results") or []:
        region = entry.get("iso_3166_1")
        for release in entry.get("release_dates") or []:
            if region and release.get("certification"):
                certifications.setdefault(region, release["certification"])

    for entry in (raw.get("content_ratings") or {}).get("results") or []:
        region = entry.get("iso_3166_1")
        if region and entry.get("rating"):
            certifications.setdefault(region, entry["rating"])

    return certifications


def parse_season_summary(raw: Dict[str, Any]) -> SeasonSummary:
    return SeasonSummary(
        season_number=raw["season_number"],
        name=raw.get("name") or "",
        episode_count=raw.get("episode_count"),
    )


def parse_season(raw: Dict[str, Any], season_number: int) -> SeasonDetail:
    """Season payload; only positive episode runtimes are kept."""
    runtimes = [
        ep["runtime"]
        for ep in raw.get("episodes") or []
        if ep.get("runtime") and ep["runtime"] > 0
    ]
    cast = (raw.get("credits") or {}).get("cast") or []
    return SeasonDetail(
        season_number=raw.get("season_number", season_number),
        episode_runtimes=runtimes,
        cast=[parse_cast(c) for c in cast if "id" in c],
    )


def parse_media_detail(raw: Dict[str, Any], kind: MediaKind) -> MediaDetail:
    """Build a MediaDetail, including appended videos, credits and extras."""
    runtime = raw.get("runtime")
    if runtime is None and raw.get("episode_run_time"):
        runtime = raw["episode_run_time"][0]

    videos = (raw.get("videos") or {}).get("results") or []
    cast = (raw.get("credits") or {}).get("cast") or []
    watch_providers = (raw.get("watch/providers") or {}).get("results") or {}

    return MediaDetail(
        **_item_fields(raw, kind),
        tagline=raw.get("tagline") or None,
        runtime=runtime,
        status=raw.get("status"),
        videos=[parse_video(v) for v in videos if v.get("key")],
        cast=[parse_cast(c) for c in cast if "id" in c],
        keywords=parse_keywords(raw),
        watch_providers=watch_providers,
        certifications=parse_certifications(raw),
        production_companies=[
            parse_company(c) for c in raw.get("production_companies") or [] if "id" in c
        ],
        networks=[parse_company(n) for n in raw.get("networks") or [] if "id" in n],
        external_ids=raw.get("external_ids") or {},
        seasons=[
            parse_season_summary(s) for s in raw.get("seasons") or [] if "season_number" in s
        ],
    )


class TMDbProvider:
    """Client for the TMDB v3 API."""

    def __init__(
        self,
        config: ProviderConfig,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        """
        Initialize the provider.

        Args:
            config: Base URL, API key and per-call timeout
            client: Optional pre-built client (tests inject a mock transport)
        """
        self._config = config
        self._client = client

    @property
    def configured(self) -> bool:
        return bool(self._config.credential)

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._config.base_url,
                headers={"Accept": "application/json"},
                timeout=self._config.timeout_sec,
            )
        return self._client

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        query = dict(params or {})
        if self._config.credential:
            query["api_key"] = self._config.credential

        client = self._get_client()
        try:
            resp = await client.get(f"/{path.lstrip('/')}", params=query)
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404:
                raise NotFoundError("TMDB resource", path) from e
            raise ProviderUnavailableError(
                PROVIDER_NAME, f"HTTP {e.response.status_code} for {path}"
            ) from e
        except httpx.HTTPError as e:
            raise ProviderUnavailableError(PROVIDER_NAME, f"{type(e).__name__} for {path}") from e
        except ValueError as e:
            raise ProviderUnavailableError(PROVIDER_NAME, f"invalid JSON for {path}") from e

        if not isinstance(data, dict):
            raise ProviderUnavailableError(PROVIDER_NAME, f"unexpected payload for {path}")
        return data

    async def fetch_category(
        self,
        category: str,
        params: Optional[Dict[str, Any]] = None,
        kind: MediaKind = MediaKind.MOVIE,
    ) -> List[MediaItem]:
        """Fetch one page of a list endpoint (trending, discover, search...)."""
        data = await self._get(category, params)
        results = data.get("results") or []
        logger.debug(
            f"Fetched {len(results)} results from {category}",
            extra={"provider": PROVIDER_NAME},
        )
        return [parse_media_item(raw, kind) for raw in results if "id" in raw]

    async def fetch_detail(
        self,
        kind: MediaKind,
        media_id: int,
        append: Optional[List[str]] = None,
    ) -> MediaDetail:
        """Fetch the full record for one movie or show."""
        path_kind = "movie" if kind == MediaKind.MOVIE else "tv"
        params = {}
        if append is None:
            append = DEFAULT_DETAIL_APPEND
        if append:
            params["append_to_response"] = ",".join(append)

        data = await self._get(f"{path_kind}/{media_id}", params)
        return parse_media_detail(data, kind)

    async def fetch_season(
        self,
        tv_id: int,
        season_number: int,
        append: Optional[List[str]] = None,
    ) -> SeasonDetail:
        params = {"append_to_response": ",".join(append)} if append else {}
        data = await self._get(f"tv/{tv_id}/season/{season_number}", params)
        return parse_season(data, season_number)

    async def fetch_watch_providers(self, region: str) -> List[Dict[str, Any]]:
        data = await self._get("watch/providers/movie", {"watch_region": region})
        return data.get("results") or []
