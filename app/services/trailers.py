"""
Trailer resolution.

Stage 1 picks from the videos the metadata provider already lists for the
item, using a most-specific-first predicate cascade. Stage 2 runs only when
stage 1 finds nothing: it searches the video provider with progressively
looser queries and keeps the best-scoring hit.

Resolution never raises; every failure path ends in TrailerResult.none().
"""
import logging
from datetime import date
from typing import Callable, List, Optional, Sequence, Tuple

from pydantic import BaseModel

from app.models.interfaces import VideoSearchProvider
from app.models.schemas import (
    MediaKind,
    TrailerResult,
    TrailerSource,
    VideoCandidate,
    VideoType,
)

logger = logging.getLogger(__name__)

PRIMARY_SITE = "YouTube"
DEFAULT_WATCH_URL = "https://www.youtube.com/watch?v={video_id}"

OFFICIAL_CHANNELS = ("netflix", "hbo", "amazon prime", "disney", "warner")

VideoPredicate = Callable[[VideoCandidate], bool]


def _is(kind: VideoType, word: Optional[str] = None) -> VideoPredicate:
    def predicate(video: VideoCandidate) -> bool:
        if video.type != kind:
            return False
        return word is None or word in video.name.lower()

    return predicate


PRIMARY_CASCADE: Tuple[VideoPredicate, ...] = (
    _is(VideoType.TRAILER, "official"),
    _is(VideoType.TRAILER, "main"),
    _is(VideoType.TRAILER),
    _is(VideoType.TEASER, "official"),
    _is(VideoType.TEASER),
)


class TrailerScoringWeights(BaseModel):
    """Named constants for scoring search results."""

    title_match: float = 10.0
    year_match: float = 5.0
    official: float = 8.0
    trailer: float = 6.0
    official_channel: float = 10.0
    reaction: float = -10.0
    review: float = -10.0
    fan_made: float = -15.0


def select_primary(
    videos: Sequence[VideoCandidate],
    site: str = PRIMARY_SITE,
) -> Optional[VideoCandidate]:
    """
    Pick the best provider-listed video.

    The first predicate with any hit wins; within it the first matching
    video is chosen. Falls back to the first video on `site`.
    """
    hosted = [v for v in videos if v.site == site]
    if not hosted:
        return None

    for predicate in PRIMARY_CASCADE:
        for video in hosted:
            if predicate(video):
                return video
    return hosted[0]


def build_search_queries(title: str, year: Optional[int]) -> List[str]:
    """Search queries from most to least specific, without duplicates."""
    base = title.strip()
    candidates = []
    if year:
        candidates += [f"{base} {year} official trailer", f"{base} {year} trailer"]
    candidates += [f"{base} official trailer", f"{base} trailer"]

    queries = []
    for query in candidates:
        if query not in queries:
            queries.append(query)
    return queries


def score_search_result(
    video: VideoCandidate,
    title: str,
    year: Optional[int],
    weights: TrailerScoringWeights,
    official_channels: Sequence[str] = OFFICIAL_CHANNELS,
) -> float:
    name = video.name.lower()
    description = video.description.lower()
    channel = video.channel.lower()

    score = 0.0
    if title.lower() in name:
        score += weights.title_match
    if year and (str(year) in name or str(year) in description):
        score += weights.year_match
    if "official" in name:
        score += weights.official
    if "trailer" in name:
        score += weights.trailer
    if any(c in channel for c in official_channels):
        score += weights.official_channel

    if "reaction" in name:
        score += weights.reaction
    if "review" in name:
        score += weights.review
    if "fan made" in name:
        score += weights.fan_made
    return score


def pick_best_search_result(
    videos: Sequence[VideoCandidate],
    title: str,
    year: Optional[int],
    weights: TrailerScoringWeights,
    official_channels: Sequence[str] = OFFICIAL_CHANNELS,
) -> Optional[VideoCandidate]:
    """Highest positive score wins; the earlier result wins ties."""
    best: Optional[VideoCandidate] = None
    best_score = 0.0
    for video in videos:
        score = score_search_result(video, title, year, weights, official_channels)
        if score > best_score:
            best, best_score = video, score
    return best


class TrailerResolver:
    """Resolves exactly one TrailerResult per media item."""

    def __init__(
        self,
        search_provider: Optional[VideoSearchProvider] = None,
        weights: Optional[TrailerScoringWeights] = None,
        official_channels: Sequence[str] = OFFICIAL_CHANNELS,
        primary_site: str = PRIMARY_SITE,
        watch_url: str = DEFAULT_WATCH_URL,
        max_results: int = 10,
    ) -> None:
        self._search = search_provider
        self._weights = weights or TrailerScoringWeights()
        self._official_channels = tuple(c.lower() for c in official_channels)
        self._primary_site = primary_site
        self._watch_url = watch_url
        self._max_results = max_results

    def _result(self, source: TrailerSource, video: VideoCandidate) -> TrailerResult:
        return TrailerResult(
            source=source,
            video_id=video.id,
            name=video.name,
            site=self._primary_site,
            url=self._watch_url.format(video_id=video.id),
        )

    async def resolve(
        self,
        primary_videos: Sequence[VideoCandidate],
        title: str,
        release_date: Optional[date],
        kind: MediaKind,
    ) -> TrailerResult:
        log_ctx = {"media_kind": kind.value}

        primary = select_primary(primary_videos, self._primary_site)
        if primary is not None:
            logger.info(f"Primary trailer found for: {title}", extra=log_ctx)
            return self._result(TrailerSource.PRIMARY, primary)

        logger.info(f"No primary trailer for: {title}, trying search", extra=log_ctx)
        year = release_date.year if release_date else None
        found = await self._search_fallback(title, year)
        if found is None:
            logger.info(f"No trailer found anywhere for: {title}", extra=log_ctx)
            return TrailerResult.none()
        return self._result(TrailerSource.SECONDARY, found)

    async def _search_fallback(self, title: str, year: Optional[int]) -> Optional[VideoCandidate]:
        if self._search is None or not self._search.available:
            logger.info("Video search provider unavailable, skipping search")
            return None
        if not title.strip():
            return None

        try:
            for query in build_search_queries(title, year):
                results = await self._search.search(query, self._max_results)
                best = pick_best_search_result(
                    results, title, year, self._weights, self._official_channels
                )
                if best is not None:
                    logger.debug(f"Search hit for query '{query}': {best.id}")
                    return best
        except Exception as e:
            logger.warning(f"Trailer search failed for: {title}, error={e}")
        return None
