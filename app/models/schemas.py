"""
Domain models using Pydantic.
All data structures for the content aggregation pipeline.
"""
from datetime import date
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Domain Models (Internal)
# =============================================================================


class MediaKind(str, Enum):
    """Kind of catalog entry; part of an item's identity."""

    MOVIE = "movie"
    TV = "tv"
    ANIME = "anime"


class MediaItem(BaseModel):
    """
    A movie, TV show or anime entry as returned by the metadata provider.
    Read-only once built by the provider adapter.
    """

    model_config = ConfigDict(frozen=True)

    id: int = Field(..., description="Provider-assigned identifier")
    kind: MediaKind = Field(..., description="Media kind")
    title: str = Field(default="", description="Title (movies) or name (TV)")
    release_date: Optional[date] = Field(
        default=None,
        description="Release date (movies) or first air date (TV)",
    )
    popularity: Optional[float] = Field(default=None, description="Provider popularity")
    vote_average: Optional[float] = Field(
        default=None, ge=0, le=10, description="Average rating (0-10)"
    )
    vote_count: Optional[int] = Field(default=None, ge=0, description="Number of votes")
    genre_ids: FrozenSet[int] = Field(default_factory=frozenset)
    original_language: Optional[str] = Field(default=None)
    origin_country: Tuple[str, ...] = Field(default_factory=tuple)
    poster_path: Optional[str] = Field(default=None, description="Poster path or URL")
    backdrop_path: Optional[str] = Field(default=None)
    overview: Optional[str] = Field(default=None)

    @property
    def key(self) -> Tuple[MediaKind, int]:
        """Identity key used for deduplication."""
        return (self.kind, self.id)

    @property
    def release_year(self) -> Optional[int]:
        return self.release_date.year if self.release_date else None


class ScoredItem(BaseModel):
    """Internal model for a ranked item with its computed score."""

    item: MediaItem
    score: float
    score_breakdown: Dict[str, float] = Field(default_factory=dict)


class VideoType(str, Enum):
    """Video classification; anything the provider labels otherwise is OTHER."""

    TRAILER = "Trailer"
    TEASER = "Teaser"
    OTHER = "Other"

    @classmethod
    def parse(cls, value: Optional[str]) -> "VideoType":
        for member in cls:
            if member.value == value:
                return member
        return cls.OTHER


class VideoCandidate(BaseModel):
    """Video that may serve as an item's trailer."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Provider video id (playable key)")
    name: str = Field(default="", description="Video title")
    site: str = Field(default="YouTube", description="Hosting site")
    type: VideoType = Field(default=VideoType.OTHER)
    channel: str = Field(default="", description="Publishing channel name")
    description: str = Field(default="")


class TrailerSource(str, Enum):
    PRIMARY = "primary-provider"
    SECONDARY = "secondary-search"
    NONE = "none"


class TrailerResult(BaseModel):
    """Outcome of trailer resolution; always present, possibly NONE."""

    model_config = ConfigDict(frozen=True)

    source: TrailerSource
    video_id: Optional[str] = None
    name: Optional[str] = None
    site: Optional[str] = None
    url: Optional[str] = None

    @classmethod
    def none(cls) -> "TrailerResult":
        return cls(source=TrailerSource.NONE)

    @property
    def found(self) -> bool:
        return self.source != TrailerSource.NONE


class CastMember(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    name: str = ""
    character: Optional[str] = None
    profile_path: Optional[str] = None
    order: Optional[int] = None


class Keyword(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    name: str = ""


class Company(BaseModel):
    """Production company or TV network."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str = ""
    logo_path: Optional[str] = None
    origin_country: Optional[str] = None


class SeasonSummary(BaseModel):
    """Season entry listed on a TV show's detail record."""

    model_config = ConfigDict(frozen=True)

    season_number: int
    name: str = ""
    episode_count: Optional[int] = None


class SeasonDetail(BaseModel):
    """One fetched season: positive episode runtimes and credited cast."""

    model_config = ConfigDict(frozen=True)

    season_number: int
    episode_runtimes: List[int] = Field(default_factory=list)
    cast: List[CastMember] = Field(default_factory=list)


class MediaDetail(MediaItem):
    """Full record for a single item, including nested videos and credits."""

    tagline: Optional[str] = None
    runtime: Optional[int] = Field(
        default=None,
        description="Runtime in minutes (TV: average episode runtime)",
    )
    status: Optional[str] = None
    videos: List[VideoCandidate] = Field(default_factory=list)
    cast: List[CastMember] = Field(default_factory=list)
    keywords: List[Keyword] = Field(default_factory=list)
    watch_providers: Dict[str, Any] = Field(
        default_factory=dict,
        description="Streaming availability keyed by region code",
    )
    certifications: Dict[str, str] = Field(
        default_factory=dict,
        description="Age rating keyed by region code",
    )
    production_companies: List[Company] = Field(default_factory=list)
    networks: List[Company] = Field(default_factory=list)
    external_ids: Dict[str, Any] = Field(default_factory=dict)
    seasons: List[SeasonSummary] = Field(default_factory=list)
    trailer: TrailerResult = Field(default_factory=TrailerResult.none)


class PlatformLogo(BaseModel):
    platform: str = Field(..., description="Platform key, e.g. 'netflix'")
    name: str
    logo_path: str
    logo_url: str


# =============================================================================
# API Models (External)
# =============================================================================


class MediaListResponse(BaseModel):
    """Curated list response. An empty list is a valid result, not an error."""

    items: List[MediaItem] = Field(..., description="Ordered catalog items")
    count: int = Field(..., description="Number of items returned")

    @classmethod
    def of(cls, items: List[MediaItem]) -> "MediaListResponse":
        return cls(items=items, count=len(items))


class PlatformLogosResponse(BaseModel):
    platforms: Dict[str, PlatformLogo] = Field(default_factory=dict)


class ErrorResponse(BaseModel):
    """Standard error response format."""

    error: Dict[str, Any] = Field(..., description="Error details")
