"""Models package - domain entities and interfaces."""
from .interfaces import MetadataProvider, VideoSearchProvider
from .schemas import (
    CastMember,
    Company,
    ErrorResponse,
    Keyword,
    MediaDetail,
    MediaItem,
    MediaKind,
    MediaListResponse,
    PlatformLogo,
    PlatformLogosResponse,
    ScoredItem,
    SeasonDetail,
    SeasonSummary,
    TrailerResult,
    TrailerSource,
    VideoCandidate,
    VideoType,
)

__all__ = [
    # Interfaces
    "MetadataProvider",
    "VideoSearchProvider",
    # Schemas
    "CastMember",
    "Company",
    "ErrorResponse",
    "Keyword",
    "MediaDetail",
    "MediaItem",
    "MediaKind",
    "MediaListResponse",
    "PlatformLogo",
    "PlatformLogosResponse",
    "ScoredItem",
    "SeasonDetail",
    "SeasonSummary",
    "TrailerResult",
    "TrailerSource",
    "VideoCandidate",
    "VideoType",
]
